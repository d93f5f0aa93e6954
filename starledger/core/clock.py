# starledger/core/clock.py
import time
from typing import Callable

Clock = Callable[[], int]


def unix_now() -> int:
    """Whole seconds since the epoch."""
    return int(time.time())
