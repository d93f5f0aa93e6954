# tests/conftest.py
import pytest

from starledger.crypto.keys import AddressKeyPair


class FakeClock:
    """Settable unix-seconds clock."""

    def __init__(self, now: int = 1000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1000)


@pytest.fixture
def keys() -> AddressKeyPair:
    return AddressKeyPair.generate()
