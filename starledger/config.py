# starledger/config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from starledger.verify.ownership import DEFAULT_WINDOW_SECONDS

DB_PATH_ENV = "STARLEDGER_DB_PATH"
CHALLENGE_WINDOW_ENV = "STARLEDGER_CHALLENGE_WINDOW"


def resolve_db_path(db_flag: Optional[Path] = None) -> Path:
    """Resolve DB path in this order:
    1. explicit flag
    2. STARLEDGER_DB_PATH environment variable
    3. Default: ~/.starledger/ledger.db
    """
    if db_flag:
        path = Path(db_flag).resolve()
    else:
        env_path = os.environ.get(DB_PATH_ENV)
        if env_path:
            path = Path(env_path).resolve()
        else:
            path = Path.home() / ".starledger" / "ledger.db"

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@dataclass(frozen=True)
class LedgerSettings:
    db_path: Path
    challenge_window: int = DEFAULT_WINDOW_SECONDS

    @classmethod
    def from_env(cls, db_flag: Optional[Path] = None) -> "LedgerSettings":
        raw_window = os.environ.get(CHALLENGE_WINDOW_ENV)
        window = DEFAULT_WINDOW_SECONDS
        if raw_window:
            try:
                window = int(raw_window)
            except ValueError:
                raise ValueError(f"{CHALLENGE_WINDOW_ENV} must be an integer, got {raw_window!r}") from None
            if window < 0:
                raise ValueError(f"{CHALLENGE_WINDOW_ENV} must be non-negative")
        return cls(db_path=resolve_db_path(db_flag), challenge_window=window)
