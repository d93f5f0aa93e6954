# starledger/storage/__init__.py
"""
Storage backends for persisting the ledger.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

from starledger.core.types import Block


class StorageBackend(ABC):
    """Abstract base for all persistent storage implementations."""

    @abstractmethod
    def append(self, block: Block) -> None:
        """Write one complete block record, or nothing."""

    @abstractmethod
    def load_blocks(self) -> List[Block]:
        """All stored blocks in height order."""

    @abstractmethod
    def save(self, blocks: Sequence[Block]) -> None:
        """Replace the stored chain with ``blocks`` in a single transaction."""

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_storage(uri: str) -> StorageBackend:
    """
    ``sqlite://<path>`` or a plain file path (treated as SQLite).
    """
    from .sqlite import SQLiteStorage

    stripped = uri.strip()
    if not stripped:
        raise ValueError("Storage URI must not be empty")
    if "://" in stripped and not stripped.startswith("sqlite://"):
        raise ValueError(f"Unsupported storage URI: {uri}")

    raw_path = stripped[len("sqlite://"):] if stripped.startswith("sqlite://") else stripped
    return SQLiteStorage(Path(raw_path).resolve())


from .sqlite import SQLiteStorage

__all__ = ["StorageBackend", "create_storage", "SQLiteStorage"]
