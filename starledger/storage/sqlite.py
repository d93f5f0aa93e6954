# starledger/storage/sqlite.py
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence

from starledger.config import resolve_db_path
from starledger.core.types import Block
from . import StorageBackend

logger = logging.getLogger(__name__)

_INSERT = """
    INSERT INTO blocks (height, timestamp, previous_hash, payload, hash)
    VALUES (?, ?, ?, ?, ?)
"""


def _row(block: Block) -> tuple:
    return (block.height, block.timestamp, block.previous_hash, block.payload, block.hash)


class SQLiteStorage(StorageBackend):
    """SQLite persistent storage, one row per sealed block."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            db_path = resolve_db_path()

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        # appends are serialized by the owning HashChain's lock
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS blocks (
                height          INTEGER PRIMARY KEY,
                timestamp       INTEGER NOT NULL,
                previous_hash   TEXT,
                payload         TEXT    NOT NULL,
                hash            TEXT    NOT NULL
            )
        """)
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_hash ON blocks(hash)")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Storage connection is closed")
        return self._conn

    def append(self, block: Block) -> None:
        # single statement in autocommit mode: the row lands whole or not at all
        self.conn.execute(_INSERT, _row(block))

    def load_blocks(self) -> List[Block]:
        cursor = self.conn.execute("""
            SELECT height, timestamp, previous_hash, payload, hash
            FROM blocks ORDER BY height ASC
        """)
        columns = [c[0] for c in cursor.description]
        return [Block.from_dict(dict(zip(columns, row))) for row in cursor]

    def save(self, blocks: Sequence[Block]) -> None:
        conn = self.conn
        conn.execute("BEGIN IMMEDIATE")
        try:
            conn.execute("DELETE FROM blocks")
            conn.executemany(_INSERT, [_row(b) for b in blocks])
        except Exception:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
        logger.info("Saved snapshot of %d blocks to %s", len(blocks), self.db_path)

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM blocks").fetchone()[0]

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
