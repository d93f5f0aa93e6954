# starledger/chain/hashchain.py
import logging
import threading
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from starledger.core.clock import Clock, unix_now
from starledger.core.errors import ChainCorrupted, PersistenceFailed
from starledger.core.types import Block, GenesisMarker, GENESIS_PREVIOUS_HASH
from starledger.storage import StorageBackend
from starledger.verify.integrity import ValidationError, validate_blocks

logger = logging.getLogger(__name__)


class _ChainState(NamedTuple):
    blocks: Tuple[Block, ...]
    by_hash: Dict[str, Block]


class HashChain:
    """
    Owns the ordered sequence of sealed blocks.

    The sequence is an immutable tuple swapped in one assignment on commit, so
    readers work on a consistent snapshot without locking. Writers serialize on
    a single lock held from height read to commit.
    """

    def __init__(
        self,
        blocks: Optional[Iterable[Block]] = None,
        storage: Optional[StorageBackend] = None,
        clock: Optional[Clock] = None,
    ):
        self._lock = threading.Lock()
        self._clock = clock or unix_now
        self._storage = storage

        if blocks is None and storage is not None:
            blocks = storage.load_blocks()
            logger.info("Loaded %d blocks from storage", len(blocks))

        self._state = self._build_state(tuple(blocks or ()))

    @staticmethod
    def _build_state(blocks: Tuple[Block, ...]) -> _ChainState:
        by_hash: Dict[str, Block] = {}
        for block in blocks:
            by_hash.setdefault(block.hash, block)
        return _ChainState(blocks, by_hash)

    def initialize(self) -> Block:
        """Append the genesis block if the chain is empty. Returns block 0."""
        with self._lock:
            if self._state.blocks:
                return self._state.blocks[0]
            genesis = self._append_locked(GenesisMarker())
            logger.info("Genesis block created: %s", genesis.hash)
            return genesis

    def height(self) -> int:
        return len(self._state.blocks) - 1

    def append(self, payload: Any) -> Block:
        """
        Seal ``payload`` into the next block and commit it.

        Raises ChainCorrupted if the chain (including the pending block) fails
        validation, PersistenceFailed if storage rejects the record. In both
        cases nothing is committed.
        """
        with self._lock:
            block = self._append_locked(payload)
        logger.info("Committed block %d (%s)", block.height, block.hash)
        return block

    def _append_locked(self, payload: Any) -> Block:
        state = self._state
        next_height = len(state.blocks)
        previous_hash = state.blocks[-1].hash if state.blocks else GENESIS_PREVIOUS_HASH

        block = Block.seal(payload, previous_hash, next_height, self._clock())

        candidate = state.blocks + (block,)
        errors = validate_blocks(candidate)
        if errors:
            logger.error("Refusing to append block %d: %s", next_height, "; ".join(map(str, errors)))
            raise ChainCorrupted(errors)

        if self._storage is not None:
            try:
                self._storage.append(block)
            except Exception as e:
                raise PersistenceFailed(f"Could not persist block {next_height}: {e}") from e

        by_hash = dict(state.by_hash)
        by_hash.setdefault(block.hash, block)
        self._state = _ChainState(candidate, by_hash)
        return block

    def get_by_hash(self, block_hash: str) -> Optional[Block]:
        return self._state.by_hash.get(block_hash)

    def get_by_height(self, height: int) -> Optional[Block]:
        blocks = self._state.blocks
        if 0 <= height < len(blocks):
            return blocks[height]
        return None

    def blocks(self) -> Tuple[Block, ...]:
        """Snapshot of the chain; later appends do not change it."""
        return self._state.blocks

    def validate(self) -> List[ValidationError]:
        return validate_blocks(self._state.blocks)

    def close(self) -> None:
        if self._storage is not None:
            self._storage.close()
            self._storage = None

    def __len__(self) -> int:
        return len(self._state.blocks)
