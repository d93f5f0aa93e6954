# starledger/verify/integrity.py
import logging
from dataclasses import dataclass
from typing import List, Sequence

from starledger.core.types import Block, GENESIS_PREVIOUS_HASH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationError:
    """One integrity problem found at a chain position. Reported, never repaired."""
    height: int
    detail: str = ""
    category: str = "general"

    def __str__(self):
        return f"[{self.height}] {self.category}: {self.detail}"


@dataclass(frozen=True)
class TamperedBlock(ValidationError):
    category: str = "tampered"


@dataclass(frozen=True)
class BrokenLink(ValidationError):
    category: str = "broken_link"


@dataclass(frozen=True)
class HeightMismatch(ValidationError):
    category: str = "height"


def validate_blocks(blocks: Sequence[Block]) -> List[ValidationError]:
    """
    Single pass over an ordered block sequence.

    Reports, per position:
      - HeightMismatch if the stored height is not the position,
      - TamperedBlock if the stored hash differs from the recomputed one,
      - BrokenLink if previous_hash does not match the predecessor's stored hash
        (or genesis carries anything but the sentinel).
    Empty result means the sequence is fully consistent.
    """
    failures: List[ValidationError] = []

    for i, block in enumerate(blocks):
        if block.height != i:
            failures.append(HeightMismatch(i, f"stored height {block.height} at position {i}"))

        try:
            recomputed = block.recompute_hash()
        except (TypeError, ValueError) as e:
            failures.append(TamperedBlock(i, f"fields cannot be hashed: {e}"))
        else:
            if recomputed != block.hash:
                failures.append(TamperedBlock(i, "stored hash does not match block contents"))

        if i == 0:
            if block.previous_hash is not GENESIS_PREVIOUS_HASH:
                failures.append(BrokenLink(i, "genesis block must not reference a predecessor"))
            continue

        if block.previous_hash != blocks[i - 1].hash:
            failures.append(BrokenLink(i, "previous_hash does not match previous block hash"))

    if failures:
        logger.warning("Chain validation found %d issue(s)", len(failures))
    return failures
