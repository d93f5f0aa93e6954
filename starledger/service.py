# starledger/service.py
import logging
from typing import Any, List, Optional

from starledger.chain.hashchain import HashChain
from starledger.config import LedgerSettings
from starledger.core.clock import Clock
from starledger.core.errors import (
    AppendError,
    ChainError,
    DecodeError,
    InvalidStar,
    VerificationError,
    VerificationFailed,
)
from starledger.core.types import Block, StarClaim, encode_payload
from starledger.storage import create_storage
from starledger.verify.integrity import ValidationError
from starledger.verify.ownership import OwnershipVerifier

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Star registry use cases over a HashChain.

    The only entry point front ends should use: submissions are verified
    before any block is built, and reads go through chain snapshots.
    """

    def __init__(self, chain: Optional[HashChain] = None, verifier: Optional[OwnershipVerifier] = None):
        self._chain = chain if chain is not None else HashChain()
        self._verifier = verifier or OwnershipVerifier()
        self._chain.initialize()

    @classmethod
    def open(cls, settings: Optional[LedgerSettings] = None, clock: Optional[Clock] = None) -> "LedgerService":
        """Service backed by the SQLite ledger named in ``settings``."""
        settings = settings or LedgerSettings.from_env()
        storage = create_storage(f"sqlite://{settings.db_path}")
        chain = HashChain(storage=storage, clock=clock)
        verifier = OwnershipVerifier(clock=clock, window_seconds=settings.challenge_window)
        try:
            return cls(chain=chain, verifier=verifier)
        except Exception:
            chain.close()
            raise

    def request_challenge(self, address: str) -> str:
        return self._verifier.issue_challenge(address)

    def submit_star(self, address: str, message: str, signature: str, star: Any) -> Block:
        """
        Register ``star`` for ``address``.

        Raises VerificationFailed if the challenge response is rejected (no
        block is built), InvalidStar if ``star`` is not JSON-serializable,
        ChainError if the ledger refuses the append.
        """
        try:
            self._verifier.verify(address, message, signature)
        except VerificationError as e:
            logger.warning("Rejected star submission from %s: %s", address, e)
            raise VerificationFailed(e) from e

        claim = StarClaim(address=address, message=message, signature=signature, star=star)
        try:
            payload = encode_payload(claim)
        except (TypeError, ValueError) as e:
            raise InvalidStar(f"Star data cannot be encoded: {e}") from e

        try:
            return self._chain.append(payload)
        except AppendError as e:
            raise ChainError(e) from e

    def get_block_by_hash(self, block_hash: str) -> Optional[Block]:
        return self._chain.get_by_hash(block_hash)

    def get_block_by_height(self, height: int) -> Optional[Block]:
        return self._chain.get_by_height(height)

    def get_height(self) -> int:
        return self._chain.height()

    def get_stars(self) -> List[StarClaim]:
        """Every decodable star claim, in chain order."""
        stars = []
        for block in self._chain.blocks():
            try:
                payload = block.decode_payload()
            except DecodeError as e:
                logger.debug("Skipping block %d: %s", block.height, e)
                continue
            if isinstance(payload, StarClaim):
                stars.append(payload)
        return stars

    def get_stars_by_address(self, address: str) -> List[StarClaim]:
        return [claim for claim in self.get_stars() if claim.address == address]

    def validate_ledger(self) -> List[ValidationError]:
        return self._chain.validate()

    def blocks(self):
        return self._chain.blocks()

    def close(self) -> None:
        self._chain.close()
