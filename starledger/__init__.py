# starledger/__init__.py
"""
starledger — an append-only, self-verifying star registry.

Blocks are linked by SHA-256 digests over RFC 8785 canonical JSON; new star
claims are admitted only after a signed, time-boxed ownership challenge.
"""

from starledger.chain.hashchain import HashChain
from starledger.core.types import Block, GenesisMarker, StarClaim
from starledger.service import LedgerService
from starledger.verify.ownership import OwnershipVerifier

__version__ = "0.1.0-dev"

__all__ = [
    "Block",
    "GenesisMarker",
    "HashChain",
    "LedgerService",
    "OwnershipVerifier",
    "StarClaim",
]
