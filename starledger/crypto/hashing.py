# starledger/crypto/hashing.py
import hashlib
from typing import Optional

from starledger.core.canon import canonical_json


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def block_hash(height: int, timestamp: int, previous_hash: Optional[str], payload: str) -> str:
    """Digest over every block field except the hash itself."""
    return sha256_hex(canonical_json({
        "height": height,
        "timestamp": timestamp,
        "previous_hash": previous_hash,
        "payload": payload,
    }))
