# starledger/core/types.py
import binascii
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union

from starledger.core.canon import canonical_json, parse_json_object
from starledger.core.encoding import b64url_decode, b64url_encode
from starledger.core.errors import DecodeError
from starledger.crypto.hashing import block_hash

GENESIS_DATA = "Genesis Block"
GENESIS_PREVIOUS_HASH: Optional[str] = None   # "none" sentinel, serialized as JSON null

_STAR_FIELDS = frozenset({"address", "message", "signature", "star"})
_RECORD_FIELDS = ("height", "timestamp", "previous_hash", "payload", "hash")


@dataclass(frozen=True)
class GenesisMarker:
    """Fixed payload of block 0."""
    data: str = GENESIS_DATA

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class StarClaim:
    """Payload of every non-genesis block."""
    address: str
    message: str                    # the challenge string that was signed
    signature: str
    star: Any                       # opaque, JSON-serializable

    def to_dict(self) -> dict:
        return asdict(self)


Payload = Union[StarClaim, GenesisMarker]


def encode_payload(payload: Union[Payload, Dict[str, Any], str]) -> str:
    """base64url of the canonical JSON of a payload object; strings pass through."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (StarClaim, GenesisMarker)):
        payload = payload.to_dict()
    return b64url_encode(canonical_json(payload))


@dataclass(frozen=True)
class Block:
    """Sealed ledger record. ``hash`` covers every other field."""
    height: int
    timestamp: int                  # unix seconds at seal time
    previous_hash: Optional[str]    # None only for genesis
    payload: str                    # base64url canonical JSON
    hash: str

    @classmethod
    def seal(
        cls,
        payload: Union[Payload, Dict[str, Any], str],
        previous_hash: Optional[str],
        height: int,
        timestamp: int,
    ) -> "Block":
        encoded = encode_payload(payload)
        return cls(
            height=height,
            timestamp=timestamp,
            previous_hash=previous_hash,
            payload=encoded,
            hash=block_hash(height, timestamp, previous_hash, encoded),
        )

    def recompute_hash(self) -> str:
        return block_hash(self.height, self.timestamp, self.previous_hash, self.payload)

    def decode_payload(self) -> Payload:
        try:
            raw = b64url_decode(self.payload)
        except (binascii.Error, ValueError, TypeError) as e:
            raise DecodeError(f"Block {self.height}: payload is not base64url: {e}") from e

        obj = parse_json_object(raw)
        if set(obj) == {"data"} and obj["data"] == GENESIS_DATA:
            return GenesisMarker()
        if set(obj) == _STAR_FIELDS:
            if not all(isinstance(obj[k], str) for k in ("address", "message", "signature")):
                raise DecodeError(f"Block {self.height}: star claim fields must be strings")
            return StarClaim(**obj)
        raise DecodeError(f"Block {self.height}: unrecognized payload keys {sorted(obj)}")

    def to_dict(self) -> dict:
        """Persisted record layout."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Block":
        """Rebuild a stored record as-is; integrity is checked by chain validation."""
        missing = [k for k in _RECORD_FIELDS if k not in d]
        if missing:
            raise DecodeError(f"Block record is missing fields: {missing}")
        return cls(**{k: d[k] for k in _RECORD_FIELDS})
