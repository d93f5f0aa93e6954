# starledger/core/canon.py
import json
from typing import Any, Dict

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")

from starledger.core.errors import DecodeError


def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes according to RFC 8785 (JSON Canonicalization Scheme).
    Returns bytes ready for hashing.
    """
    return jcs.canonicalize(obj)


def parse_json_object(data: bytes) -> Dict[str, Any]:
    """Parse UTF-8 JSON bytes that must hold a single object."""
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Payload is not valid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise DecodeError(f"Payload must be a JSON object, got {type(obj).__name__}")
    return obj
