# tests/test_core.py
import binascii
import dataclasses

import pytest

from starledger.core.canon import canonical_json, parse_json_object
from starledger.core.encoding import b64url_encode, b64url_decode
from starledger.core.errors import DecodeError
from starledger.core.types import Block, GenesisMarker, StarClaim, encode_payload
from starledger.crypto.hashing import block_hash


@pytest.fixture
def sample_claim():
    return StarClaim(
        address="A1",
        message="A1:1000:starRegistry",
        signature="c2lnbmF0dXJl",
        star={"dec": "68° 52' 56.9", "ra": "16h 29m 1.0s", "story": "Found it"},
    )


def test_block_immutable(sample_claim):
    block = Block.seal(sample_claim, None, 0, 1000)
    with pytest.raises(dataclasses.FrozenInstanceError):
        block.height = 99


def test_seal_is_deterministic(sample_claim):
    b1 = Block.seal(sample_claim, "ab" * 32, 3, 1234)
    b2 = Block.seal(StarClaim(**sample_claim.to_dict()), "ab" * 32, 3, 1234)
    assert b1 == b2
    assert len(b1.hash) == 64


def test_hash_covers_every_field(sample_claim):
    base = Block.seal(sample_claim, "ab" * 32, 3, 1234)
    assert Block.seal(sample_claim, "ab" * 32, 4, 1234).hash != base.hash
    assert Block.seal(sample_claim, "ab" * 32, 3, 1235).hash != base.hash
    assert Block.seal(sample_claim, "cd" * 32, 3, 1234).hash != base.hash
    assert Block.seal(GenesisMarker(), "ab" * 32, 3, 1234).hash != base.hash


def test_recompute_hash_matches_seal(sample_claim):
    block = Block.seal(sample_claim, None, 0, 1000)
    assert block.recompute_hash() == block.hash
    assert block.hash == block_hash(0, 1000, None, block.payload)

    tampered = dataclasses.replace(block, timestamp=1001)
    assert tampered.recompute_hash() != tampered.hash


def test_decode_star_claim(sample_claim):
    block = Block.seal(sample_claim, None, 1, 1000)
    assert block.decode_payload() == sample_claim


def test_decode_genesis_marker():
    block = Block.seal(GenesisMarker(), None, 0, 1000)
    assert block.decode_payload() == GenesisMarker()


@pytest.mark.parametrize("payload", [
    "not*base64!",
    b64url_encode(b"not json at all"),
    b64url_encode(b"[1, 2, 3]"),
    encode_payload({"address": "A1", "star": {}}),
    encode_payload({"address": 1, "message": "m", "signature": "s", "star": {}}),
    encode_payload({"data": "Something else"}),
])
def test_decode_malformed_payload(payload):
    block = Block.seal(payload, None, 1, 1000)
    with pytest.raises(DecodeError):
        block.decode_payload()


def test_record_roundtrip(sample_claim):
    block = Block.seal(sample_claim, "ab" * 32, 1, 1000)
    record = block.to_dict()
    assert set(record) == {"height", "timestamp", "previous_hash", "payload", "hash"}
    assert Block.from_dict(record) == block


def test_from_dict_missing_field():
    with pytest.raises(DecodeError, match="missing"):
        Block.from_dict({"height": 0, "timestamp": 1})


def test_base64url_no_padding_and_strict():
    encoded = b64url_encode(b'{"hello":"world"}')
    assert "=" not in encoded
    assert b64url_decode(encoded) == b'{"hello":"world"}'
    with pytest.raises(binascii.Error):
        b64url_decode("abc$def")


def test_canonical_json_sorting():
    messy = {
        "z": 1,
        "a": "hello",
        "nested": {"b": 2, "a": 1},
    }
    assert canonical_json(messy) == b'{"a":"hello","nested":{"a":1,"b":2},"z":1}'


def test_parse_json_object_rejects_non_objects():
    assert parse_json_object(b'{"a":1}') == {"a": 1}
    with pytest.raises(DecodeError):
        parse_json_object(b'"just a string"')
    with pytest.raises(DecodeError):
        parse_json_object(b"\xff\xfe")
