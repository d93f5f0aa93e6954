# starledger/crypto/keys.py
"""
Ed25519 address signatures.

An address is the base64url encoding of a raw 32-byte Ed25519 public key.
Signatures are base64url over the UTF-8 bytes of the signed message.
"""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from starledger.core.encoding import b64url_decode, b64url_encode


def verify_signature(message: str, address: str, signature: str) -> bool:
    """
    Return whether ``signature`` signs ``message`` with the key behind ``address``.

    Malformed addresses or signatures raise ValueError (binascii.Error included);
    callers must treat that as "not verified".
    """
    public_key = Ed25519PublicKey.from_public_bytes(b64url_decode(address))
    try:
        public_key.verify(b64url_decode(signature), message.encode("utf-8"))
    except InvalidSignature:
        return False
    return True


class AddressKeyPair:
    """Signing side of an address. Keys live only as long as this object."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key

    @classmethod
    def generate(cls) -> "AddressKeyPair":
        return cls(Ed25519PrivateKey.generate())

    @property
    def address(self) -> str:
        raw = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return b64url_encode(raw)

    def sign(self, message: str) -> str:
        return b64url_encode(self._private_key.sign(message.encode("utf-8")))
