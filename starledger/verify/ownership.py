# starledger/verify/ownership.py
import logging
import re
from typing import Callable, Optional, Tuple

from starledger.core.clock import Clock, unix_now
from starledger.core.errors import (
    ChallengeExpired,
    MalformedMessage,
    SignatureInvalid,
)
from starledger.crypto.keys import verify_signature

logger = logging.getLogger(__name__)

CHALLENGE_SUFFIX = "starRegistry"
DEFAULT_WINDOW_SECONDS = 5 * 60

_CHALLENGE_RE = re.compile(r"(?P<address>.+):(?P<issued>[0-9]+):" + CHALLENGE_SUFFIX)

SignatureVerifier = Callable[[str, str, str], bool]


def parse_challenge(message: str) -> Tuple[str, int]:
    """Split ``"{address}:{unix_time}:starRegistry"`` into (address, unix_time)."""
    match = _CHALLENGE_RE.fullmatch(message) if isinstance(message, str) else None
    if match is None:
        raise MalformedMessage(f"Not a star registry challenge: {message!r}")
    return match.group("address"), int(match.group("issued"))


class OwnershipVerifier:
    """
    Issues and checks time-boxed ownership challenges.

    Stateless: the issuance time travels inside the challenge string, so nothing
    is remembered between issue_challenge and verify.
    """

    def __init__(
        self,
        signature_verifier: SignatureVerifier = verify_signature,
        clock: Optional[Clock] = None,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
    ):
        if window_seconds < 0:
            raise ValueError("window_seconds must be non-negative")
        self.signature_verifier = signature_verifier
        self.clock = clock or unix_now
        self.window_seconds = window_seconds

    def issue_challenge(self, address: str) -> str:
        return f"{address}:{self.clock()}:{CHALLENGE_SUFFIX}"

    def verify(self, address: str, message: str, signature: str) -> None:
        """
        Accept or reject a signed challenge. Returns None on success,
        raises a VerificationError subclass otherwise.
        """
        claimed_address, issued = parse_challenge(message)
        if claimed_address != address:
            raise MalformedMessage("Challenge was issued for a different address")

        elapsed = self.clock() - issued
        if elapsed < 0:
            raise MalformedMessage("Challenge issuance time is in the future")
        if elapsed > self.window_seconds:
            raise ChallengeExpired(elapsed, self.window_seconds)

        try:
            verified = self.signature_verifier(message, address, signature)
        except Exception as e:
            logger.debug("Signature primitive raised for %s: %s", address, e)
            raise SignatureInvalid(f"Signature could not be verified: {e}") from e
        if not verified:
            raise SignatureInvalid("Signature does not match address")
