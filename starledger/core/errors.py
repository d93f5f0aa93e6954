# starledger/core/errors.py
"""
Exception taxonomy for the ledger.

Verification and append failures are raised; chain validation problems are
reported as records (see starledger.verify.integrity) and never raised.
"""

from typing import List


class LedgerError(Exception):
    """Base class for every error raised by starledger."""


class DecodeError(LedgerError):
    """A block payload or persisted record does not have the expected shape."""


# ── ownership verification


class VerificationError(LedgerError):
    """A signed challenge response was rejected."""


class MalformedMessage(VerificationError):
    pass


class ChallengeExpired(VerificationError):
    def __init__(self, elapsed: int, window: int):
        super().__init__(f"Challenge expired: {elapsed}s elapsed, limit is {window}s")
        self.elapsed = elapsed
        self.window = window


class SignatureInvalid(VerificationError):
    pass


# ── chain mutation


class AppendError(LedgerError):
    """An append was refused; the chain is left unmodified."""


class ChainCorrupted(AppendError):
    def __init__(self, errors: List):
        self.errors = list(errors)
        super().__init__(f"Chain is corrupted ({len(self.errors)} issues), refusing to append")


class PersistenceFailed(AppendError):
    """The storage backend could not record the sealed block."""


# ── service surface


class SubmitError(LedgerError):
    """User-visible failure of a star submission."""


class VerificationFailed(SubmitError):
    def __init__(self, reason: VerificationError):
        super().__init__(f"Ownership verification failed: {reason}")
        self.reason = reason


class ChainError(SubmitError):
    def __init__(self, cause: AppendError):
        super().__init__(f"Ledger rejected the block: {cause}")
        self.cause = cause


class InvalidStar(SubmitError):
    """The star payload cannot be encoded as canonical JSON."""
