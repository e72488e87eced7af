"""
Vesting Claim Errors

Every rejection raised by the claim engine is one of the exception classes
below. Each carries a stable ``code`` so callers (CLI, REST API, tests) can
match on the exact kind instead of parsing messages.
"""


class VestingError(Exception):
    """Base class for all claim-engine rejections."""

    code = "VESTING_ERROR"
    default_message = "Vesting operation rejected"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class CliffNotElapsed(VestingError):
    """Raised when a claim is attempted before its unlock gate."""

    code = "CLIFF_NOT_ELAPSED"
    default_message = "Cliff period didn't end"


class InsufficientAmount(VestingError):
    """Raised when the requested amount exceeds the committed amount."""

    code = "INSUFFICIENT_AMOUNT"
    default_message = "Insufficient amount"


class InvalidProof(VestingError):
    """Raised when a Merkle proof does not reach the trusted root."""

    code = "INVALID_PROOF"
    default_message = "Invalid proof"


class InvalidSignature(VestingError):
    """Raised when a claim signature was not produced by the admin signer."""

    code = "INVALID_SIGNATURE"
    default_message = "Invalid signature"


class AlreadyClaimed(VestingError):
    """Raised when the claimant has already been settled."""

    code = "ALREADY_CLAIMED"
    default_message = "Already claimed"


class Unauthorized(VestingError):
    """Raised when an administrative entry point is called by a non-owner."""

    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class TransferError(VestingError):
    """Raised when the token collaborator fails to deliver a transfer."""

    code = "TRANSFER_FAILED"
    default_message = "Transfer failed"
