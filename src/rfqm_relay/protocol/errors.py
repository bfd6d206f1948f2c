"""Error taxonomy for the relay.

Every failure the relay can report is one of the classes below. Each carries
an ``ErrorKind`` so callers may dispatch on ``err.kind`` instead of
``isinstance`` chains. Lower-level causes are kept as ``__cause__``.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Enumerated relay failure kinds."""

    MALFORMED_CALL_DATA = "MALFORMED_CALL_DATA"
    CHAIN_REQUEST = "CHAIN_REQUEST"
    ESTIMATION_FAILED = "ESTIMATION_FAILED"
    CALL_REVERTED = "CALL_REVERTED"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INSUFFICIENT_FILL = "INSUFFICIENT_FILL"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    INVALID_INDEX = "INVALID_INDEX"


class RelayError(Exception):
    """Base class for all relay failures."""

    kind: ErrorKind


class MalformedCallData(RelayError, ValueError):
    """Raised when bytes do not match the expected ABI schema."""

    kind = ErrorKind.MALFORMED_CALL_DATA


class ChainRequestError(RelayError):
    """Raised when a request to the execution-layer node fails."""

    kind = ErrorKind.CHAIN_REQUEST

    def __init__(
        self,
        message: str,
        operation: str,
        subject: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.subject = subject


class EstimationFailed(ChainRequestError):
    """Raised when the node refuses to estimate gas (e.g. the call would revert)."""

    kind = ErrorKind.ESTIMATION_FAILED


class CallReverted(ChainRequestError):
    """Raised when a read-only simulation reverts."""

    kind = ErrorKind.CALL_REVERTED

    def __init__(
        self,
        message: str,
        operation: str,
        subject: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message, operation, subject)
        self.reason = reason


class SubmissionFailed(ChainRequestError):
    """Raised when the node rejects a transaction (nonce too low, no funds...)."""

    kind = ErrorKind.SUBMISSION_FAILED


class ValidationFailed(RelayError):
    """Raised when a meta-transaction could not be validated against the chain."""

    kind = ErrorKind.VALIDATION_FAILED


class InsufficientFill(RelayError):
    """Raised when the simulated fill is below the requested taker amount."""

    kind = ErrorKind.INSUFFICIENT_FILL

    def __init__(self, requested: int, filled: int) -> None:
        super().__init__(
            f"Filled amount {filled} is less than requested fill amount {requested}"
        )
        self.requested = requested
        self.filled = filled


class EventNotFound(RelayError, LookupError):
    """Raised when no RfqOrderFilled log is present."""

    kind = ErrorKind.EVENT_NOT_FOUND


class InvalidIndex(RelayError, ValueError):
    """Raised when a key derivation index is not a non-negative integer."""

    kind = ErrorKind.INVALID_INDEX
