"""Custom exceptions for SplitLedger."""

from enum import StrEnum

from pydantic import BaseModel


class ErrorKind(StrEnum):
    """Machine-readable category attached to every SplitLedger error."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_SPLIT = "invalid_split"
    SPLIT_CONSERVATION = "split_conservation"
    UNKNOWN_SPLIT_TYPE = "unknown_split_type"
    INVARIANT_VIOLATION = "invariant_violation"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class ErrorDetail(BaseModel):
    """Error value handed back across the request boundary."""

    kind: ErrorKind
    message: str
    status_code: int


class SplitLedgerError(Exception):
    """Base exception for all SplitLedger errors."""

    kind: ErrorKind = ErrorKind.VALIDATION
    status_code: int = 400

    def to_detail(self) -> ErrorDetail:
        """Convert the exception into an error-return value."""
        return ErrorDetail(kind=self.kind, message=str(self), status_code=self.status_code)


class ConfigurationError(SplitLedgerError):
    """Raised when configuration is invalid or missing."""

    kind = ErrorKind.CONFIGURATION
    status_code = 500


class ValidationError(SplitLedgerError):
    """Raised when a request has a bad shape, a missing field or a non-member."""

    pass


class NotFoundError(SplitLedgerError):
    """Raised when a referenced user or group does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, entity_id: str, message: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} not found: {entity_id}")


class InvalidSplitError(ValidationError):
    """Raised when participant input cannot be turned into a split."""

    kind = ErrorKind.INVALID_SPLIT


class SplitConservationError(InvalidSplitError):
    """Raised when split amounts or percentages don't add up to the total."""

    kind = ErrorKind.SPLIT_CONSERVATION


class UnknownSplitTypeError(InvalidSplitError):
    """Raised for a split type other than EQUAL, EXACT or PERCENT."""

    kind = ErrorKind.UNKNOWN_SPLIT_TYPE

    def __init__(self, split_type: object):
        self.split_type = split_type
        super().__init__(f"Unknown split type: {split_type}")


class InvariantViolation(SplitLedgerError):
    """Raised when ledger conservation is broken.

    This never happens for validated input; it signals a programming error
    upstream rather than a user mistake.
    """

    kind = ErrorKind.INVARIANT_VIOLATION
    status_code = 500
