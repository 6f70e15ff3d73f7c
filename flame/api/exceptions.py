"""API error codes and the exception type the handlers render.

Transfer engine errors are translated here so routers never build responses
for failures themselves.
"""

from enum import Enum
from typing import Any

from flame.transfer.exceptions import (
    InvalidFormatError,
    MalformedInputError,
    MissingDataError,
    TransactionFailureError,
    TransferError,
)


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Client errors (4xx)
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_DATA = "MISSING_DATA"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Server errors (5xx)
    TRANSACTION_FAILED = "TRANSACTION_FAILED"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


_TRANSFER_ERRORS: dict[type[TransferError], tuple[ErrorCode, int]] = {
    InvalidFormatError: (ErrorCode.INVALID_FORMAT, 400),
    MissingDataError: (ErrorCode.MISSING_DATA, 400),
    MalformedInputError: (ErrorCode.MALFORMED_INPUT, 400),
    TransactionFailureError: (ErrorCode.TRANSACTION_FAILED, 500),
}


def from_transfer_error(exc: TransferError) -> APIException:
    """Translate an engine error into the API error it is reported as."""
    error_code, status_code = _TRANSFER_ERRORS.get(type(exc), (ErrorCode.INTERNAL_ERROR, 500))
    return APIException(
        message=exc.message,
        error_code=error_code,
        status_code=status_code,
        details=exc.details,
    )
