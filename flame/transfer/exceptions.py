"""Errors raised by the transfer engine.

Everything except ``RecordError`` aborts the whole call; ``RecordError`` is
caught per record and ends up as a line in the import report.
"""

from __future__ import annotations

from typing import Any


class TransferError(Exception):
    """Base exception for import/export failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidFormatError(TransferError):
    """Raised when the format selector is not one of the supported formats."""

    def __init__(self, value: Any, allowed: tuple[str, ...]) -> None:
        quoted = " or ".join(f'"{item}"' for item in allowed)
        super().__init__(
            f"Invalid format {value!r}. Use {quoted}",
            details={"format": str(value), "allowed": list(allowed)},
        )


class MissingDataError(TransferError):
    """Raised when an import is requested without a payload."""

    def __init__(self) -> None:
        super().__init__("No data provided")


class MalformedInputError(TransferError):
    """Raised when the payload cannot be parsed into the expected shape."""


class RecordError(TransferError):
    """Raised when a single candidate record cannot be persisted."""


class TransactionFailureError(TransferError):
    """Raised when the import transaction cannot be completed and was rolled back."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(
            f"Import failed and was rolled back: {cause}",
            details={"cause": type(cause).__name__},
        )
        self.cause = cause
