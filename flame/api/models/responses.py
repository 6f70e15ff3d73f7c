"""
Response envelopes for the transfer API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from flame.api.context import correlation_id_ctx
from flame.transfer.records import ImportResult


class ErrorResponse(BaseModel):
    """Top-level failure: one message, no partial report."""

    success: bool = False
    error: str
    code: str
    details: dict[str, Any] | None = None
    correlation_id: str | None = None


def import_response(result: ImportResult) -> dict[str, Any]:
    """Render an import report as ``{success, imported, skipped, errors}``."""
    return result.model_dump()


def error_response(
    message: str,
    code: str,
    *,
    details: dict[str, Any] | None = None,
    correlation_id: str | None = None,
) -> dict[str, Any]:
    """Helper to build the standard error envelope."""
    return ErrorResponse(
        error=message,
        code=code,
        details=details or None,
        correlation_id=correlation_id or correlation_id_ctx.get(),
    ).model_dump(exclude_none=True)
