"""Exception handlers for the transfer API.

Whatever goes wrong, the caller gets ``{success: false, error, code}`` and
the request's correlation id; never a partial import report.
"""

from typing import Any

import peewee
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from flame.api.exceptions import APIException, ErrorCode
from flame.api.models.responses import error_response
from flame.core.logging_utils import get_logger

logger = get_logger(__name__)


def _envelope(
    request: Request,
    status_code: int,
    message: str,
    code: ErrorCode,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(
            message,
            code.value,
            details=details,
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
    )


def _context(request: Request, **fields: Any) -> dict[str, Any]:
    return {
        "correlation_id": getattr(request.state, "correlation_id", None),
        "path": request.url.path,
        **fields,
    }


async def api_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, APIException):
        raise exc

    # client mistakes are expected traffic
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "api_error",
        extra=_context(
            request,
            error_code=exc.error_code.value,
            status_code=exc.status_code,
            error=exc.message,
        ),
    )
    return _envelope(request, exc.status_code, exc.message, exc.error_code, exc.details)


async def validation_exception_handler(request: Request, exc: Exception) -> Response:
    """Body did not match ``ImportRequest``; report every offending field."""
    if not isinstance(exc, RequestValidationError):
        raise exc

    fields = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("request_validation_failed", extra=_context(request, fields=fields))
    return _envelope(
        request,
        422,
        "Request validation failed",
        ErrorCode.VALIDATION_ERROR,
        {"fields": fields},
    )


async def database_exception_handler(request: Request, exc: Exception) -> Response:
    """Storage errors raised outside an import transaction."""
    logger.error("database_error", exc_info=exc, extra=_context(request))
    return _envelope(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable",
        ErrorCode.DATABASE_ERROR,
    )


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error("unhandled_exception", exc_info=exc, extra=_context(request))

    config = getattr(request.app.state, "config", None)
    debug = config is not None and config.runtime.log_level == "DEBUG"
    message = str(exc) if debug else "An internal server error occurred"
    return _envelope(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, ErrorCode.INTERNAL_ERROR
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(peewee.DatabaseError, database_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
