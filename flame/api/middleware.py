"""Request tracing for the transfer API."""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from flame.api.context import correlation_id_ctx
from flame.core.logging_utils import generate_correlation_id, get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


async def correlation_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag the request with the caller's correlation id, or a fresh ``api-`` one.

    The id is echoed back in the response header and visible to handlers
    through ``request.state`` and ``correlation_id_ctx``.
    """
    correlation_id = request.headers.get(CORRELATION_HEADER) or f"api-{generate_correlation_id()}"
    request.state.correlation_id = correlation_id
    token = correlation_id_ctx.set(correlation_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        correlation_id_ctx.reset(token)

    response.headers[CORRELATION_HEADER] = correlation_id
    logger.info(
        "request_completed",
        extra={
            "correlation_id": correlation_id,
            "route": f"{request.method} {request.url.path}",
            "status_code": response.status_code,
            "latency_ms": round((time.perf_counter() - started) * 1000),
        },
    )
    return response
