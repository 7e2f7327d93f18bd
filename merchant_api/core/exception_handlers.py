"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- RateLimitExceededError → 429 with the throttling body and headers
- Other AppError subclasses → appropriate HTTP status (400, 502)
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from merchant_api.core.config import settings
from merchant_api.core.errors import AppError, DirectoryAppError, RateLimitExceededError
from merchant_api.core.logging import get_request_id
from merchant_api.core.rate_limit import build_rate_limit_headers

logger = logging.getLogger(__name__)


async def rate_limit_error_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """Render a throttled request as HTTP 429.

    The body never suggests the protected action was attempted; it only says
    how long to wait.

    Args:
        request: FastAPI request object.
        exc: Raised by the rate limit boundary with the combined decision.

    Returns:
        JSONResponse with ``{error, message, retryAfter}`` and rate limit headers.
    """
    retry_after = exc.decision.retry_after_seconds or 0
    headers = None
    if settings.app.rate_limit_include_headers:
        headers = build_rate_limit_headers(exc.decision)

    return JSONResponse(
        status_code=429,
        content={
            "error": exc.notice.error,
            "message": exc.message,
            "retryAfter": retry_after,
        },
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError → 400 Bad Request (client fault)
    - DirectoryAppError → 502 Bad Gateway (upstream fault)

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = 400
    if isinstance(exc, DirectoryAppError):
        status_code = 502

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    No stack traces or exception text reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Starlette resolves handlers by the exception's MRO, so the rate limit
    handler wins over the generic AppError one.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(RateLimitExceededError)(rate_limit_error_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
