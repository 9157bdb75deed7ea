"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses map to an HTTP status by failure kind
- Unexpected Exception -> generic 500 (safety net, no details leaked)
- All responses include request_id for tracing
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from request_guard.core.errors import AppError, FailureKind
from request_guard.core.logging import get_request_id

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    FailureKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    FailureKind.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    FailureKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    FailureKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Response body: ``{"error": {"code", "message", "request_id", "details"?}}``.
    Errors without a specific kind are treated as client errors (400).
    """
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "failure_kind": exc.kind.value,
            "status_code": status_code,
            "has_details": bool(exc.details),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(status_code=status_code, content={"error": error_content})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging while returning a generic message, so no
    stack trace or internal message reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Specific handlers are registered before the general fallback.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
