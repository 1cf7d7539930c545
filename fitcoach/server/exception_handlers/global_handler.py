"""
Exception Handlers for the FastAPI Application.

``fitcoach_error_handler`` renders domain errors raised by the service layer
as localized JSON with the status code the error carries.
``global_exception_handler`` catches everything else, logs it with an error ID
and the request context, and answers 500.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fitcoach.core.error_messages import get_error_message
from fitcoach.core.errors import AccessDeniedError, FitcoachError
from fitcoach.core.logging_config import get_logger
from fitcoach.core.monitoring import log_error

logger = get_logger(__name__)


async def fitcoach_error_handler(request: Request, exc: FitcoachError) -> JSONResponse:
    """
    Render a domain error.

    The body carries the error code, the localized message fields and the
    developer-facing ``detail``. Guard failures add ``redirect_to``.

    Args:
        request: The HTTP request that raised the error
        exc: The domain error

    Returns:
        JSONResponse with the error's status code
    """
    message = get_error_message(exc.code)
    content = {
        "error": exc.code,
        "title": message.title,
        "description": message.description,
        "action": message.action,
        "severity": message.severity,
        "detail": exc.message,
    }
    if isinstance(exc, AccessDeniedError):
        content["redirect_to"] = exc.redirect_to

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "status_code": exc.status_code, "details": exc.details},
    )
    if exc.status_code >= 500:
        log_error(type(exc).__name__, exc.message, {"path": request.url.path, "code": exc.code})

    return JSONResponse(status_code=exc.status_code, content=content)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    message = get_error_message("SYSTEM_ERROR")
    return JSONResponse(
        status_code=500,
        content={
            "error": "SYSTEM_ERROR",
            "title": message.title,
            "description": message.description,
            "action": message.action,
            "severity": message.severity,
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(FitcoachError, fitcoach_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
