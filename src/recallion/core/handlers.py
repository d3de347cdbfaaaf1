"""Error handlers for the FastAPI application"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from recallion.core.logging import get_logger

from .base import ApplicationError, ErrorLevel
from .error_context import ErrorContext
from .errors import UpstreamError

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "An error occurred"


def user_message_for(error: ApplicationError) -> str:
    """User-facing notice for an error.

    Rate limit and billing failures carry their own notices; every other
    upstream failure collapses to one generic message.
    """
    if isinstance(error, UpstreamError):
        return error.user_message
    return error.message


def format_error(error_context: ErrorContext) -> dict[str, Any]:
    """Format error response"""
    error = error_context.error
    response: dict[str, Any] = {
        "error": GENERIC_FAILURE_MESSAGE,
        "trace_id": error_context.trace_id,
        "timestamp": error_context.timestamp.isoformat(),
    }

    if isinstance(error, ApplicationError):
        response["error"] = user_message_for(error)
        response["error_code"] = error.code.value
        response["level"] = error.level.value

    return response


async def handle_application_error(_request: Request, error: Exception) -> JSONResponse:
    """Map an ``ApplicationError`` to its HTTP status and a structured body"""
    if not isinstance(error, ApplicationError):
        return await handle_unexpected_error(_request, error)
    error_context = ErrorContext(error)
    status_code = getattr(error, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)

    log_level = ErrorLevel.WARNING if status_code < status.HTTP_500_INTERNAL_SERVER_ERROR else error.level
    logger.log(log_level.to_logging_level(), "Request failed", status_code=status_code, **error_context.to_dict())

    return JSONResponse(status_code=status_code, content=format_error(error_context))


async def handle_unexpected_error(_request: Request, error: Exception) -> JSONResponse:
    """Last-resort handler; never leaks internal messages to the caller"""
    error_context = ErrorContext(error)
    logger.error("Unhandled error", exc_info=error, **error_context.to_dict())
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=format_error(error_context),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, handle_application_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
