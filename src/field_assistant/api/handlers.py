"""Global exception handlers for FastAPI.

Every error leaves the service as ``{"error", "code", "request_id"}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .exceptions import INVALID_JSON_MESSAGE, APIError
from .schemas import ErrorResponse

logger = structlog.get_logger()


def error_response(
    request: Request,
    status_code: int,
    error: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render an ``ErrorResponse`` tagged with the current request id.

    Args:
        request: Request being answered
        status_code: HTTP status
        error: Message shown to the client
        code: Machine-readable error code
        headers: Extra response headers

    Returns:
        JSON response without unset fields
    """
    body = ErrorResponse(
        error=error,
        code=code,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    logger.warning(
        "api_error",
        code=exc.code,
        status_code=exc.status_code,
        message=exc.message,
    )
    return error_response(request, exc.status_code, exc.message, exc.code)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("http_error", status_code=exc.status_code, detail=exc.detail)
    return error_response(
        request,
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=exc.headers,
    )


async def handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report framework-level validation failures like malformed chat bodies."""
    logger.warning("validation_error", error_count=len(exc.errors()))
    return error_response(request, 400, INVALID_JSON_MESSAGE, "INVALID_REQUEST")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, expose nothing."""
    logger.exception("unhandled_error", error_type=type(exc).__name__)
    return error_response(request, 500, "Internal server error", "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
