"""
Error taxonomy and the handlers that render every failure as
{"success": false, "message": ..., "errors": ...}.
Routers raise these; anything else becomes a generic 500.
"""
import logging
import traceback
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """HTTPException with a fixed default message and an optional `errors` payload."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Internal Server Error"

    def __init__(self, message: str | None = None, errors: Any = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
            headers=headers,
        )
        self.errors = errors


class AuthenticationRequired(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Authentication required."

    def __init__(self, message: str | None = None, errors: Any = None):
        super().__init__(message, errors, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code_default = status.HTTP_403_FORBIDDEN
    message_default = "You do not have permission to perform this action."


class NotFound(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Resource not found"


class ValidationFailed(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Validation failed"


class Conflict(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Resource already exists"


class UploadRejected(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Upload failed. Only video files (mp4, avi, mov, wmv, flv, mkv) up to 100MB are allowed."


def error_body(message: str, errors: Any = None, stack: str | None = None) -> dict:
    body: dict[str, Any] = {"success": False, "message": message, "errors": errors}
    if stack is not None:
        body["stack"] = stack
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    errors = getattr(exc, "errors", None)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if not isinstance(exc.detail, str) and errors is None:
        errors = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, errors),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    stack = None
    if not get_settings().is_production:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal Server Error", stack=stack),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
