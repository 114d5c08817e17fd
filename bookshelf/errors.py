"""
Error taxonomy and JSON error responses.

Every error leaves the service as ``{"message": ..., "error_code": ...}``.
Storage and driver details are logged, never returned to the client.
"""

import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class BookshelfError(Exception):
    """Base exception for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str = None, status_code: int = None, headers: dict = None):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(message)


class ValidationError(BookshelfError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class MissingFields(ValidationError):
    error_code = "MISSING_FIELDS"

    def __init__(self, message: str = "Please fill all required fields"):
        super().__init__(message)


class UsernameTaken(ValidationError):
    error_code = "USERNAME_TAKEN"

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username is already taken")


class AuthenticationError(BookshelfError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_ERROR"


class InvalidCredentials(AuthenticationError):
    """Bad username or password.

    ``reason`` tells "user_not_found" from "password_mismatch" for the logs;
    the client only ever sees the single generic message.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_CREDENTIALS"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__("Invalid username or password")


class AuthorizationError(BookshelfError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class NotFoundError(BookshelfError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class InternalError(BookshelfError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"


def create_error_response(message: str, error_code: str, status_code: int, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "error_code": error_code},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # messages raised by our own validators are passed through verbatim
    ctx_error = (first.get("ctx") or {}).get("error")
    if first.get("type") == "value_error" and ctx_error is not None:
        return str(ctx_error)
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"Invalid value for '{location}': {first.get('msg')}"
    return str(first.get("msg"))


def setup_exception_handlers(app):
    """Register exception handlers with the FastAPI app."""

    @app.exception_handler(BookshelfError)
    async def bookshelf_exception_handler(request: Request, exc: BookshelfError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.error_code} - {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.error_code} - {exc.message}")
        return create_error_response(exc.message, exc.error_code, exc.status_code, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.info(f"{request.method} {request.url.path} invalid payload: {message}")
        return create_error_response(message, ValidationError.error_code, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return create_error_response("API endpoint not found", NotFoundError.error_code, exc.status_code)
        return create_error_response(str(exc.detail), "HTTP_ERROR", exc.status_code, getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
        )
        return create_error_response(
            "Internal server error",
            InternalError.error_code,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
