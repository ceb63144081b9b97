"""
Error handling middleware with security-compliant error sanitization.

Every failure leaves the API as ``{"error": {code, message, path, method}}``
with secrets scrubbed from the message. Admin errors keep their flat
``{"error": message}`` body.
"""

import logging
import re
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import ATSError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'eyJ[\w-]+\.[\w-]+\.[\w-]+'),  # bare JWT
]


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception) -> dict[str, Any]:
    """Type, scrubbed message and traceback; only returned in debug mode."""
    return {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
        "traceback": traceback.format_exc(),
    }


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into ``{field, message, type}`` entries."""
    errors = []
    for error in exc.errors():
        entry = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        value = error.get("input")
        if isinstance(value, (str, int, float, bool)) and not any(
            pattern.search(str(value)) for pattern in SENSITIVE_PATTERNS
        ):
            entry["input"] = value
        errors.append(entry)
    return errors


@dataclass
class ErrorInfo:
    status_code: int
    code: str
    message: str
    details: Optional[Any] = None
    envelope: bool = True


def classify_exception(exc: Exception, debug: bool = False) -> ErrorInfo:
    """
    Map an exception to the HTTP error the client sees.

    Domain errors carry their own status; infrastructure errors get a
    generic message so driver output never reaches the client.
    """
    if isinstance(exc, ATSError):
        return ErrorInfo(
            exc.status_code, exc.code, sanitize_error_message(exc.message),
            envelope=exc.envelope,
        )

    if isinstance(exc, StarletteHTTPException):
        return ErrorInfo(exc.status_code, "HTTP_EXCEPTION", sanitize_error_message(exc.detail))

    if isinstance(exc, RequestValidationError):
        return ErrorInfo(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            format_validation_errors(exc),
        )

    debug_details = get_safe_error_details(exc) if debug else None

    if isinstance(exc, IntegrityError):
        return ErrorInfo(
            status.HTTP_409_CONFLICT, "INTEGRITY_ERROR",
            "Database integrity constraint violated", debug_details,
        )
    if isinstance(exc, OperationalError):
        return ErrorInfo(
            status.HTTP_503_SERVICE_UNAVAILABLE, "DATABASE_ERROR",
            "Database service temporarily unavailable",
        )
    if isinstance(exc, SQLAlchemyError):
        return ErrorInfo(500, "DATABASE_ERROR", "A database error occurred", debug_details)
    if isinstance(exc, RedisConnectionError):
        return ErrorInfo(
            status.HTTP_503_SERVICE_UNAVAILABLE, "CACHE_ERROR",
            "Cache service temporarily unavailable",
        )
    if isinstance(exc, RedisError):
        return ErrorInfo(500, "CACHE_ERROR", "A cache error occurred", debug_details)
    if isinstance(exc, ValueError):
        return ErrorInfo(
            status.HTTP_400_BAD_REQUEST, "INVALID_INPUT",
            sanitize_error_message(str(exc)) or "Invalid input provided",
        )
    if isinstance(exc, PermissionError):
        return ErrorInfo(
            status.HTTP_403_FORBIDDEN, "PERMISSION_DENIED",
            "You don't have permission to perform this action",
        )
    if isinstance(exc, TimeoutError):
        return ErrorInfo(status.HTTP_504_GATEWAY_TIMEOUT, "TIMEOUT", "The request timed out")

    return ErrorInfo(500, "INTERNAL_SERVER_ERROR", "An unexpected error occurred", debug_details)


def build_error_response(
    info: ErrorInfo, path: str, method: str, request_id: Optional[str] = None
) -> JSONResponse:
    if not info.envelope:
        return JSONResponse(status_code=info.status_code, content={"error": info.message})

    body: dict[str, Any] = {
        "code": info.code,
        "message": info.message,
        "path": path,
        "method": method,
    }
    if info.details is not None:
        body["details"] = info.details
    if request_id:
        body["request_id"] = request_id
    return JSONResponse(status_code=info.status_code, content={"error": body})


def _log(info: ErrorInfo, exc: Exception, method: str, path: str) -> None:
    summary = f"{info.code}: {method} {path} - {info.message}"
    if info.status_code >= 500:
        logger.error(
            f"{summary} ({type(exc).__name__}: {sanitize_error_message(str(exc))})",
            exc_info=True,
        )
    else:
        logger.warning(summary)


class ErrorHandlingMiddleware:
    """
    Outermost safety net for exceptions that escape the route handlers.

    Handlers registered by ``setup_error_handlers`` catch most errors first;
    this middleware catches what is raised in other middleware.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        path = scope.get("path", "unknown")
        method = scope.get("method", "unknown")

        info = classify_exception(exc, debug=self.debug)
        _log(info, exc, method, path)

        request_id = None
        for name, value in scope.get("headers", []):
            if name == b"x-request-id":
                request_id = value.decode()

        return build_error_response(info, path, method, request_id)


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        info = classify_exception(exc, debug=getattr(app, "debug", False))
        _log(info, exc, request.method, request.url.path)
        return build_error_response(
            info,
            str(request.url.path),
            request.method,
            getattr(request.state, "request_id", None),
        )

    app.add_exception_handler(ATSError, handle)
    app.add_exception_handler(StarletteHTTPException, handle)
    app.add_exception_handler(RequestValidationError, handle)
    app.add_exception_handler(SQLAlchemyError, handle)
    app.add_exception_handler(Exception, handle)
