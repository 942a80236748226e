"""
Exception types and global handlers for Signet API.

Every failure leaves the API as the same ``{"error": {...}}`` envelope. The
public signing routes are the sensitive case: an unusable token always
produces one fixed message so a caller never learns why a link failed.
"""

from __future__ import annotations

import traceback

from collections.abc import Iterable
from typing import Any

import asyncpg

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.middleware.request_context import get_request_context, get_request_id, loggable_path
from core.constants import get_settings
from models.error_models import ErrorCode, ErrorDetail, ErrorResponse
from utils.logger import logger

SIGNING_LINK_INVALID_MESSAGE = "This signing link is invalid, expired, or already completed."

_HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.AUTH_FORBIDDEN,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    413: ErrorCode.PAYLOAD_TOO_LARGE,
    429: ErrorCode.RATE_LIMITED,
}


class AppException(Exception):
    """Business error that maps to a specific code and HTTP status."""

    def __init__(self, code: ErrorCode, message: str, details: list[ErrorDetail] | None = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return self.code.http_status


class AuthenticationError(AppException):
    """Owner request without a usable bearer token."""

    def __init__(self, message: str = "Authentication required", code: ErrorCode = ErrorCode.AUTH_REQUIRED):
        super().__init__(code=code, message=message)


class ResourceNotFoundError(AppException):
    def __init__(self, resource: str, resource_id: str | None = None, code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND):
        label = f"{resource} '{resource_id}'" if resource_id else resource
        super().__init__(code=code, message=f"{label} not found")


class DocumentNotFoundError(ResourceNotFoundError):
    """Missing document, or one that belongs to another owner."""

    def __init__(self, document_id: str):
        super().__init__("Document", document_id, code=ErrorCode.DOCUMENT_NOT_FOUND)


class SigningLinkInvalidError(AppException):
    """Unknown, expired or completed signing token. Deliberately detail-free."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.SIGNING_LINK_INVALID, message=SIGNING_LINK_INVALID_MESSAGE)


class ValidationException(AppException):
    """Rejected input, with one ErrorDetail per offending field."""

    def __init__(
        self,
        message: str = "Validation error",
        errors: list[ErrorDetail] | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(code=code, message=message, details=errors or None)
        self.errors = errors or []


class NotificationError(AppException):
    """A signing notification batch could not be attempted at all."""

    def __init__(self, message: str, code: ErrorCode):
        super().__init__(code=code, message=message)


def _error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[ErrorDetail] | None = None,
    debug: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    include_debug = bool(get_settings().debug)
    body = ErrorResponse(
        code=code,
        message=message,
        request_id=get_request_id(),
        path=request.url.path,
        details=details,
        debug=debug if include_debug else None,
    )
    return JSONResponse(status_code=status_code, content=body.to_dict(include_debug=include_debug), headers=headers)


def _log_failure(request: Request, exc: Exception, code: ErrorCode, status_code: int) -> None:
    ctx = get_request_context()
    fields: dict[str, Any] = ctx.to_log_context() if ctx else {}
    fields.update(error_code=code.value, status_code=status_code, path=loggable_path(request.url.path))

    if status_code >= 500:
        logger.error(f"Server error: {code.value} - {exc}", exc_info=True, **fields)
    else:
        logger.warning(f"Client error: {code.value} - {exc}", **fields)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    _log_failure(request, exc, exc.code, exc.status_code)
    return _error_response(
        request,
        exc.status_code,
        exc.code,
        exc.message,
        details=exc.details,
        debug={"exception_type": type(exc).__name__},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown routes, wrong methods) in the envelope."""
    fallback = ErrorCode.VALIDATION_ERROR if exc.status_code < 500 else ErrorCode.INTERNAL_ERROR
    code = _HTTP_STATUS_CODES.get(exc.status_code, fallback)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    _log_failure(request, exc, code, exc.status_code)
    return _error_response(
        request,
        exc.status_code,
        code,
        message,
        debug={"original_status": exc.status_code},
        headers=getattr(exc, "headers", None),
    )


def _field_errors(errors: Iterable[Any]) -> list[ErrorDetail]:
    return [
        ErrorDetail(field=".".join(str(part) for part in err["loc"]), message=err["msg"], code=err["type"])
        for err in errors
    ]


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, paths and query strings."""
    _log_failure(request, exc, ErrorCode.VALIDATION_ERROR, 422)
    return _error_response(
        request, 422, ErrorCode.VALIDATION_ERROR, "Request validation failed", details=_field_errors(exc.errors())
    )


async def pydantic_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Model validation raised inside a handler or service."""
    _log_failure(request, exc, ErrorCode.VALIDATION_ERROR, 422)
    return _error_response(
        request, 422, ErrorCode.VALIDATION_ERROR, "Data validation failed", details=_field_errors(exc.errors())
    )


async def asyncpg_exception_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    _log_failure(request, exc, ErrorCode.DATABASE_ERROR, 500)
    return _error_response(
        request,
        500,
        ErrorCode.DATABASE_ERROR,
        "Database operation failed",
        debug={"sqlstate": getattr(exc, "sqlstate", None), "pg_error_class": type(exc).__name__},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    _log_failure(request, exc, ErrorCode.INTERNAL_UNEXPECTED, 500)
    return _error_response(
        request,
        500,
        ErrorCode.INTERNAL_UNEXPECTED,
        "An unexpected error occurred",
        debug={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": traceback.format_exc(),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers, most specific first."""
    # Starlette types handlers as taking Exception; the narrower signatures are fine at runtime
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, pydantic_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(asyncpg.PostgresError, asyncpg_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)


__all__ = [
    "SIGNING_LINK_INVALID_MESSAGE",
    "AppException",
    "AuthenticationError",
    "DocumentNotFoundError",
    "NotificationError",
    "ResourceNotFoundError",
    "SigningLinkInvalidError",
    "ValidationException",
    "register_exception_handlers",
]
