"""
Error codes and the JSON error envelope returned by every Signet endpoint.

Each code belongs to one category prefix (AUTH, VAL, RES, SIGN, NOTIFY, RATE,
DB, INT) and maps to exactly one HTTP status.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    # Owner authentication
    AUTH_REQUIRED = "AUTH_1001"
    AUTH_INVALID_TOKEN = "AUTH_1002"
    AUTH_EXPIRED_TOKEN = "AUTH_1003"
    AUTH_FORBIDDEN = "AUTH_1004"
    AUTH_USER_NOT_FOUND = "AUTH_1005"

    # Request validation
    VALIDATION_ERROR = "VAL_2001"
    PAYLOAD_TOO_LARGE = "VAL_2005"

    # Owner resources
    RESOURCE_NOT_FOUND = "RES_3001"
    DOCUMENT_NOT_FOUND = "RES_3010"

    # Public signing flow
    SIGNING_LINK_INVALID = "SIGN_4001"
    SIGNING_NO_VALID_FIELDS = "SIGN_4002"

    # Signing notifications
    NOTIFY_NO_LINKS = "NOTIFY_5001"
    NOTIFY_NO_RECIPIENTS = "NOTIFY_5002"

    RATE_LIMITED = "RATE_6001"
    DATABASE_ERROR = "DB_8001"
    INTERNAL_ERROR = "INT_9001"
    INTERNAL_UNEXPECTED = "INT_9999"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self, 500)


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.AUTH_REQUIRED: 401,
    ErrorCode.AUTH_INVALID_TOKEN: 401,
    ErrorCode.AUTH_EXPIRED_TOKEN: 401,
    ErrorCode.AUTH_USER_NOT_FOUND: 401,
    ErrorCode.AUTH_FORBIDDEN: 403,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.SIGNING_NO_VALID_FIELDS: 422,
    ErrorCode.NOTIFY_NO_RECIPIENTS: 422,
    ErrorCode.PAYLOAD_TOO_LARGE: 413,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.DOCUMENT_NOT_FOUND: 404,
    # Unknown, expired and completed tokens all look like a missing page
    ErrorCode.SIGNING_LINK_INVALID: 404,
    ErrorCode.NOTIFY_NO_LINKS: 404,
    ErrorCode.RATE_LIMITED: 429,
}


class ErrorDetail(BaseModel):
    """One field-level problem, e.g. a submitted value that failed validation."""

    field: str | None = None
    message: str
    code: str | None = None
    # Never echoed back: submitted values may be personal data
    value: Any | None = Field(default=None, exclude=True)


class ErrorResponse(BaseModel):
    """Body of ``{"error": {...}}``.

    ``path`` is the raw request path. For public signing routes it contains
    the token, which the caller already holds; logs use the masked path.
    """

    code: ErrorCode
    message: str
    request_id: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    details: list[ErrorDetail] | None = None
    path: str | None = None
    debug: dict[str, Any] | None = Field(default=None, exclude=True)

    def to_dict(self, include_debug: bool = False) -> dict[str, Any]:
        body = self.model_dump(mode="json", exclude_none=True)
        if include_debug and self.debug:
            body["debug"] = self.debug
        return {"error": body}


__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
]
