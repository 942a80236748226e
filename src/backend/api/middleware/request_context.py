"""
Per-request context carried in a ContextVar.

Anything that logs during a request (services, exception handlers, the
rate limiter) picks up the request id, the masked path and, once known, the
owner and document ids without threading them through call signatures.
"""

from __future__ import annotations

import secrets
import time

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from core.constants import LOG_TOKEN_PREFIX_LENGTH

REQUEST_ID_PREFIX = "req_"
REQUEST_ID_HEADER = "X-Request-ID"

_SIGNING_MARKER = "/sign/"

_current: ContextVar[RequestContext | None] = ContextVar("signet_request_context", default=None)


@dataclass
class RequestContext:
    request_id: str
    start_time: float = field(default_factory=time.monotonic)
    path: str = ""
    method: str = ""
    client_ip: str | None = None
    user_id: str | None = None
    document_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000

    def to_log_context(self) -> dict[str, Any]:
        """Fields merged into every log record; unset ids are left out."""
        fields: dict[str, Any] = {
            "request_id": self.request_id,
            "path": self.path,
            "method": self.method,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }
        for name in ("client_ip", "user_id", "document_id"):
            value = getattr(self, name)
            if value:
                fields[name] = value
        fields.update(self.extra)
        return fields


def generate_request_id() -> str:
    """``req_`` plus 16 hex characters."""
    return f"{REQUEST_ID_PREFIX}{secrets.token_hex(8)}"


def get_request_context() -> RequestContext | None:
    return _current.get()


def get_request_id() -> str | None:
    ctx = _current.get()
    return ctx.request_id if ctx else None


def set_request_context(context: RequestContext) -> None:
    _current.set(context)


def clear_request_context() -> None:
    _current.set(None)


def update_request_context(**fields: Any) -> None:
    """Set known attributes (``user_id``, ``document_id``); anything else goes to ``extra``.

    Outside a request this does nothing.
    """
    ctx = _current.get()
    if ctx is None:
        return
    for key, value in fields.items():
        if key in ("request_id", "start_time", "extra") or not hasattr(ctx, key):
            ctx.extra[key] = value
        else:
            setattr(ctx, key, value)


def loggable_path(path: str) -> str:
    """``/api/v1/sign/0123456789abcdef/view`` -> ``/api/v1/sign/012345.../view``."""
    head, marker, tail = path.partition(_SIGNING_MARKER)
    if not marker:
        return path
    token, sep, rest = tail.partition("/")
    return f"{head}{marker}{token[:LOG_TOKEN_PREFIX_LENGTH]}...{sep}{rest}"


def extract_document_id(path: str) -> str | None:
    """Segment after ``documents`` in owner routes such as /api/v1/documents/{id}/fields."""
    parts = [p for p in path.split("/") if p]
    if "documents" in parts:
        idx = parts.index("documents")
        if idx + 1 < len(parts):
            return parts[idx + 1]
    return None


def client_address(request: Request) -> str:
    """First X-Forwarded-For hop behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Opens the context and stamps X-Request-ID and X-Response-Time on the response.

    An incoming X-Request-ID is kept so ids line up with the caller's logs.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        context = RequestContext(
            request_id=request.headers.get(REQUEST_ID_HEADER) or generate_request_id(),
            path=loggable_path(path),
            method=request.method,
            client_ip=client_address(request),
            document_id=extract_document_id(path),
        )
        set_request_context(context)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = context.request_id
            response.headers["X-Response-Time"] = f"{context.elapsed_ms:.2f}ms"
            return response
        finally:
            clear_request_context()


__all__ = [
    "REQUEST_ID_PREFIX",
    "RequestContext",
    "RequestContextMiddleware",
    "clear_request_context",
    "client_address",
    "extract_document_id",
    "generate_request_id",
    "get_request_context",
    "get_request_id",
    "loggable_path",
    "set_request_context",
    "update_request_context",
]
