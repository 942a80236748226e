"""Response headers for a JSON-only API that also serves public signing links.

Signing URLs carry bearer tokens and their bodies carry document content, so
those responses are never cached and never leak through Referer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from core.constants import SIGNING_PATH, get_settings

ONE_YEAR = 365 * 24 * 60 * 60

STATIC_HEADERS: dict[str, str] = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Permissions-Policy": "camera=(), geolocation=(), microphone=(), payment=(), usb=()",
}

SIGNING_HEADERS: dict[str, str] = {"Cache-Control": "no-store", "Referrer-Policy": "no-referrer"}
OWNER_HEADERS: dict[str, str] = {"Referrer-Policy": "strict-origin-when-cross-origin"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp security headers on every response.

    HSTS follows ``is_production`` unless ``enable_hsts`` is given, so local
    development over plain HTTP keeps working.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        hsts_max_age: int = ONE_YEAR,
        enable_hsts: bool | None = None,
    ) -> None:
        super().__init__(app)
        self._hsts = f"max-age={hsts_max_age}"
        self._enable_hsts = get_settings().is_production if enable_hsts is None else enable_hsts
        self._signing_prefix = f"/api/v1/{SIGNING_PATH}/"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        headers = dict(STATIC_HEADERS)
        headers.update(SIGNING_HEADERS if request.url.path.startswith(self._signing_prefix) else OWNER_HEADERS)
        if self._enable_hsts:
            headers["Strict-Transport-Security"] = self._hsts
        response.headers.update(headers)
        return response
