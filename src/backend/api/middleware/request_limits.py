"""Reject oversized bodies from their Content-Length before reading them.

Document creation carries the document body and gets the larger limit;
every other write gets ``max_request_body_size``. Chunked requests without
Content-Length are left to body parsing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from api.middleware.request_context import get_request_id, loggable_path
from core.constants import get_settings
from models.error_models import ErrorCode, ErrorResponse
from utils.logger import logger

BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "DELETE"})
DOCUMENTS_PATH = "/api/v1/documents"


def _is_document_upload(request: Request) -> bool:
    return request.method == "POST" and request.url.path.rstrip("/") == DOCUMENTS_PATH


def _declared_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    return int(value) if value and value.isdigit() else None


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: Callable[..., Any],
        max_body_size: int | None = None,
        max_document_size: int | None = None,
    ) -> None:
        super().__init__(app)
        settings = get_settings()
        self._max_body_size = max_body_size or settings.max_request_body_size
        self._max_document_size = max_document_size or settings.max_document_body_size

    def limit_for(self, request: Request) -> int:
        return self._max_document_size if _is_document_upload(request) else self._max_body_size

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method in BODYLESS_METHODS:
            return await call_next(request)

        size = _declared_length(request)
        limit = self.limit_for(request)
        if size is None or size <= limit:
            return await call_next(request)

        logger.warning(f"Rejected {size}-byte body over {limit}-byte limit on {loggable_path(request.url.path)}")
        code = ErrorCode.PAYLOAD_TOO_LARGE
        error = ErrorResponse(
            code=code,
            message=f"Request body exceeds maximum size of {limit} bytes",
            request_id=get_request_id(),
            path=request.url.path,
        )
        return JSONResponse(status_code=code.http_status, content=error.to_dict())
