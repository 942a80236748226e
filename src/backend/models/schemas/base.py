"""Response pieces shared by owner endpoints.

Failures never use these; they answer with the ``{"error": {...}}`` envelope
from models.error_models.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT


class PaginationMeta(BaseModel):
    """Offset/limit window of a list response."""

    total_count: int = Field(ge=0, examples=[42])
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)
    has_more: bool = Field(description="True when items exist past offset + limit")


class SuccessResponse(BaseModel):
    """Acknowledgement for actions with nothing else to return, such as deletes."""

    success: bool = True
    message: str | None = Field(default=None, examples=["Document deleted successfully"])
