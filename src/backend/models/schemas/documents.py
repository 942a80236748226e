"""
Document-related API schemas.

Provides request/response models for document and contract field operations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.constants import MAX_FIELD_VALUE_LENGTH
from models.schemas.base import PaginationMeta

# =============================================================================
# Request Models
# =============================================================================


class FieldDraft(BaseModel):
    """A fillable field to create alongside a document."""

    field_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Field name, unique per signer within the document",
        json_schema_extra={"example": "Full name"},
    )
    field_type: str = Field(
        default="text",
        max_length=50,
        description="Field type: text, email, date, signature, ...",
        json_schema_extra={"example": "text"},
    )
    placeholder_text: str | None = Field(
        default=None,
        max_length=500,
        description="Placeholder text shown in the document",
        json_schema_extra={"example": "[CLIENT NAME]"},
    )
    signer: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Signer reference; one contact is created per distinct value",
        json_schema_extra={"example": "Client"},
    )
    is_required: bool = Field(default=True, description="Whether the signer must fill this field")
    position_in_document: dict[str, Any] | None = Field(
        default=None,
        description="Where the placeholder sits in the document body",
        json_schema_extra={"example": {"start": 120, "end": 133}},
    )


class CreateDocumentRequest(BaseModel):
    """Request body for creating a new document."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Consulting Agreement",
                "content": "This agreement is made between [CLIENT NAME] and ...",
                "fields": [
                    {
                        "field_name": "Full name",
                        "field_type": "text",
                        "placeholder_text": "[CLIENT NAME]",
                        "signer": "Client",
                        "is_required": True,
                    }
                ],
            }
        }
    )

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Document title",
        json_schema_extra={"example": "Consulting Agreement"},
    )
    content: str | None = Field(
        default=None,
        description="Document body",
    )
    fields: list[FieldDraft] = Field(
        default_factory=list,
        description="Fillable fields to create with the document",
    )


# =============================================================================
# Response Models
# =============================================================================


class ContractFieldResponse(BaseModel):
    """Fillable field on a document."""

    id: str = Field(..., description="Field UUID")
    document_id: str = Field(..., description="Document UUID")
    contact_id: str = Field(..., description="Contact UUID of the assigned signer")
    field_name: str = Field(..., description="Field name")
    field_type: str = Field(default="text", description="Field type")
    field_value: str | None = Field(
        default=None,
        max_length=MAX_FIELD_VALUE_LENGTH,
        description="Submitted value",
    )
    placeholder_text: str | None = Field(default=None, description="Placeholder text")
    position_in_document: dict[str, Any] | None = Field(default=None, description="Placeholder position")
    is_required: bool = Field(default=True, description="Whether a value is required")
    is_filled: bool = Field(default=False, description="Whether a value has been submitted")


class DocumentResponse(BaseModel):
    """Document entity with its fields."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "title": "Consulting Agreement",
                "content": "This agreement is made between [CLIENT NAME] and ...",
                "field_count": 1,
                "fields": [],
                "created_at": "2026-01-01T10:00:00Z",
                "updated_at": "2026-01-01T12:00:00Z",
            }
        }
    )

    id: str = Field(..., description="Document UUID")
    title: str = Field(..., description="Document title")
    content: str | None = Field(default=None, description="Document body")
    field_count: int = Field(default=0, description="Number of fields on the document")
    fields: list[ContractFieldResponse] | None = Field(default=None, description="Fields (single-document views)")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")


class DocumentListResponse(BaseModel):
    """Paginated list of documents."""

    documents: list[DocumentResponse] = Field(..., description="Documents")
    pagination: PaginationMeta = Field(..., description="Pagination information")


class ContractFieldListResponse(BaseModel):
    """Response for listing a document's fields."""

    fields: list[ContractFieldResponse] = Field(default_factory=list, description="Fields, oldest first")
