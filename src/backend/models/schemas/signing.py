"""
Signing workflow API schemas.

Owner-facing link management and the public token-gated signing endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.signing_models import SigningData, SigningLinkStatus

# =============================================================================
# Owner endpoints
# =============================================================================


class IssuedLinkResponse(BaseModel):
    """Signing link created (or reused) for one contact."""

    contact_id: str = Field(..., description="Contact UUID")
    token: str = Field(..., description="Opaque signing token")
    url: str = Field(
        ...,
        description="Public signing URL",
        json_schema_extra={"example": "http://localhost:3000/sign/9f86d081884c7d659a2feaa0c55ad015"},
    )


class IssueLinksResponse(BaseModel):
    """Links issued for a document."""

    links: list[IssuedLinkResponse] = Field(default_factory=list, description="One link per contact")


class SigningLinkResponse(BaseModel):
    """Signing link with its current status."""

    id: str = Field(..., description="Link UUID")
    contact_id: str = Field(..., description="Contact UUID")
    status: SigningLinkStatus = Field(..., description="pending, sent, viewed or completed")
    url: str = Field(..., description="Public signing URL")
    expires_at: datetime | None = Field(default=None, description="Expiry, if the link expires")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last status change")


class SigningLinkListResponse(BaseModel):
    """All signing links of a document."""

    links: list[SigningLinkResponse] = Field(default_factory=list, description="Links")


class NotifyRequest(BaseModel):
    """Optional overrides for signing emails."""

    document_title: str | None = Field(
        default=None,
        max_length=255,
        description="Title used in the email subject (defaults to 'Document for signing')",
    )


class NotifyResponse(BaseModel):
    """Outcome of a signing email batch."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "sent_count": 2,
                "error": None,
            }
        }
    )

    success: bool = Field(..., description="Whether at least one email was sent")
    sent_count: int = Field(default=0, ge=0, description="Emails handed to the transport successfully")
    error: str | None = Field(default=None, description="Failure message when nothing was sent")


# =============================================================================
# Public signing endpoints
# =============================================================================


class SigningFieldView(BaseModel):
    """Field as shown to the signer."""

    id: str
    field_name: str
    field_type: str
    field_value: str | None = None
    placeholder_text: str | None = None
    position_in_document: dict[str, Any] | None = None
    is_required: bool = True
    is_filled: bool = False


class SigningPageResponse(BaseModel):
    """Everything the public signing page renders for one token."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "viewed",
                "document": {"id": "550e8400-e29b-41d4-a716-446655440000", "title": "Consulting Agreement"},
                "contact": {"id": "6ba7b810-9dad-11d1-80b4-00c04fd430c8", "name": "Client"},
                "fields": [
                    {
                        "id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
                        "field_name": "Full name",
                        "field_type": "text",
                        "is_required": True,
                        "is_filled": False,
                    }
                ],
            }
        }
    )

    status: SigningLinkStatus = Field(..., description="Current link status")
    document: dict[str, Any] = Field(..., description="Document id, title and content")
    contact: dict[str, Any] = Field(..., description="Contact id and name")
    fields: list[SigningFieldView] = Field(default_factory=list, description="Fields assigned to this signer")

    @classmethod
    def from_signing_data(cls, data: SigningData) -> SigningPageResponse:
        """Project signing data onto what the signer may see."""
        return cls(
            status=data.link.status,
            document={
                "id": str(data.document.id),
                "title": data.document.title,
                "content": data.document.content,
            },
            contact={"id": str(data.contact.id), "name": data.contact.name},
            fields=[
                SigningFieldView(
                    id=str(f.id),
                    field_name=f.field_name,
                    field_type=f.field_type,
                    field_value=f.field_value,
                    placeholder_text=f.placeholder_text,
                    position_in_document=f.position_in_document,
                    is_required=f.is_required,
                    is_filled=f.is_filled,
                )
                for f in data.fields
            ],
        )


class SubmitFieldsRequest(BaseModel):
    """Signer's field values keyed by field id."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "values": {"7c9e6679-7425-40de-944b-e07fc1f90ae7": "Alice Example"},
            }
        }
    )

    values: dict[str, str | None] = Field(..., description="Map of field id to value")


class SubmitFieldsResponse(BaseModel):
    """Submission acknowledgement."""

    success: bool = Field(default=True)
    message: str = Field(default="Document submitted successfully!")
