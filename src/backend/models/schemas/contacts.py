"""
Signing contact API schemas.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SigningContactResponse(BaseModel):
    """Contact assigned to at least one field of a document."""

    id: str = Field(..., description="Contact UUID")
    name: str | None = Field(default=None, description="Contact name")
    email: str | None = Field(default=None, description="Contact email")
    company: str | None = Field(default=None, description="Company")
    phone: str | None = Field(default=None, description="Phone number")
    email_locked: bool = Field(
        default=False,
        description="True once a signing link for this contact has been sent",
    )


class SigningContactListResponse(BaseModel):
    """Contacts for a document's signing workflow."""

    contacts: list[SigningContactResponse] = Field(..., description="Contacts")


class SaveContactEmailsRequest(BaseModel):
    """Batch update of contact emails. Empty strings clear the email."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "emails": {
                    "550e8400-e29b-41d4-a716-446655440000": "alice@example.com",
                    "6ba7b810-9dad-11d1-80b4-00c04fd430c8": "",
                }
            }
        }
    )

    emails: dict[UUID, str | None] = Field(
        ...,
        min_length=1,
        description="Map of contact id to email",
    )


class SaveContactEmailsResponse(BaseModel):
    """Outcome of a contact email batch update."""

    updated: list[str] = Field(default_factory=list, description="Contacts whose email was saved")
    locked: list[str] = Field(
        default_factory=list,
        description="Contacts skipped because their signing link was already sent",
    )
    not_found: list[str] = Field(default_factory=list, description="Unknown contact ids")
