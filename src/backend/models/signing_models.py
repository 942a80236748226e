"""
Signing workflow models for Signet.
Provides Pydantic models for documents, contacts, fields and signing links,
plus the status lifecycle rules the storage layer enforces.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from utils.field_validation import FieldDescriptor


class SigningLinkStatus(str, Enum):
    """Lifecycle of a signing link: pending -> sent -> viewed -> completed."""

    PENDING = "pending"
    SENT = "sent"
    VIEWED = "viewed"
    COMPLETED = "completed"

    @property
    def is_submittable(self) -> bool:
        return self in SUBMITTABLE_STATUSES


#: Statuses from which the signer may still submit values.
SUBMITTABLE_STATUSES: frozenset[SigningLinkStatus] = frozenset({SigningLinkStatus.PENDING, SigningLinkStatus.VIEWED})

#: Once a link reaches one of these, its contact's email is frozen.
EMAIL_LOCKED_STATUSES: frozenset[SigningLinkStatus] = frozenset(
    {SigningLinkStatus.SENT, SigningLinkStatus.VIEWED, SigningLinkStatus.COMPLETED}
)

#: Allowed predecessor states for each status write.
STATUS_PREDECESSORS: dict[SigningLinkStatus, frozenset[SigningLinkStatus]] = {
    SigningLinkStatus.SENT: frozenset({SigningLinkStatus.PENDING}),
    SigningLinkStatus.VIEWED: frozenset({SigningLinkStatus.PENDING, SigningLinkStatus.SENT}),
    SigningLinkStatus.COMPLETED: SUBMITTABLE_STATUSES,
}


def allowed_predecessors(target: SigningLinkStatus) -> list[str]:
    """Status values a link may hold for a write to ``target`` to apply.

    Raises:
        ValueError: If nothing may transition into ``target``
    """
    predecessors = STATUS_PREDECESSORS.get(target)
    if not predecessors:
        raise ValueError(f"No transition leads to status '{target.value}'")
    return sorted(s.value for s in predecessors)


class Document(BaseModel):
    """Signable text artifact owned by one user."""

    id: UUID
    user_id: UUID
    title: str
    content: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Contact(BaseModel):
    """Person who fills fields on a document."""

    id: UUID
    user_id: UUID
    name: str | None = None
    email: str | None = None
    company: str | None = None
    phone: str | None = None


class ContractField(BaseModel):
    """Named, typed slot on a document belonging to exactly one contact."""

    id: UUID
    document_id: UUID
    contact_id: UUID
    user_id: UUID
    field_name: str
    field_type: str = "text"
    field_value: str | None = None
    placeholder_text: str | None = None
    position_in_document: dict[str, Any] | None = None
    is_required: bool = True
    is_filled: bool = False
    created_at: datetime | None = None

    def descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(
            id=str(self.id),
            name=self.field_name,
            type=self.field_type,
            required=self.is_required,
        )


class SigningLink(BaseModel):
    """Per-contact access token for a document's fields."""

    id: UUID
    token: str
    document_id: UUID
    contact_id: UUID
    user_id: UUID
    status: SigningLinkStatus = SigningLinkStatus.PENDING
    expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.now(UTC))


class SigningData(BaseModel):
    """Everything the public signing page needs for one token."""

    link: SigningLink
    document: Document
    contact: Contact
    fields: list[ContractField] = Field(default_factory=list)


class LinkRecipient(BaseModel):
    """A document's signing link joined with its contact."""

    link: SigningLink
    contact: Contact


class IssuedLink(BaseModel):
    """Result entry of link issuance."""

    contact_id: UUID
    token: str
    url: str


class SubmissionResult(BaseModel):
    """Outcome of a successful field submission."""

    success: bool = True
    message: str = "Document submitted successfully!"


class NotificationResult(BaseModel):
    """Outcome of a signing email batch."""

    success: bool
    sent_count: int = 0
    error: str | None = None


__all__ = [
    "EMAIL_LOCKED_STATUSES",
    "STATUS_PREDECESSORS",
    "SUBMITTABLE_STATUSES",
    "Contact",
    "ContractField",
    "Document",
    "IssuedLink",
    "LinkRecipient",
    "NotificationResult",
    "SigningData",
    "SigningLink",
    "SigningLinkStatus",
    "SubmissionResult",
    "allowed_predecessors",
]
