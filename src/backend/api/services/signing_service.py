"""
Signing workflow: link issuance, token resolution, view tracking and
field submission.

Public entry points never reveal why a token is unusable. Unknown,
expired, and completed tokens all surface as SigningLinkInvalidError.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

from api.middleware.exception_handlers import (
    AuthenticationError,
    SigningLinkInvalidError,
    ValidationException,
)
from api.services.signing_store import SigningStore
from core.constants import SIGNING_PATH, Settings, get_settings
from models.error_models import ErrorCode
from models.signing_models import (
    IssuedLink,
    SigningData,
    SigningLink,
    SigningLinkStatus,
    SubmissionResult,
)
from utils.field_validation import validate_field_values
from utils.logger import logger, mask_token

NO_VALID_FIELDS_MESSAGE = "No valid fields submitted."


def build_signing_url(app_url: str, token: str) -> str:
    """Public signing URL for a token."""
    return f"{app_url.rstrip('/')}/{SIGNING_PATH}/{token}"


class SigningService:
    """Signing link lifecycle on top of a SigningStore."""

    def __init__(self, store: SigningStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()

    def signing_url(self, token: str) -> str:
        return build_signing_url(self.settings.app_url, token)

    async def issue_links(self, document_id: UUID, owner_id: UUID | None) -> list[IssuedLink]:
        """Create one pending link per distinct contact on the document's fields.

        Re-issuing returns the existing link for a contact instead of a new one.

        Raises:
            AuthenticationError: If no owner is authenticated
        """
        if owner_id is None:
            raise AuthenticationError()

        contact_ids = await self.store.get_field_contact_ids(document_id, owner_id)
        if not contact_ids:
            logger.info("No fields on document, no signing links issued", document_id=str(document_id))
            return []

        expires_at = None
        if self.settings.signing_link_ttl_days:
            expires_at = datetime.now(UTC) + timedelta(days=self.settings.signing_link_ttl_days)

        issued = []
        for contact_id in contact_ids:
            link = await self.store.upsert_link(document_id, contact_id, owner_id, expires_at)
            issued.append(IssuedLink(contact_id=contact_id, token=link.token, url=self.signing_url(link.token)))

        logger.info(
            f"Issued {len(issued)} signing link(s)",
            document_id=str(document_id),
            user_id=str(owner_id),
        )
        return issued

    async def resolve_token(self, token: str) -> SigningData | None:
        """Load everything the signing page needs, or None for an unusable token.

        Never changes link status.
        """
        if not token:
            return None
        data = await self.store.get_signing_data(token)
        if data is None:
            return None
        if data.link.is_expired():
            logger.info("Signing link expired", token=mask_token(token))
            return None
        return data

    async def get_signing_data(self, token: str) -> SigningData:
        """Resolve a token or raise the generic invalid-link error."""
        data = await self.resolve_token(token)
        if data is None:
            raise SigningLinkInvalidError()
        return data

    async def record_view(self, token: str) -> SigningData:
        """Mark the link viewed when the signer opens it.

        A no-op for links already viewed or completed.
        """
        data = await self.get_signing_data(token)
        if data.link.status in (SigningLinkStatus.PENDING, SigningLinkStatus.SENT):
            updated = await self.store.transition_status(token, SigningLinkStatus.VIEWED)
            if updated is not None:
                data.link = updated
                logger.info("Signing link viewed", token=mask_token(token), document_id=str(updated.document_id))
        return data

    async def submit_fields(self, token: str, values: dict[str, str | None]) -> SubmissionResult:
        """Persist the signer's values and complete the link.

        Raises:
            SigningLinkInvalidError: Unknown, expired or no longer submittable link
            ValidationException: Nothing usable submitted, or values failed validation
        """
        data = await self.resolve_token(token)
        if data is None or not data.link.status.is_submittable:
            logger.warning(
                "Rejected submission for unusable signing link",
                token=mask_token(token),
                status=data.link.status.value if data else None,
            )
            raise SigningLinkInvalidError()

        link = data.link
        fields_by_id = {f.id: f for f in data.fields}
        accepted: dict[UUID, str | None] = {}
        dropped: list[str] = []

        for raw_id, value in values.items():
            field_id = _parse_uuid(raw_id)
            field = fields_by_id.get(field_id) if field_id else None
            if field is None or field.contact_id != link.contact_id or field.document_id != link.document_id:
                dropped.append(str(raw_id))
                continue
            accepted[field.id] = value

        if dropped:
            logger.warning(
                f"Dropped {len(dropped)} field(s) not assigned to this signing link",
                token=mask_token(token),
                document_id=str(link.document_id),
                dropped_field_ids=dropped,
            )

        if not accepted:
            raise ValidationException(message=NO_VALID_FIELDS_MESSAGE, code=ErrorCode.SIGNING_NO_VALID_FIELDS)

        issues = validate_field_values(
            {str(field_id): value for field_id, value in accepted.items()},
            [fields_by_id[field_id].descriptor() for field_id in accepted],
        )
        if issues:
            raise ValidationException(message="Submitted values failed validation", errors=issues)

        persisted = {field_id: _stored_value(value) for field_id, value in accepted.items()}
        if not await self.store.complete_submission(link, persisted):
            logger.warning("Signing link was claimed by another submission", token=mask_token(token))
            raise SigningLinkInvalidError()

        logger.info(
            f"Signing submission stored ({len(persisted)} field(s))",
            token=mask_token(token),
            document_id=str(link.document_id),
        )
        return SubmissionResult()

    async def list_links(self, document_id: UUID, owner_id: UUID) -> list[SigningLink]:
        return await self.store.list_links(document_id, owner_id)


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _stored_value(value: str | None) -> str | None:
    """Blank submissions are stored as NULL."""
    if value is None or not value.strip():
        return None
    return value


__all__ = ["NO_VALID_FIELDS_MESSAGE", "SigningService", "build_signing_url"]
