from __future__ import annotations

from uuid import UUID

from api.middleware.exception_handlers import NotificationError
from api.services.notification_transport import NotificationTransport
from api.services.signing_service import build_signing_url
from api.services.signing_store import SigningStore
from core.constants import (
    DEFAULT_SENDER_NAME,
    DEFAULT_SIGNER_NAME,
    DEFAULT_SIGNING_TITLE,
    Settings,
    get_settings,
)
from models.error_models import ErrorCode
from models.signing_models import NotificationResult, SigningLinkStatus
from utils.logger import logger, mask_token

NO_LINKS_MESSAGE = "No signing links found for this document"
NO_RECIPIENTS_MESSAGE = "No contacts with email addresses found"
SEND_FAILED_MESSAGE = "Failed to send emails"


def format_signing_email(title: str, recipient_name: str, sender_name: str, url: str) -> tuple[str, str]:
    """Build (subject, body) for a signing request."""
    subject = f"Please sign: {title}"
    body = (
        f"Hello {recipient_name},\n\n"
        f'{sender_name} has requested your signature on "{title}".\n\n'
        f"Please sign the document using this link:\n{url}\n"
    )
    return subject, body


class NotificationService:
    """Emails signing links to a document's contacts."""

    def __init__(
        self,
        store: SigningStore,
        transport: NotificationTransport,
        settings: Settings | None = None,
    ):
        self.store = store
        self.transport = transport
        self.settings = settings or get_settings()

    async def send_signing_emails(
        self,
        document_id: UUID,
        owner_id: UUID,
        document_title: str | None = None,
    ) -> NotificationResult:
        """Send one message per contact with an email and mark those links sent.

        Links advance to 'sent' once the message is handed to the transport,
        whether or not the transport confirmed delivery. A failure for one
        contact is logged and does not stop the rest of the batch.

        Raises:
            NotificationError: No links exist, or no linked contact has an email
        """
        recipients = await self.store.list_recipients(document_id, owner_id)
        if not recipients:
            raise NotificationError(NO_LINKS_MESSAGE, code=ErrorCode.NOTIFY_NO_LINKS)

        reachable = [r for r in recipients if r.contact.email and r.contact.email.strip()]
        if not reachable:
            raise NotificationError(NO_RECIPIENTS_MESSAGE, code=ErrorCode.NOTIFY_NO_RECIPIENTS)

        title = document_title or DEFAULT_SIGNING_TITLE
        sender_name = await self.store.get_owner_email(owner_id) or DEFAULT_SENDER_NAME

        sent_count = 0
        for recipient in reachable:
            link = recipient.link
            email = (recipient.contact.email or "").strip()
            try:
                subject, body = format_signing_email(
                    title=title,
                    recipient_name=recipient.contact.name or DEFAULT_SIGNER_NAME,
                    sender_name=sender_name,
                    url=build_signing_url(self.settings.app_url, link.token),
                )
                delivered = await self.transport.send(email, subject, body)
                await self.store.transition_status(link.token, SigningLinkStatus.SENT)
            except Exception as e:
                logger.error(
                    f"Failed to send signing email: {e}",
                    exc_info=True,
                    document_id=str(document_id),
                    contact_id=str(recipient.contact.id),
                    token=mask_token(link.token),
                )
                continue

            if delivered:
                sent_count += 1
            else:
                logger.warning(
                    "Notification transport did not confirm delivery",
                    document_id=str(document_id),
                    contact_id=str(recipient.contact.id),
                )

        skipped = len(recipients) - len(reachable)
        logger.info(
            f"Signing emails sent: {sent_count}/{len(reachable)} (skipped {skipped} without email)",
            document_id=str(document_id),
            user_id=str(owner_id),
        )

        if sent_count == 0:
            return NotificationResult(success=False, sent_count=0, error=SEND_FAILED_MESSAGE)
        return NotificationResult(success=True, sent_count=sent_count)


__all__ = [
    "NO_LINKS_MESSAGE",
    "NO_RECIPIENTS_MESSAGE",
    "SEND_FAILED_MESSAGE",
    "NotificationService",
    "format_signing_email",
]
