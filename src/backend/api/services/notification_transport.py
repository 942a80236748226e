from __future__ import annotations

from typing import Protocol

from core.constants import Settings, get_settings
from utils.logger import logger


class NotificationTransport(Protocol):
    """Delivers one message to one recipient."""

    async def send(self, recipient: str, subject: str, body: str) -> bool: ...


class LoggingNotificationTransport:
    """Writes messages to the application log instead of delivering them.

    Message bodies carry signing URLs, which are bearer credentials, so the
    body and the recipient are only logged verbatim when content logging is on.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        if self.settings.enable_content_logging:
            logger.info(
                f"Signing email: {subject}",
                recipient=recipient,
                body=body,
            )
        else:
            logger.info(
                f"Signing email: {subject}",
                recipient=logger.content(recipient),
                body_length=len(body),
            )
        return True


def create_notification_transport(settings: Settings | None = None) -> NotificationTransport:
    """Build the transport selected by NOTIFICATION_TRANSPORT."""
    settings = settings or get_settings()
    if settings.notification_transport == "log":
        return LoggingNotificationTransport(settings)
    raise ValueError(f"Unsupported notification transport: {settings.notification_transport}")
