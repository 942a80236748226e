"""FastAPI providers wiring app state into the services.

Routes declare what they need with the ``Annotated`` aliases at the bottom;
tests replace any provider through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

import asyncpg

from fastapi import Depends, Request

from api.services.contact_service import ContactService
from api.services.document_service import DocumentService
from api.services.notification_service import NotificationService
from api.services.notification_transport import NotificationTransport
from api.services.signing_service import SigningService
from api.services.signing_store import PostgresSigningStore, SigningStore
from core.constants import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


async def get_db(request: Request) -> asyncpg.Pool:
    """Pool opened by the application lifespan."""
    return request.app.state.db_pool


def get_notification_transport(request: Request) -> NotificationTransport:
    return request.app.state.notification_transport


def get_signing_store(db: Annotated[asyncpg.Pool, Depends(get_db)]) -> SigningStore:
    return PostgresSigningStore(db)


def get_signing_service(
    store: Annotated[SigningStore, Depends(get_signing_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SigningService:
    return SigningService(store, settings)


def get_notification_service(
    store: Annotated[SigningStore, Depends(get_signing_store)],
    transport: Annotated[NotificationTransport, Depends(get_notification_transport)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> NotificationService:
    return NotificationService(store, transport, settings)


def get_document_service(db: Annotated[asyncpg.Pool, Depends(get_db)]) -> DocumentService:
    return DocumentService(db)


def get_contact_service(db: Annotated[asyncpg.Pool, Depends(get_db)]) -> ContactService:
    return ContactService(db)


DB = Annotated[asyncpg.Pool, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Signing = Annotated[SigningService, Depends(get_signing_service)]
Notifications = Annotated[NotificationService, Depends(get_notification_service)]
Documents = Annotated[DocumentService, Depends(get_document_service)]
Contacts = Annotated[ContactService, Depends(get_contact_service)]
