"""Routers mounted under ``/api/v1``."""

from fastapi import APIRouter

from api.routes.v1 import contacts, documents, health, signing

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(documents.router, tags=["Documents"])
router.include_router(contacts.router, tags=["Contacts"])
router.include_router(signing.router, tags=["Signing Links"])
# Token-gated, no bearer auth
router.include_router(signing.public_router, tags=["Signing"])

__all__ = ["router"]
