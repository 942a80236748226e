"""
Document management API routes.

Provides create, read, list and delete operations for documents
and the signing contacts their fields reference.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status

from api.dependencies import Contacts, Documents
from api.middleware.auth import CurrentUser
from api.middleware.exception_handlers import DocumentNotFoundError
from core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from models.schemas.base import PaginationMeta, SuccessResponse
from models.schemas.contacts import SigningContactListResponse, SigningContactResponse
from models.schemas.documents import (
    ContractFieldListResponse,
    ContractFieldResponse,
    CreateDocumentRequest,
    DocumentListResponse,
    DocumentResponse,
)

router = APIRouter(prefix="/documents")


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a document",
    description="Create a document with its fillable fields. One contact is created per distinct signer.",
)
async def create_document(
    request: CreateDocumentRequest,
    user: CurrentUser,
    documents: Documents,
) -> DocumentResponse:
    """Create a new document."""
    result = await documents.create_document(
        user_id=user.id,
        title=request.title,
        content=request.content,
        fields=[f.model_dump() for f in request.fields],
    )
    return DocumentResponse(**result)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List documents",
    description="Get paginated list of the user's documents.",
)
async def list_documents(
    user: CurrentUser,
    documents: Documents,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
) -> DocumentListResponse:
    """List all documents for the current user."""
    result = await documents.list_documents(
        user_id=user.id,
        offset=offset,
        limit=limit,
    )
    return DocumentListResponse(
        documents=[DocumentResponse(**d) for d in result["documents"]],
        pagination=PaginationMeta(
            offset=offset,
            limit=limit,
            total_count=result["total_count"],
            has_more=result["has_more"],
        ),
    )


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Get a document",
    description="Get a document and its fields by ID.",
)
async def get_document(
    document_id: UUID,
    user: CurrentUser,
    documents: Documents,
) -> DocumentResponse:
    """Get a specific document."""
    result = await documents.get_document(user_id=user.id, document_id=document_id)
    if not result:
        raise DocumentNotFoundError(str(document_id))
    return DocumentResponse(**result)


@router.delete(
    "/{document_id}",
    response_model=SuccessResponse,
    summary="Delete a document",
    description="Delete a document together with its fields and signing links.",
)
async def delete_document(
    document_id: UUID,
    user: CurrentUser,
    documents: Documents,
) -> SuccessResponse:
    """Delete a document."""
    deleted = await documents.delete_document(user_id=user.id, document_id=document_id)
    if not deleted:
        raise DocumentNotFoundError(str(document_id))
    return SuccessResponse(success=True, message="Document deleted successfully")


@router.get(
    "/{document_id}/contacts",
    response_model=SigningContactListResponse,
    summary="List signing contacts",
    description="Contacts assigned to the document's fields, with their current email.",
)
async def list_signing_contacts(
    document_id: UUID,
    user: CurrentUser,
    contacts: Contacts,
) -> SigningContactListResponse:
    """List the contacts that sign a document."""
    result = await contacts.get_signing_contacts(user_id=user.id, document_id=document_id)
    return SigningContactListResponse(contacts=[SigningContactResponse(**c) for c in result])


@router.get(
    "/{document_id}/fields",
    response_model=ContractFieldListResponse,
    summary="List document fields",
    description="Fields of the document with their assigned contact and fill state, oldest first.",
)
async def list_document_fields(
    document_id: UUID,
    user: CurrentUser,
    documents: Documents,
) -> ContractFieldListResponse:
    """List a document's fields."""
    fields = await documents.list_fields(user_id=user.id, document_id=document_id)
    return ContractFieldListResponse(fields=[ContractFieldResponse(**f) for f in fields])
