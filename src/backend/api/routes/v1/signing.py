"""
Signing workflow API routes.

Owner endpoints issue, list and email signing links for a document.
Public endpoints are gated only by the signing token in the path; every
unusable token gets the same 404 so callers cannot tell which tokens exist.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body

from api.dependencies import Notifications, Signing
from api.middleware.auth import CurrentUser
from models.schemas.signing import (
    IssuedLinkResponse,
    IssueLinksResponse,
    NotifyRequest,
    NotifyResponse,
    SigningLinkListResponse,
    SigningLinkResponse,
    SigningPageResponse,
    SubmitFieldsRequest,
    SubmitFieldsResponse,
)

router = APIRouter(prefix="/documents")
public_router = APIRouter(prefix="/sign")


# =============================================================================
# Owner endpoints
# =============================================================================


@router.post(
    "/{document_id}/signing-links",
    response_model=IssueLinksResponse,
    summary="Issue signing links",
    description=(
        "Create one signing link per distinct contact on the document's fields. "
        "Existing links are returned unchanged. Returns an empty list for documents without fields."
    ),
)
async def issue_signing_links(
    document_id: UUID,
    user: CurrentUser,
    signing: Signing,
) -> IssueLinksResponse:
    """Issue signing links for a document."""
    issued = await signing.issue_links(document_id, user.id)
    return IssueLinksResponse(
        links=[IssuedLinkResponse(contact_id=str(i.contact_id), token=i.token, url=i.url) for i in issued]
    )


@router.get(
    "/{document_id}/signing-links",
    response_model=SigningLinkListResponse,
    summary="List signing links",
    description="List the document's signing links with their status.",
)
async def list_signing_links(
    document_id: UUID,
    user: CurrentUser,
    signing: Signing,
) -> SigningLinkListResponse:
    """List signing links for a document."""
    links = await signing.list_links(document_id, user.id)
    return SigningLinkListResponse(
        links=[
            SigningLinkResponse(
                id=str(link.id),
                contact_id=str(link.contact_id),
                status=link.status,
                url=signing.signing_url(link.token),
                expires_at=link.expires_at,
                created_at=link.created_at,
                updated_at=link.updated_at,
            )
            for link in links
        ]
    )


@router.post(
    "/{document_id}/signing-links/notify",
    response_model=NotifyResponse,
    summary="Email signing links",
    description="Send each contact with an email address their signing link and mark the link sent.",
    responses={
        404: {"description": "No signing links found for this document"},
        422: {"description": "No contacts with email addresses found"},
    },
)
async def notify_signers(
    document_id: UUID,
    user: CurrentUser,
    notifications: Notifications,
    request: NotifyRequest | None = Body(default=None),
) -> NotifyResponse:
    """Email signing links to a document's contacts."""
    result = await notifications.send_signing_emails(
        document_id=document_id,
        owner_id=user.id,
        document_title=request.document_title if request else None,
    )
    return NotifyResponse(**result.model_dump())


# =============================================================================
# Public endpoints
# =============================================================================


@public_router.get(
    "/{token}",
    response_model=SigningPageResponse,
    summary="Open a signing link",
    description="Resolve a signing token to the document and the signer's fields. Does not change link status.",
    responses={404: {"description": "Unknown or expired signing link"}},
)
async def get_signing_page(token: str, signing: Signing) -> SigningPageResponse:
    """Resolve a signing token."""
    data = await signing.get_signing_data(token)
    return SigningPageResponse.from_signing_data(data)


@public_router.post(
    "/{token}/view",
    response_model=SigningPageResponse,
    summary="Record a view",
    description="Report that the signer opened the link. Moves pending or sent links to viewed.",
    responses={404: {"description": "Unknown or expired signing link"}},
)
async def record_signing_view(token: str, signing: Signing) -> SigningPageResponse:
    """Mark a signing link viewed."""
    data = await signing.record_view(token)
    return SigningPageResponse.from_signing_data(data)


@public_router.post(
    "/{token}",
    response_model=SubmitFieldsResponse,
    summary="Submit field values",
    description="Store the signer's values and complete the link. A link accepts exactly one submission.",
    responses={
        404: {"description": "This signing link is invalid, expired, or already completed."},
        422: {"description": "No valid fields submitted, or values failed validation"},
    },
)
async def submit_signing_fields(
    token: str,
    request: SubmitFieldsRequest,
    signing: Signing,
) -> SubmitFieldsResponse:
    """Submit the signer's field values."""
    result = await signing.submit_fields(token, request.values)
    return SubmitFieldsResponse(**result.model_dump())
