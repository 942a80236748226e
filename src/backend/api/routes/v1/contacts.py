"""
Contact management API routes.
"""

from __future__ import annotations

from fastapi import APIRouter

from api.dependencies import Contacts
from api.middleware.auth import CurrentUser
from models.schemas.contacts import SaveContactEmailsRequest, SaveContactEmailsResponse

router = APIRouter(prefix="/contacts")


@router.put(
    "/emails",
    response_model=SaveContactEmailsResponse,
    summary="Save contact emails",
    description=(
        "Batch-update contact emails. Empty values clear the email. "
        "Contacts whose signing link was already sent are reported as locked."
    ),
)
async def save_contact_emails(
    request: SaveContactEmailsRequest,
    user: CurrentUser,
    contacts: Contacts,
) -> SaveContactEmailsResponse:
    """Save emails for several contacts at once."""
    result = await contacts.save_contact_emails(user_id=user.id, emails=request.emails)
    return SaveContactEmailsResponse(**result)
