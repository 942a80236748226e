from __future__ import annotations

from typing import Any
from uuid import UUID

import asyncpg

from api.middleware.exception_handlers import ValidationException
from models.error_models import ErrorDetail
from models.signing_models import EMAIL_LOCKED_STATUSES
from utils.field_validation import normalize_email
from utils.logger import logger

_LOCKED_STATUSES = sorted(s.value for s in EMAIL_LOCKED_STATUSES)


class ContactService:
    """Signer contact lookups and email maintenance backed by PostgreSQL."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_signing_contacts(self, user_id: UUID, document_id: UUID) -> list[dict[str, Any]]:
        """Distinct contacts referenced by a document's fields."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT DISTINCT c.id, c.name, c.email, c.company, c.phone,
                       EXISTS (
                           SELECT 1 FROM signing_links l
                           WHERE l.contact_id = c.id AND l.status = ANY($3::text[])
                       ) AS email_locked
                FROM contacts c
                JOIN contract_fields f ON f.contact_id = c.id
                WHERE f.document_id = $1 AND f.user_id = $2
                ORDER BY c.name
                """,
                document_id,
                user_id,
                _LOCKED_STATUSES,
            )
        return [self._row_to_contact(r) for r in rows]

    async def save_contact_emails(
        self,
        user_id: UUID,
        emails: dict[UUID, str | None],
    ) -> dict[str, list[str]]:
        """Batch-update contact emails.

        Blank values clear the email. Contacts whose link has already been
        sent are left untouched and reported as locked.

        Raises:
            ValidationException: If any non-blank value is not a valid address
        """
        normalized: dict[UUID, str | None] = {}
        errors: list[ErrorDetail] = []
        for contact_id, value in emails.items():
            try:
                normalized[contact_id] = normalize_email(value)
            except ValueError as e:
                errors.append(ErrorDetail(field=str(contact_id), message=str(e), code="invalid_email"))
        if errors:
            raise ValidationException(message="Invalid contact email", errors=errors)

        result: dict[str, list[str]] = {"updated": [], "locked": [], "not_found": []}

        async with self.pool.acquire() as conn, conn.transaction():
            for contact_id, email in normalized.items():
                updated = await conn.fetchval(
                    """
                    UPDATE contacts
                    SET email = $1, updated_at = NOW()
                    WHERE id = $2 AND user_id = $3
                      AND NOT EXISTS (
                          SELECT 1 FROM signing_links l
                          WHERE l.contact_id = contacts.id AND l.status = ANY($4::text[])
                      )
                    RETURNING id
                    """,
                    email,
                    contact_id,
                    user_id,
                    _LOCKED_STATUSES,
                )
                if updated is not None:
                    result["updated"].append(str(contact_id))
                    continue

                exists = await conn.fetchval(
                    "SELECT EXISTS (SELECT 1 FROM contacts WHERE id = $1 AND user_id = $2)",
                    contact_id,
                    user_id,
                )
                result["locked" if exists else "not_found"].append(str(contact_id))

        if result["locked"] or result["not_found"]:
            logger.warning(
                "Some contact emails were not updated",
                user_id=str(user_id),
                locked=result["locked"],
                not_found=result["not_found"],
            )
        return result

    def _row_to_contact(self, row: asyncpg.Record) -> dict[str, Any]:
        """Convert database row to contact dict."""
        return {
            "id": str(row["id"]),
            "name": row["name"],
            "email": row["email"],
            "company": row["company"],
            "phone": row["phone"],
            "email_locked": row.get("email_locked", False),
        }
