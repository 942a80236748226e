from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

import asyncpg

from models.signing_models import (
    Contact,
    ContractField,
    Document,
    LinkRecipient,
    SigningData,
    SigningLink,
    SigningLinkStatus,
    allowed_predecessors,
)
from utils.db_utils import with_retry


class SigningStore(Protocol):
    """Storage operations used by the signing workflow."""

    async def get_field_contact_ids(self, document_id: UUID, owner_id: UUID) -> list[UUID]: ...

    async def upsert_link(
        self,
        document_id: UUID,
        contact_id: UUID,
        owner_id: UUID,
        expires_at: datetime | None = None,
    ) -> SigningLink: ...

    async def get_signing_data(self, token: str) -> SigningData | None: ...

    async def transition_status(self, token: str, target: SigningLinkStatus) -> SigningLink | None: ...

    async def complete_submission(self, link: SigningLink, values: dict[UUID, str | None]) -> bool: ...

    async def list_links(self, document_id: UUID, owner_id: UUID) -> list[SigningLink]: ...

    async def list_recipients(self, document_id: UUID, owner_id: UUID) -> list[LinkRecipient]: ...

    async def get_owner_email(self, owner_id: UUID) -> str | None: ...


class PostgresSigningStore:
    """SigningStore backed by PostgreSQL.

    Every status write names the allowed predecessor states in its WHERE
    clause, so concurrent writers can only ever move a link forward.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_field_contact_ids(self, document_id: UUID, owner_id: UUID) -> list[UUID]:
        """Distinct contacts referenced by the document's fields."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT DISTINCT contact_id
                FROM contract_fields
                WHERE document_id = $1 AND user_id = $2
                ORDER BY contact_id
                """,
                document_id,
                owner_id,
            )
        return [row["contact_id"] for row in rows]

    async def upsert_link(
        self,
        document_id: UUID,
        contact_id: UUID,
        owner_id: UUID,
        expires_at: datetime | None = None,
    ) -> SigningLink:
        """Create the pending link for a (document, contact) pair or return the existing one.

        An existing link keeps its token and status. Its expiry is renewed only
        when it has already lapsed without being completed.
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO signing_links (document_id, contact_id, user_id, status, expires_at)
                VALUES ($1, $2, $3, 'pending', $4)
                ON CONFLICT (document_id, contact_id) DO UPDATE
                SET expires_at = CASE
                        WHEN signing_links.expires_at IS NOT NULL
                             AND signing_links.expires_at <= NOW()
                             AND signing_links.status <> 'completed'
                        THEN EXCLUDED.expires_at
                        ELSE signing_links.expires_at
                    END
                RETURNING *
                """,
                document_id,
                contact_id,
                owner_id,
                expires_at,
            )
        return SigningLink(**dict(row))

    @with_retry(max_attempts=3)
    async def get_signing_data(self, token: str) -> SigningData | None:
        """Load the link, its document, its contact and the contact's fields."""
        async with self.pool.acquire() as conn:
            link_row = await conn.fetchrow("SELECT * FROM signing_links WHERE token = $1", token)
            if not link_row:
                return None

            document_row = await conn.fetchrow(
                "SELECT * FROM documents WHERE id = $1",
                link_row["document_id"],
            )
            contact_row = await conn.fetchrow(
                "SELECT * FROM contacts WHERE id = $1",
                link_row["contact_id"],
            )
            if not document_row or not contact_row:
                return None

            field_rows = await conn.fetch(
                """
                SELECT *
                FROM contract_fields
                WHERE document_id = $1 AND contact_id = $2
                ORDER BY created_at ASC, id ASC
                """,
                link_row["document_id"],
                link_row["contact_id"],
            )

        return SigningData(
            link=SigningLink(**dict(link_row)),
            document=Document(**dict(document_row)),
            contact=Contact(**dict(contact_row)),
            fields=[ContractField(**dict(r)) for r in field_rows],
        )

    async def transition_status(self, token: str, target: SigningLinkStatus) -> SigningLink | None:
        """Advance a link to ``target`` if it currently holds an allowed predecessor.

        Returns:
            The updated link, or None when no row qualified
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE signing_links
                SET status = $2, updated_at = NOW()
                WHERE token = $1 AND status = ANY($3::text[])
                RETURNING *
                """,
                token,
                target.value,
                allowed_predecessors(target),
            )
        return SigningLink(**dict(row)) if row else None

    async def complete_submission(self, link: SigningLink, values: dict[UUID, str | None]) -> bool:
        """Claim the link and persist field values in one transaction.

        Returns:
            False when the link could not be claimed (already completed,
            expired, or taken by a concurrent submission); nothing is written.
        """
        field_ids = list(values.keys())
        field_values = list(values.values())

        async with self.pool.acquire() as conn, conn.transaction():
            claimed = await conn.fetchval(
                """
                UPDATE signing_links
                SET status = 'completed', updated_at = NOW()
                WHERE token = $1
                  AND status = ANY($2::text[])
                  AND (expires_at IS NULL OR expires_at > NOW())
                RETURNING id
                """,
                link.token,
                allowed_predecessors(SigningLinkStatus.COMPLETED),
            )
            if claimed is None:
                return False

            await conn.execute(
                """
                UPDATE contract_fields AS f
                SET field_value = v.value,
                    is_filled = v.value IS NOT NULL,
                    updated_at = NOW()
                FROM unnest($1::uuid[], $2::text[]) AS v(id, value)
                WHERE f.id = v.id
                  AND f.user_id = $3
                  AND f.document_id = $4
                  AND f.contact_id = $5
                """,
                field_ids,
                field_values,
                link.user_id,
                link.document_id,
                link.contact_id,
            )
        return True

    async def list_links(self, document_id: UUID, owner_id: UUID) -> list[SigningLink]:
        """All links of a document, oldest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT *
                FROM signing_links
                WHERE document_id = $1 AND user_id = $2
                ORDER BY created_at ASC
                """,
                document_id,
                owner_id,
            )
        return [SigningLink(**dict(r)) for r in rows]

    async def list_recipients(self, document_id: UUID, owner_id: UUID) -> list[LinkRecipient]:
        """Links of a document joined with their contacts."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT l.*,
                       c.id AS c_id, c.user_id AS c_user_id, c.name AS c_name,
                       c.email AS c_email, c.company AS c_company, c.phone AS c_phone
                FROM signing_links l
                JOIN contacts c ON c.id = l.contact_id
                WHERE l.document_id = $1 AND l.user_id = $2
                ORDER BY l.created_at ASC
                """,
                document_id,
                owner_id,
            )
        return [self._row_to_recipient(r) for r in rows]

    async def get_owner_email(self, owner_id: UUID) -> str | None:
        async with self.pool.acquire() as conn:
            email: str | None = await conn.fetchval("SELECT email FROM users WHERE id = $1", owner_id)
        return email

    def _row_to_recipient(self, row: asyncpg.Record) -> LinkRecipient:
        """Split a joined link/contact row."""
        data = dict(row)
        contact = Contact(
            id=data.pop("c_id"),
            user_id=data.pop("c_user_id"),
            name=data.pop("c_name"),
            email=data.pop("c_email"),
            company=data.pop("c_company"),
            phone=data.pop("c_phone"),
        )
        return LinkRecipient(link=SigningLink(**data), contact=contact)
