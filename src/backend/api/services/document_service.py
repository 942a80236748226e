from __future__ import annotations

from typing import Any
from uuid import UUID

import asyncpg

from utils.logger import logger


class DocumentService:
    """Document and contract field business logic backed by PostgreSQL."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create_document(
        self,
        user_id: UUID,
        title: str,
        content: str | None = None,
        fields: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create a document with its contacts and fillable fields.

        One contact is created per distinct ``signer`` among the field drafts.
        The document row is written first. If the contacts or fields cannot be
        written, the document is deleted again (best effort) and the original
        error propagates.
        """
        fields = fields or []

        async with self.pool.acquire() as conn:
            doc_row = await conn.fetchrow(
                """
                INSERT INTO documents (user_id, title, content)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                user_id,
                title,
                content,
            )
        document = self._row_to_document(doc_row)

        try:
            field_rows = await self._insert_fields(user_id, doc_row["id"], fields)
        except Exception:
            await self._discard_document(user_id, doc_row["id"])
            raise

        document["fields"] = [self._row_to_field(r) for r in field_rows]
        document["field_count"] = len(field_rows)
        logger.info(
            f"Document created with {len(field_rows)} field(s)",
            document_id=document["id"],
            user_id=str(user_id),
        )
        return document

    async def _insert_fields(
        self,
        user_id: UUID,
        document_id: UUID,
        fields: list[dict[str, Any]],
    ) -> list[asyncpg.Record]:
        rows: list[asyncpg.Record] = []
        if not fields:
            return rows

        async with self.pool.acquire() as conn, conn.transaction():
            contact_ids: dict[str, UUID] = {}
            for draft in fields:
                signer = draft["signer"]
                if signer not in contact_ids:
                    contact_ids[signer] = await conn.fetchval(
                        """
                        INSERT INTO contacts (user_id, name)
                        VALUES ($1, $2)
                        RETURNING id
                        """,
                        user_id,
                        signer,
                    )

            for draft in fields:
                row = await conn.fetchrow(
                    """
                    INSERT INTO contract_fields (
                        document_id, contact_id, user_id, field_name, field_type,
                        placeholder_text, position_in_document, is_required
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING *
                    """,
                    document_id,
                    contact_ids[draft["signer"]],
                    user_id,
                    draft["field_name"],
                    draft.get("field_type") or "text",
                    draft.get("placeholder_text"),
                    draft.get("position_in_document"),
                    draft.get("is_required", True),
                )
                rows.append(row)
        return rows

    async def _discard_document(self, user_id: UUID, document_id: UUID) -> None:
        """Remove a document whose dependent rows failed to insert."""
        try:
            await self.delete_document(user_id, document_id)
        except Exception as e:
            logger.error(
                f"Failed to remove partially created document: {e}",
                exc_info=True,
                document_id=str(document_id),
            )

    async def get_document(self, user_id: UUID, document_id: UUID) -> dict[str, Any] | None:
        """Get document by ID with its fields."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM documents WHERE id = $1 AND user_id = $2",
                document_id,
                user_id,
            )
            if not row:
                return None
            field_rows = await conn.fetch(
                """
                SELECT *
                FROM contract_fields
                WHERE document_id = $1 AND user_id = $2
                ORDER BY created_at ASC
                """,
                document_id,
                user_id,
            )

        document = self._row_to_document(row)
        document["fields"] = [self._row_to_field(r) for r in field_rows]
        document["field_count"] = len(field_rows)
        return document

    async def list_documents(
        self,
        user_id: UUID,
        offset: int = 0,
        limit: int = 50,
    ) -> dict[str, Any]:
        """List all documents for user."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT d.*, COUNT(f.id) AS field_count
                FROM documents d
                LEFT JOIN contract_fields f ON f.document_id = d.id
                WHERE d.user_id = $1
                GROUP BY d.id
                ORDER BY d.updated_at DESC
                LIMIT $2 OFFSET $3
                """,
                user_id,
                limit,
                offset,
            )

            total = await conn.fetchval(
                "SELECT COUNT(*) FROM documents WHERE user_id = $1",
                user_id,
            )

        documents = [self._row_to_document(r) for r in rows]

        return {
            "documents": documents,
            "total_count": total,
            "has_more": offset + len(documents) < total,
        }

    async def list_fields(self, user_id: UUID, document_id: UUID) -> list[dict[str, Any]]:
        """Fields of a document, oldest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT *
                FROM contract_fields
                WHERE document_id = $1 AND user_id = $2
                ORDER BY created_at ASC
                """,
                document_id,
                user_id,
            )
        return [self._row_to_field(r) for r in rows]

    async def delete_document(self, user_id: UUID, document_id: UUID) -> bool:
        """Delete document.

        Fields and signing links are removed with it (ON DELETE CASCADE).
        """
        async with self.pool.acquire() as conn:
            result: str = await conn.execute(
                """
                DELETE FROM documents
                WHERE id = $1 AND user_id = $2
                """,
                document_id,
                user_id,
            )
        return result == "DELETE 1"

    def _row_to_document(self, row: asyncpg.Record) -> dict[str, Any]:
        """Convert database row to document dict."""
        return {
            "id": str(row["id"]),
            "title": row["title"],
            "content": row["content"],
            "field_count": row.get("field_count", 0),
            "created_at": row["created_at"].isoformat() if row["created_at"] else None,
            "updated_at": row["updated_at"].isoformat() if row["updated_at"] else None,
        }

    def _row_to_field(self, row: asyncpg.Record) -> dict[str, Any]:
        """Convert database row to field dict."""
        return {
            "id": str(row["id"]),
            "document_id": str(row["document_id"]),
            "contact_id": str(row["contact_id"]),
            "field_name": row["field_name"],
            "field_type": row["field_type"],
            "field_value": row["field_value"],
            "placeholder_text": row["placeholder_text"],
            "position_in_document": row["position_in_document"],
            "is_required": row["is_required"],
            "is_filled": row["is_filled"],
        }
