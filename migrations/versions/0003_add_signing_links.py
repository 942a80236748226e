from __future__ import annotations

"""add signing_links

Revision ID: 0003_add_signing_links
Revises: 0002_add_documents
Create Date: 2026-10-01

One link per (document, contact). Tokens are 128 random bits, hex encoded.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


revision = "0003_add_signing_links"
down_revision = "0002_add_documents"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "signing_links",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "token",
            sa.String(length=64),
            nullable=False,
            unique=True,
            server_default=sa.text("encode(gen_random_bytes(16), 'hex')"),
        ),
        sa.Column(
            "document_id",
            UUID(as_uuid=True),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.UniqueConstraint("document_id", "contact_id", name="uq_signing_links_document_contact"),
        sa.CheckConstraint(
            "status IN ('pending', 'sent', 'viewed', 'completed')",
            name="ck_signing_links_status",
        ),
    )
    op.create_index("idx_signing_links_document_id", "signing_links", ["document_id"])
    op.create_index("idx_signing_links_contact_status", "signing_links", ["contact_id", "status"])


def downgrade() -> None:
    op.drop_index("idx_signing_links_contact_status", table_name="signing_links")
    op.drop_index("idx_signing_links_document_id", table_name="signing_links")
    op.drop_table("signing_links")
