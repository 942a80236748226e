from __future__ import annotations

"""add documents, contacts and contract_fields

Revision ID: 0002_add_documents
Revises: 0001_init_schema
Create Date: 2026-10-01

A contract field belongs to exactly one contact; the contact is the signer
who fills it. Deleting a document removes its fields.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


revision = "0002_add_documents"
down_revision = "0001_init_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("idx_documents_user_created", "documents", ["user_id", "created_at"])

    op.create_table(
        "contacts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("company", sa.String(length=255)),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("idx_contacts_user_id", "contacts", ["user_id"])

    op.create_table(
        "contract_fields",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "document_id",
            UUID(as_uuid=True),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("field_name", sa.String(length=255), nullable=False),
        sa.Column("field_type", sa.String(length=50), nullable=False, server_default="text"),
        sa.Column("field_value", sa.Text),
        sa.Column("placeholder_text", sa.String(length=500)),
        sa.Column("position_in_document", JSONB),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.text("TRUE")),
        sa.Column("is_filled", sa.Boolean, nullable=False, server_default=sa.text("FALSE")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.UniqueConstraint("document_id", "field_name", "contact_id", name="uq_contract_fields_doc_name_contact"),
    )
    op.create_index("idx_contract_fields_document_id", "contract_fields", ["document_id"])
    op.create_index("idx_contract_fields_contact_id", "contract_fields", ["contact_id"])


def downgrade() -> None:
    op.drop_index("idx_contract_fields_contact_id", table_name="contract_fields")
    op.drop_index("idx_contract_fields_document_id", table_name="contract_fields")
    op.drop_table("contract_fields")

    op.drop_index("idx_contacts_user_id", table_name="contacts")
    op.drop_table("contacts")

    op.drop_index("idx_documents_user_created", table_name="documents")
    op.drop_table("documents")
