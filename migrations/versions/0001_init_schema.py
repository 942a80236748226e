from __future__ import annotations

"""init schema: users and workspaces

Revision ID: 0001_init_schema
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Extensions (gen_random_uuid, gen_random_bytes)
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")

    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=100)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )

    op.create_table(
        "workspaces",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("owner_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("idx_workspaces_owner_id", "workspaces", ["owner_id"])

    op.create_table(
        "workspace_members",
        sa.Column(
            "workspace_id",
            UUID(as_uuid=True),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint("role IN ('owner', 'admin', 'member')", name="ck_workspace_members_role"),
    )
    op.create_index("idx_workspace_members_user_id", "workspace_members", ["user_id"])

    # Seed the localhost-bypass user with a personal workspace
    op.execute(
        """
        INSERT INTO users (email, display_name)
        VALUES ('local@signet.dev', 'Local User')
        ON CONFLICT (email) DO NOTHING;
        """
    )
    op.execute(
        """
        WITH ws AS (
            INSERT INTO workspaces (name, owner_id)
            SELECT 'Local User''s workspace', id FROM users WHERE email = 'local@signet.dev'
            RETURNING id, owner_id
        )
        INSERT INTO workspace_members (workspace_id, user_id, role)
        SELECT id, owner_id, 'owner' FROM ws;
        """
    )


def downgrade() -> None:
    op.drop_index("idx_workspace_members_user_id", table_name="workspace_members")
    op.drop_table("workspace_members")

    op.drop_index("idx_workspaces_owner_id", table_name="workspaces")
    op.drop_table("workspaces")

    op.drop_table("users")
