from __future__ import annotations

from uuid import UUID

import asyncpg

from models.schemas.auth import UserInfo


class UserDirectory:
    """Read-only view of the users and workspace memberships tables.

    Accounts are provisioned by the identity provider that issues bearer
    tokens; Signet only looks them up.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_user(self, user_id: UUID) -> UserInfo | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, email, display_name FROM users WHERE id = $1",
                user_id,
            )
        return UserInfo(**dict(row)) if row else None

    async def get_user_by_email(self, email: str) -> UserInfo | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, email, display_name FROM users WHERE email = $1",
                email,
            )
        return UserInfo(**dict(row)) if row else None

    async def get_workspace_ids(self, user_id: UUID) -> list[str]:
        """Memberships, oldest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT workspace_id
                FROM workspace_members
                WHERE user_id = $1
                ORDER BY created_at ASC
                """,
                user_id,
            )
        return [str(r["workspace_id"]) for r in rows]
