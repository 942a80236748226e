"""The authenticated document owner, as resolved from a bearer token."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserInfo(BaseModel):
    """Document owner and the workspaces they may act in."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "email": "owner@example.com",
                "display_name": "Dana Owner",
                "workspace_ids": ["7c9e6679-7425-40de-944b-e07fc1f90ae7"],
            }
        }
    )

    id: UUID
    email: str
    display_name: str | None = Field(default=None, max_length=100)
    workspace_ids: list[str] = Field(
        default_factory=list,
        description="Workspace memberships; documents are scoped to these",
    )
