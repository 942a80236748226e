from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from api.services.user_directory import UserDirectory

USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")


@pytest.fixture
def directory(mock_db_pool: MagicMock) -> UserDirectory:
    return UserDirectory(mock_db_pool)


@pytest.mark.asyncio
async def test_get_user(directory: UserDirectory, mock_conn: AsyncMock) -> None:
    mock_conn.fetchrow.return_value = {"id": USER_ID, "email": "owner@example.com", "display_name": None}

    user = await directory.get_user(USER_ID)

    assert user is not None
    assert user.id == USER_ID
    assert user.workspace_ids == []
    assert mock_conn.fetchrow.call_args.args[1] == USER_ID


@pytest.mark.asyncio
async def test_get_user_missing(directory: UserDirectory, mock_conn: AsyncMock) -> None:
    mock_conn.fetchrow.return_value = None

    assert await directory.get_user(USER_ID) is None


@pytest.mark.asyncio
async def test_get_user_by_email(directory: UserDirectory, mock_conn: AsyncMock) -> None:
    mock_conn.fetchrow.return_value = {"id": USER_ID, "email": "local@signet.dev", "display_name": "Local"}

    user = await directory.get_user_by_email("local@signet.dev")

    assert user is not None
    assert user.display_name == "Local"
    assert "WHERE email = $1" in mock_conn.fetchrow.call_args.args[0]


@pytest.mark.asyncio
async def test_workspace_ids_are_strings_in_membership_order(directory: UserDirectory, mock_conn: AsyncMock) -> None:
    first = UUID("7c9e6679-7425-40de-944b-e07fc1f90ae7")
    second = UUID("16fd2706-8baf-433b-82eb-8c7fada847da")
    mock_conn.fetch.return_value = [{"workspace_id": first}, {"workspace_id": second}]

    assert await directory.get_workspace_ids(USER_ID) == [str(first), str(second)]
    assert "ORDER BY created_at ASC" in mock_conn.fetch.call_args.args[0]
