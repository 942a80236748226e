from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from api.middleware.auth import decode_bearer_token, get_current_user
from api.middleware.exception_handlers import AuthenticationError
from api.middleware.request_context import (
    RequestContext,
    clear_request_context,
    get_request_context,
    set_request_context,
)
from models.error_models import ErrorCode
from models.schemas.auth import UserInfo

SECRET = "test-jwt-secret"
USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
WORKSPACE_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


def _token(secret: str = SECRET, expires_in: timedelta = timedelta(minutes=5), **claims: Any) -> str:
    payload: dict[str, Any] = {"sub": str(USER_ID), "exp": datetime.now(UTC) + expires_in}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def auth_settings(mock_settings: MagicMock) -> Generator[MagicMock, None, None]:
    mock_settings.jwt_secret = SECRET
    mock_settings.jwt_algorithm = "HS256"
    with patch("api.middleware.auth.get_settings", return_value=mock_settings):
        yield mock_settings


@pytest.fixture
def mock_request() -> MagicMock:
    req = MagicMock(spec=Request)
    req.client.host = "203.0.113.9"
    return req


@pytest.fixture
def directory() -> Generator[MagicMock, None, None]:
    with patch("api.middleware.auth.UserDirectory") as MockDirectory:
        instance = MockDirectory.return_value
        instance.get_user = AsyncMock(
            return_value=UserInfo(id=USER_ID, email="owner@example.com", display_name="Dana Owner")
        )
        instance.get_user_by_email = AsyncMock(return_value=UserInfo(id=USER_ID, email="local@signet.dev"))
        instance.get_workspace_ids = AsyncMock(return_value=[WORKSPACE_ID])
        yield instance


class TestDecodeBearerToken:
    def test_valid_token_returns_claims(self, auth_settings: MagicMock) -> None:
        claims = decode_bearer_token(_token(workspaces=[WORKSPACE_ID]), auth_settings)

        assert claims["sub"] == str(USER_ID)
        assert claims["workspaces"] == [WORKSPACE_ID]

    def test_expired_token(self, auth_settings: MagicMock) -> None:
        with pytest.raises(AuthenticationError) as exc:
            decode_bearer_token(_token(expires_in=timedelta(minutes=-1)), auth_settings)

        assert exc.value.code == ErrorCode.AUTH_EXPIRED_TOKEN

    def test_wrong_secret(self, auth_settings: MagicMock) -> None:
        with pytest.raises(AuthenticationError) as exc:
            decode_bearer_token(_token(secret="someone-elses-secret"), auth_settings)

        assert exc.value.code == ErrorCode.AUTH_INVALID_TOKEN

    def test_garbage_token(self, auth_settings: MagicMock) -> None:
        with pytest.raises(AuthenticationError) as exc:
            decode_bearer_token("not.a.jwt", auth_settings)

        assert exc.value.code == ErrorCode.AUTH_INVALID_TOKEN

    def test_refresh_token_rejected(self, auth_settings: MagicMock) -> None:
        with pytest.raises(AuthenticationError) as exc:
            decode_bearer_token(_token(type="refresh"), auth_settings)

        assert exc.value.code == ErrorCode.AUTH_INVALID_TOKEN


@pytest.mark.asyncio
async def test_workspace_claim_used_as_is(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    user = await get_current_user(mock_request, _bearer(_token(workspaces=[WORKSPACE_ID])), MagicMock())

    assert user.id == USER_ID
    assert user.email == "owner@example.com"
    assert user.workspace_ids == [WORKSPACE_ID]
    directory.get_user.assert_awaited_once_with(USER_ID)
    directory.get_workspace_ids.assert_not_called()


@pytest.mark.asyncio
async def test_missing_workspace_claim_loads_memberships(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    user = await get_current_user(mock_request, _bearer(_token()), MagicMock())

    assert user.workspace_ids == [WORKSPACE_ID]
    directory.get_workspace_ids.assert_awaited_once_with(USER_ID)


@pytest.mark.asyncio
async def test_resolved_user_tags_request_context(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    set_request_context(RequestContext(request_id="req_test"))
    try:
        await get_current_user(mock_request, _bearer(_token()), MagicMock())
        assert get_request_context().user_id == str(USER_ID)
    finally:
        clear_request_context()


@pytest.mark.asyncio
async def test_malformed_subject(auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock) -> None:
    with pytest.raises(AuthenticationError) as exc:
        await get_current_user(mock_request, _bearer(_token(sub="not-a-uuid")), MagicMock())

    assert exc.value.code == ErrorCode.AUTH_INVALID_TOKEN
    directory.get_user.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_user(auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock) -> None:
    directory.get_user.return_value = None

    with pytest.raises(AuthenticationError) as exc:
        await get_current_user(mock_request, _bearer(_token()), MagicMock())

    assert exc.value.code == ErrorCode.AUTH_USER_NOT_FOUND


@pytest.mark.asyncio
async def test_localhost_bypass_loads_default_user(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    auth_settings.allow_localhost_noauth = True
    mock_request.client.host = "127.0.0.1"

    user = await get_current_user(mock_request, None, MagicMock())

    assert user.email == "local@signet.dev"
    assert user.workspace_ids == [WORKSPACE_ID]
    directory.get_user_by_email.assert_awaited_once_with(auth_settings.default_user_email)


@pytest.mark.asyncio
async def test_localhost_bypass_without_seeded_user(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    auth_settings.allow_localhost_noauth = True
    mock_request.client.host = "::1"
    directory.get_user_by_email.return_value = None

    with pytest.raises(AuthenticationError) as exc:
        await get_current_user(mock_request, None, MagicMock())

    assert exc.value.code == ErrorCode.AUTH_USER_NOT_FOUND


@pytest.mark.asyncio
async def test_no_credentials_from_remote_host(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    auth_settings.allow_localhost_noauth = True

    with pytest.raises(AuthenticationError) as exc:
        await get_current_user(mock_request, None, MagicMock())

    assert exc.value.code == ErrorCode.AUTH_REQUIRED
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_no_credentials_with_bypass_disabled(
    auth_settings: MagicMock, mock_request: MagicMock, directory: MagicMock
) -> None:
    auth_settings.allow_localhost_noauth = False
    mock_request.client.host = "127.0.0.1"

    with pytest.raises(AuthenticationError) as exc:
        await get_current_user(mock_request, None, MagicMock())

    assert exc.value.code == ErrorCode.AUTH_REQUIRED
