"""Resolve the document owner behind an API request.

Tokens are issued elsewhere (the identity provider shares ``JWT_SECRET``);
this module only verifies them. A valid token carries ``sub`` (user id) and
usually a ``workspaces`` membership claim; when the claim is absent the
memberships are read from the database.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

import asyncpg

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from api.dependencies import get_db
from api.middleware.exception_handlers import AuthenticationError
from api.middleware.request_context import update_request_context
from api.services.user_directory import UserDirectory
from core.constants import Settings, get_settings
from models.error_models import ErrorCode
from models.schemas.auth import UserInfo

bearer_scheme = HTTPBearer(auto_error=False)

LOCALHOST_ADDRESSES = frozenset({"127.0.0.1", "::1", "localhost"})


def decode_bearer_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify signature and expiry; reject refresh tokens.

    Raises:
        AuthenticationError: AUTH_EXPIRED_TOKEN or AUTH_INVALID_TOKEN.
    """
    try:
        claims: dict[str, Any] = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired", code=ErrorCode.AUTH_EXPIRED_TOKEN) from exc
    except JWTError as exc:
        raise AuthenticationError("Invalid token", code=ErrorCode.AUTH_INVALID_TOKEN) from exc

    if claims.get("type", "access") != "access":
        raise AuthenticationError("Invalid token", code=ErrorCode.AUTH_INVALID_TOKEN)
    return claims


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[asyncpg.Pool, Depends(get_db)],
) -> UserInfo:
    """Authenticated owner for the request, or 401."""
    settings = get_settings()
    directory = UserDirectory(db)

    if credentials is None:
        if settings.allow_localhost_noauth and _is_localhost(request):
            user = await directory.get_user_by_email(settings.default_user_email)
            if user is None:
                raise AuthenticationError("Default user not found", code=ErrorCode.AUTH_USER_NOT_FOUND)
            user.workspace_ids = await directory.get_workspace_ids(user.id)
            return _identify(user)
        raise AuthenticationError()

    claims = decode_bearer_token(credentials.credentials, settings)
    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError as exc:
        raise AuthenticationError("Invalid token", code=ErrorCode.AUTH_INVALID_TOKEN) from exc

    user = await directory.get_user(user_id)
    if user is None:
        raise AuthenticationError("User not found", code=ErrorCode.AUTH_USER_NOT_FOUND)

    if "workspaces" in claims:
        user.workspace_ids = [str(w) for w in claims["workspaces"]]
    else:
        user.workspace_ids = await directory.get_workspace_ids(user.id)
    return _identify(user)


def _identify(user: UserInfo) -> UserInfo:
    update_request_context(user_id=str(user.id))
    return user


def _is_localhost(request: Request) -> bool:
    return bool(request.client) and request.client.host in LOCALHOST_ADDRESSES


CurrentUser = Annotated[UserInfo, Depends(get_current_user)]
