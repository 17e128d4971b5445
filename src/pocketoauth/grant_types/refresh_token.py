# Refresh token grant.
# Created: 2026-10-19

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

from pocketoauth import validator
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.grant_types.base import AbstractGrantType
from pocketoauth.invoke import call_model
from pocketoauth.models import Token, get_field, is_expired
from pocketoauth.request import Request

__all__ = ["RefreshTokenGrantType"]


class RefreshTokenGrantType(AbstractGrantType):
    """Rotate a refresh token into a new access token.

    When ``always_issue_new_refresh_token`` is explicitly ``False`` the
    presented refresh token is carried over to the new token instead of a
    freshly generated one.
    See https://tools.ietf.org/html/rfc6749#section-6
    """

    required_model_methods = ("get_refresh_token", "revoke_token", "save_token")

    async def handle(self, request: Request, client: Any) -> Any:
        self._check_handle_args(request, client)

        old_token = await self.get_refresh_token(request, client)
        await self.revoke_token(old_token)

        user = get_field(old_token, "user")
        token = await self._issue_rotated_token(old_token, user, client)
        return await self.save_token(token, client, user)

    async def get_refresh_token(self, request: Request, client: Any) -> Any:
        value = request.body.get("refresh_token")
        if not value:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `refresh_token`")
        if not validator.vschar(value):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `refresh_token`")

        token = await call_model(self.model.get_refresh_token, value)
        if not token:
            raise OAuthError(ErrorKind.INVALID_GRANT, "Invalid grant: refresh token is invalid")

        token_client = get_field(token, "client")
        if token_client is None:
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `get_refresh_token()` did not return a `client` object",
            )
        if get_field(token, "user") is None:
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `get_refresh_token()` did not return a `user` object",
            )
        if get_field(token_client, "id") != get_field(client, "id"):
            raise OAuthError(ErrorKind.INVALID_GRANT, "Invalid grant: refresh token is invalid")

        expires_at = get_field(token, "refresh_token_expires_at")
        if expires_at is not None and not isinstance(expires_at, datetime):
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `refresh_token_expires_at` must be a datetime",
            )
        if expires_at is not None and is_expired(expires_at):
            raise OAuthError(ErrorKind.INVALID_GRANT, "Invalid grant: refresh token has expired")
        return token

    async def revoke_token(self, token: Any) -> Any:
        status = await call_model(self.model.revoke_token, token)
        if not status:
            raise OAuthError(ErrorKind.INVALID_GRANT, "Invalid grant: refresh token is invalid")
        return token

    async def _issue_rotated_token(self, old_token: Any, user: Any, client: Any) -> Token:
        scope = get_field(old_token, "scope")
        if self.always_issue_new_refresh_token is not False:
            return await self._issue_tokens(user, client, scope)

        valid_scope, access_token = await asyncio.gather(
            self.validate_scope(user, client, scope),
            self.generate_access_token(client, user, scope),
        )
        return Token(
            access_token=access_token,
            access_token_expires_at=self.get_access_token_expires_at(),
            refresh_token=get_field(old_token, "refresh_token"),
            refresh_token_expires_at=get_field(old_token, "refresh_token_expires_at"),
            scope=valid_scope,
        )
