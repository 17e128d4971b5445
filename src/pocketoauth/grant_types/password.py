# Resource owner password credentials grant.
# Created: 2026-10-19

from __future__ import annotations

from typing import Any

from pocketoauth import validator
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.grant_types.base import AbstractGrantType
from pocketoauth.invoke import call_model
from pocketoauth.request import Request

__all__ = ["PasswordGrantType"]


class PasswordGrantType(AbstractGrantType):
    """See https://tools.ietf.org/html/rfc6749#section-4.3.2"""

    required_model_methods = ("get_user", "save_token")

    async def handle(self, request: Request, client: Any) -> Any:
        self._check_handle_args(request, client)

        scope = self.get_scope(request)
        user = await self.get_user(request)
        token = await self._issue_tokens(user, client, scope)
        return await self.save_token(token, client, user)

    async def get_user(self, request: Request) -> Any:
        username = request.body.get("username")
        password = request.body.get("password")

        if not username:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `username`")
        if not password:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `password`")
        if not validator.uchar(username):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `username`")
        if not validator.uchar(password):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `password`")

        user = await call_model(self.model.get_user, username, password)
        if user is None:
            raise OAuthError(ErrorKind.INVALID_GRANT, "Invalid grant: user credentials are invalid")
        return user
