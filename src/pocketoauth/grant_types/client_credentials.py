# Client credentials grant.
# Created: 2026-10-19

from __future__ import annotations

from typing import Any

from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.grant_types.base import AbstractGrantType
from pocketoauth.invoke import call_model
from pocketoauth.request import Request

__all__ = ["ClientCredentialsGrantType"]


class ClientCredentialsGrantType(AbstractGrantType):
    """Issue an access token to a client acting on its own behalf.

    No refresh token is issued.
    See https://tools.ietf.org/html/rfc6749#section-4.4
    """

    required_model_methods = ("get_user_from_client", "save_token")

    async def handle(self, request: Request, client: Any) -> Any:
        self._check_handle_args(request, client)

        scope = self.get_scope(request)
        user = await self.get_user_from_client(client)
        token = await self._issue_tokens(user, client, scope, with_refresh_token=False)
        return await self.save_token(token, client, user)

    async def get_user_from_client(self, client: Any) -> Any:
        user = await call_model(self.model.get_user_from_client, client)
        if user is None:
            raise OAuthError(ErrorKind.INVALID_GRANT, "Invalid grant: user credentials are invalid")
        return user
