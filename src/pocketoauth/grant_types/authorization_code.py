# Authorization code grant.
# Created: 2026-10-19

from __future__ import annotations

from datetime import datetime
from typing import Any

from pocketoauth import validator
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.grant_types.base import AbstractGrantType
from pocketoauth.invoke import call_model
from pocketoauth.models import get_field, is_expired
from pocketoauth.request import Request

__all__ = ["AuthorizationCodeGrantType"]


class AuthorizationCodeGrantType(AbstractGrantType):
    """Exchange a single-use authorization code for tokens.

    See https://tools.ietf.org/html/rfc6749#section-4.1.3
    """

    required_model_methods = ("get_authorization_code", "revoke_authorization_code", "save_token")

    async def handle(self, request: Request, client: Any) -> Any:
        self._check_handle_args(request, client)

        code = await self.get_authorization_code(request, client)
        self.validate_redirect_uri(request, code)
        await self.revoke_authorization_code(code)

        token = await self._issue_tokens(
            get_field(code, "user"), client, get_field(code, "scope")
        )
        token.authorization_code = get_field(code, "authorization_code")
        return await self.save_token(token, client, get_field(code, "user"))

    async def get_authorization_code(self, request: Request, client: Any) -> Any:
        value = request.body.get("code")
        if not value:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `code`")
        if not validator.vschar(value):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `code`")

        code = await call_model(self.model.get_authorization_code, value)
        if not code:
            raise OAuthError(
                ErrorKind.INVALID_GRANT, "Invalid grant: authorization code is invalid"
            )

        code_client = get_field(code, "client")
        if code_client is None:
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `get_authorization_code()` did not return a `client` object",
            )
        if get_field(code, "user") is None:
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `get_authorization_code()` did not return a `user` object",
            )
        if get_field(code_client, "id") != get_field(client, "id"):
            raise OAuthError(
                ErrorKind.INVALID_GRANT, "Invalid grant: authorization code is invalid"
            )

        expires_at = get_field(code, "expires_at")
        if not isinstance(expires_at, datetime):
            raise OAuthError(
                ErrorKind.SERVER_ERROR, "Server error: `expires_at` must be a datetime"
            )
        if is_expired(expires_at):
            raise OAuthError(
                ErrorKind.INVALID_GRANT, "Invalid grant: authorization code has expired"
            )

        redirect_uri = get_field(code, "redirect_uri")
        if redirect_uri and not validator.uri(redirect_uri):
            raise OAuthError(
                ErrorKind.INVALID_GRANT, "Invalid grant: `redirect_uri` is not a valid URI"
            )
        return code

    def validate_redirect_uri(self, request: Request, code: Any) -> None:
        """The redirect URI must repeat the one bound to the code, if any.

        See https://tools.ietf.org/html/rfc6749#section-4.1.3
        """
        expected = get_field(code, "redirect_uri")
        if not expected:
            return

        redirect_uri = request.body.get("redirect_uri") or request.query.get("redirect_uri")
        if not validator.uri(redirect_uri):
            raise OAuthError(
                ErrorKind.INVALID_REQUEST, "Invalid request: `redirect_uri` is not a valid URI"
            )
        if redirect_uri != expected:
            raise OAuthError(
                ErrorKind.INVALID_REQUEST, "Invalid request: `redirect_uri` is invalid"
            )

    async def revoke_authorization_code(self, code: Any) -> Any:
        """Invalidate the code before any token is issued from it.

        A falsy result means the code was already spent or is unknown.
        See https://tools.ietf.org/html/rfc6749#section-4.1.2
        """
        status = await call_model(self.model.revoke_authorization_code, code)
        if not status:
            raise OAuthError(
                ErrorKind.INVALID_GRANT, "Invalid grant: authorization code is invalid"
            )
        return code
