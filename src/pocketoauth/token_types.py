# Token-type views for the token endpoint.
# Created: 2026-10-19

from __future__ import annotations

from typing import Any

from pocketoauth.errors import ErrorKind, OAuthError

__all__ = ["BearerTokenType"]


class BearerTokenType:
    """RFC 6750 bearer token response body.

    See https://tools.ietf.org/html/rfc6750#section-4
    """

    token_type = "Bearer"

    def __init__(
        self,
        access_token: str | None,
        access_token_lifetime: Any = None,
        refresh_token: str | None = None,
        scope: str | None = None,
        custom_attributes: dict[str, Any] | None = None,
    ):
        if not access_token:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `access_token`")

        self.access_token = access_token
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token = refresh_token
        self.scope = scope
        self.custom_attributes = custom_attributes

    def value_of(self) -> dict[str, Any]:
        value: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.access_token_lifetime:
            value["expires_in"] = self.access_token_lifetime
        if self.refresh_token:
            value["refresh_token"] = self.refresh_token
        if self.scope:
            value["scope"] = self.scope
        if self.custom_attributes:
            for key, attribute in self.custom_attributes.items():
                value[key] = attribute
        return value
