# Grant-type engine.
# Created: 2026-10-19
#
# Built-in grants keyed by their ``grant_type`` identifier. Extension grants
# are registered alongside them by the token handler, never by mutating this
# mapping.

from __future__ import annotations

from types import MappingProxyType

from pocketoauth.grant_types.authorization_code import AuthorizationCodeGrantType
from pocketoauth.grant_types.base import AbstractGrantType, GrantType
from pocketoauth.grant_types.client_credentials import ClientCredentialsGrantType
from pocketoauth.grant_types.password import PasswordGrantType
from pocketoauth.grant_types.refresh_token import RefreshTokenGrantType

__all__ = [
    "AbstractGrantType",
    "AuthorizationCodeGrantType",
    "ClientCredentialsGrantType",
    "DEFAULT_GRANT_TYPES",
    "GrantType",
    "PasswordGrantType",
    "RefreshTokenGrantType",
]

DEFAULT_GRANT_TYPES = MappingProxyType(
    {
        "authorization_code": AuthorizationCodeGrantType,
        "client_credentials": ClientCredentialsGrantType,
        "password": PasswordGrantType,
        "refresh_token": RefreshTokenGrantType,
    }
)
