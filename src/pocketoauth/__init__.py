# PocketOAuth: framework-neutral OAuth2 authorization server core.
# Created: 2026-10-19
#
# Authorization code, client credentials, password and refresh token grants
# (RFC 6749), bearer tokens (RFC 6750), and pluggable extension grants.

from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.grant_types import (
    AbstractGrantType,
    AuthorizationCodeGrantType,
    ClientCredentialsGrantType,
    PasswordGrantType,
    RefreshTokenGrantType,
)
from pocketoauth.handlers import AuthenticateHandler, AuthorizeHandler, TokenHandler
from pocketoauth.models import AuthorizationCode, Client, Token
from pocketoauth.request import Request, Response
from pocketoauth.server import OAuth2Server

__version__ = "0.1.0"

__all__ = [
    "AbstractGrantType",
    "AuthenticateHandler",
    "AuthorizationCode",
    "AuthorizationCodeGrantType",
    "AuthorizeHandler",
    "Client",
    "ClientCredentialsGrantType",
    "ErrorKind",
    "OAuth2Server",
    "OAuthError",
    "PasswordGrantType",
    "RefreshTokenGrantType",
    "Request",
    "Response",
    "Token",
    "TokenHandler",
]
