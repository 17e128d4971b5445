# Authorization endpoint response types.
# Created: 2026-10-19

from __future__ import annotations

from types import MappingProxyType
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from pocketoauth.errors import ErrorKind, OAuthError

__all__ = ["CodeResponseType", "DEFAULT_RESPONSE_TYPES", "add_query_params"]


def add_query_params(uri: str, params: dict[str, str]) -> str:
    """Append *params* to the query string of *uri*, keeping what is there."""
    parts = urlsplit(uri)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend((key, str(value)) for key, value in params.items())
    return urlunsplit(parts._replace(query=urlencode(query, quote_via=quote)))


class CodeResponseType:
    """``response_type=code``: redirect back with the authorization code.

    See https://tools.ietf.org/html/rfc6749#section-4.1.2
    """

    def __init__(self, code: str | None):
        if not code:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `code`")
        self.code = code

    def build_redirect_uri(self, redirect_uri: str | None) -> str:
        if not redirect_uri:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `redirect_uri`")
        return add_query_params(redirect_uri, {"code": self.code})


# Only the authorization code flow; implicit ``token`` responses are not supported.
DEFAULT_RESPONSE_TYPES = MappingProxyType({"code": CodeResponseType})
