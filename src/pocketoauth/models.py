# OAuth2 data models.
# Created: 2026-10-19
#
# The storage model owns clients, users, codes and tokens. These dataclasses
# are a convenient shape for it to return, but the core reads fields through
# ``get_field`` so plain mappings and arbitrary attribute objects work too.

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import UTC, datetime
from typing import Any

from pocketoauth.errors import ErrorKind, OAuthError

__all__ = [
    "AuthorizationCode",
    "Client",
    "Token",
    "TokenModel",
    "as_utc",
    "get_field",
    "is_expired",
    "utcnow",
]


@dataclass
class Client:
    """Registered OAuth2 client."""

    id: str
    secret: str | None = None
    grants: list[str] = field(default_factory=list)
    redirect_uris: list[str] = field(default_factory=list)
    access_token_lifetime: int | None = None
    refresh_token_lifetime: int | None = None


@dataclass
class AuthorizationCode:
    """Short-lived, single-use authorization code."""

    authorization_code: str
    expires_at: datetime
    scope: str | None = None
    redirect_uri: str | None = None
    client: Any = None
    user: Any = None


@dataclass
class Token:
    """Access token, optionally paired with a refresh token.

    ``extra`` holds non-standard attributes; they reach the wire only when
    extended token attributes are enabled.
    """

    access_token: str
    client: Any = None
    user: Any = None
    access_token_expires_at: datetime | None = None
    refresh_token: str | None = None
    refresh_token_expires_at: datetime | None = None
    scope: str | None = None
    authorization_code: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def get_field(obj: Any, name: str, default: Any = None) -> Any:
    """Read *name* from a mapping or an attribute object."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes coming from storage are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_expired(value: datetime) -> bool:
    return as_utc(value) < utcnow()


# Attributes with a defined meaning on the wire or in the core.
MODEL_ATTRIBUTES = frozenset(
    {
        "access_token",
        "access_token_expires_at",
        "refresh_token",
        "refresh_token_expires_at",
        "scope",
        "client",
        "user",
    }
)


def _as_dict(data: Any) -> dict[str, Any]:
    if isinstance(data, Mapping):
        return dict(data)
    if is_dataclass(data) and not isinstance(data, type):
        values = {f.name: getattr(data, f.name) for f in fields(data)}
        values.update(values.pop("extra", None) or {})
        return values
    return dict(vars(data))


class TokenModel:
    """Validated projection of a saved token, ready for a token-type view."""

    def __init__(self, data: Any, *, allow_extended_token_attributes: bool = False):
        values = _as_dict(data) if data is not None else {}

        if not values.get("access_token"):
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `access_token`")
        if values.get("client") is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `client`")
        if values.get("user") is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `user`")

        access_expires = values.get("access_token_expires_at")
        if access_expires is not None and not isinstance(access_expires, datetime):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Invalid parameter: `access_token_expires_at`"
            )
        refresh_expires = values.get("refresh_token_expires_at")
        if refresh_expires is not None and not isinstance(refresh_expires, datetime):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Invalid parameter: `refresh_token_expires_at`"
            )

        self.access_token: str = values["access_token"]
        self.access_token_expires_at: datetime | None = access_expires
        self.client = values["client"]
        self.refresh_token: str | None = values.get("refresh_token")
        self.refresh_token_expires_at: datetime | None = refresh_expires
        self.scope: str | None = values.get("scope")
        self.user = values["user"]

        self.custom_attributes: dict[str, Any] | None = None
        if allow_extended_token_attributes:
            self.custom_attributes = {
                key: value
                for key, value in values.items()
                if key not in MODEL_ATTRIBUTES and value is not None and not key.startswith("_")
            }

        self.access_token_lifetime: int | None = None
        if access_expires is not None:
            remaining = (as_utc(access_expires) - utcnow()).total_seconds()
            self.access_token_lifetime = math.floor(remaining)
