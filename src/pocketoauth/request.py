# Framework-neutral request and response wrappers.
# Created: 2026-10-19
#
# Adapters (see ``pocketoauth.api``) translate framework objects into these;
# the handlers only ever see this shape.

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pocketoauth.errors import ErrorKind, OAuthError

__all__ = ["Request", "Response"]


def _lower_keys(headers: Mapping[str, Any] | None) -> dict[str, Any]:
    return {str(k).lower(): v for k, v in (headers or {}).items()}


def _media_type(value: str) -> str:
    return value.split(";", 1)[0].strip().lower()


class Request:
    """Inbound request: ``headers``, ``method``, ``query`` and ``body``.

    Extra keyword arguments are kept as attributes so adapters can carry
    framework-specific context through the handlers.
    """

    def __init__(
        self,
        headers: Mapping[str, Any] | None = None,
        method: str | None = None,
        query: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        **extra: Any,
    ):
        if headers is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `headers`")
        if method is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `method`")
        if query is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `query`")

        self.headers = _lower_keys(headers)
        self.method = method
        self.query = dict(query)
        self.body = dict(body or {})
        for key, value in extra.items():
            setattr(self, key, value)

    def get(self, field: str) -> Any:
        """Case-insensitive header lookup."""
        return self.headers.get(field.lower())

    def is_type(self, *types: str) -> str | bool:
        """Return the first of *types* matching the content type, else ``False``."""
        content_type = self.get("content-type")
        if not content_type:
            return False
        actual = _media_type(str(content_type))
        for candidate in types:
            if _media_type(candidate) == actual:
                return candidate
        return False


class Response:
    """Outbound response built up by the handlers."""

    def __init__(
        self,
        headers: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        status: int = 200,
        **extra: Any,
    ):
        self.headers = _lower_keys(headers)
        self.body: dict[str, Any] = dict(body or {})
        self.status = status
        for key, value in extra.items():
            setattr(self, key, value)

    def get(self, field: str) -> Any:
        return self.headers.get(field.lower())

    def set(self, field: str, value: Any) -> None:
        self.headers[field.lower()] = value

    def redirect(self, url: str) -> None:
        self.set("Location", url)
        self.status = 302
