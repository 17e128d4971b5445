# OAuth2 protocol errors.
# Created: 2026-10-19
#
# One exception type for every protocol failure. The ``kind`` tag decides the
# HTTP status and the wire-level ``error`` code; handlers and tests dispatch
# on ``kind`` rather than on subclasses.

from __future__ import annotations

from enum import Enum

__all__ = ["ErrorKind", "OAuthError"]


class ErrorKind(Enum):
    """Protocol error kinds as ``(default HTTP status, wire code)``.

    See https://tools.ietf.org/html/rfc6749#section-4.1.2.1 and
    https://tools.ietf.org/html/rfc6750#section-3.1
    """

    INVALID_ARGUMENT = (500, "invalid_argument")
    INVALID_REQUEST = (400, "invalid_request")
    INVALID_CLIENT = (400, "invalid_client")
    INVALID_GRANT = (400, "invalid_grant")
    INVALID_SCOPE = (400, "invalid_scope")
    UNAUTHORIZED_CLIENT = (400, "unauthorized_client")
    UNSUPPORTED_GRANT_TYPE = (400, "unsupported_grant_type")
    UNSUPPORTED_RESPONSE_TYPE = (400, "unsupported_response_type")
    ACCESS_DENIED = (400, "access_denied")
    SERVER_ERROR = (503, "server_error")
    INVALID_TOKEN = (401, "invalid_token")
    INSUFFICIENT_SCOPE = (403, "insufficient_scope")
    UNAUTHORIZED_REQUEST = (401, "unauthorized_request")

    @property
    def status(self) -> int:
        return self.value[0]

    @property
    def code(self) -> str:
        return self.value[1]


class OAuthError(Exception):
    """A protocol error with a kind, HTTP status, wire code and message."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        status: int | None = None,
        cause: BaseException | None = None,
    ):
        self.kind = kind
        self.status = status if status is not None else kind.status
        self.code = kind.code
        self.message = message if message is not None else kind.code
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"OAuthError({self.kind.name}, {self.message!r}, status={self.status})"

    @classmethod
    def wrap(cls, exc: BaseException) -> OAuthError:
        """Return *exc* if it is already a protocol error, else a server error around it."""
        if isinstance(exc, OAuthError):
            return exc
        return cls(ErrorKind.SERVER_ERROR, str(exc) or exc.__class__.__name__, cause=exc)

    def with_status(self, status: int) -> OAuthError:
        """Copy of this error answering with a different HTTP status."""
        return OAuthError(self.kind, self.message, status=status, cause=self.cause or self)

    def to_dict(self) -> dict[str, str]:
        """Error body for the token endpoint."""
        body = {"error": self.code}
        if self.message:
            body["error_description"] = self.message
        return body
