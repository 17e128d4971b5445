# Bearer token authentication for protected resources.
# Created: 2026-10-19

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.invoke import call_model
from pocketoauth.models import get_field, is_expired
from pocketoauth.request import Request, Response

logger = logging.getLogger(__name__)

__all__ = ["AuthenticateHandler"]

_BEARER = re.compile(r"Bearer\s(\S+)")


class AuthenticateHandler:
    """Resolve the access token presented with a request.

    The token may come from exactly one of the ``Authorization`` header, the
    ``access_token`` query parameter (opt-in) or a form-encoded body.
    See https://tools.ietf.org/html/rfc6750#section-2
    """

    def __init__(
        self,
        *,
        model: Any = None,
        scope: str | None = None,
        add_accepted_scopes_header: bool | None = None,
        add_authorized_scopes_header: bool | None = None,
        allow_bearer_tokens_in_query_string: bool = False,
        **_: Any,
    ):
        if model is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `model`")
        if not callable(getattr(model, "get_access_token", None)):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT,
                "Invalid argument: model does not implement `get_access_token()`",
            )
        if scope and add_accepted_scopes_header is None:
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Missing parameter: `add_accepted_scopes_header`"
            )
        if scope and add_authorized_scopes_header is None:
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Missing parameter: `add_authorized_scopes_header`"
            )
        if scope and not callable(getattr(model, "verify_scope", None)):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT,
                "Invalid argument: model does not implement `verify_scope()`",
            )

        self.model = model
        self.scope = scope
        self.add_accepted_scopes_header = add_accepted_scopes_header
        self.add_authorized_scopes_header = add_authorized_scopes_header
        self.allow_bearer_tokens_in_query_string = allow_bearer_tokens_in_query_string

    async def handle(self, request: Request, response: Response) -> Any:
        if not isinstance(request, Request):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT,
                "Invalid argument: `request` must be an instance of Request",
            )
        if not isinstance(response, Response):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT,
                "Invalid argument: `response` must be an instance of Response",
            )

        try:
            request_token = self.get_token_from_request(request)
            access_token = await self.get_access_token(request_token)
            self.validate_access_token(access_token)
            if self.scope:
                await self.verify_scope(access_token)
            self.update_response(response, access_token)
            return access_token
        except OAuthError as exc:
            if exc.kind is ErrorKind.UNAUTHORIZED_REQUEST:
                response.set("WWW-Authenticate", 'Bearer realm="Service"')
            raise
        except Exception as exc:
            logger.warning("Unexpected error while authenticating request: %s", exc)
            raise OAuthError.wrap(exc) from exc

    def get_token_from_request(self, request: Request) -> str:
        header_token = request.get("Authorization")
        query_token = request.query.get("access_token")
        body_token = request.body.get("access_token")

        if sum(1 for t in (header_token, query_token, body_token) if t) > 1:
            raise OAuthError(
                ErrorKind.INVALID_REQUEST,
                "Invalid request: only one authentication method is allowed",
            )
        if header_token:
            return self.get_token_from_request_header(request)
        if query_token:
            return self.get_token_from_request_query(request)
        if body_token:
            return self.get_token_from_request_body(request)
        raise OAuthError(
            ErrorKind.UNAUTHORIZED_REQUEST, "Unauthorized request: no authentication given"
        )

    def get_token_from_request_header(self, request: Request) -> str:
        """See https://tools.ietf.org/html/rfc6750#section-2.1"""
        match = _BEARER.match(str(request.get("Authorization")))
        if match is None:
            raise OAuthError(
                ErrorKind.INVALID_REQUEST, "Invalid request: malformed authorization header"
            )
        return match.group(1)

    def get_token_from_request_query(self, request: Request) -> str:
        """See https://tools.ietf.org/html/rfc6750#section-2.3"""
        if not self.allow_bearer_tokens_in_query_string:
            raise OAuthError(
                ErrorKind.INVALID_REQUEST,
                "Invalid request: do not send bearer tokens in query URLs",
            )
        return request.query["access_token"]

    def get_token_from_request_body(self, request: Request) -> str:
        """See https://tools.ietf.org/html/rfc6750#section-2.2"""
        if str(request.method).upper() == "GET":
            raise OAuthError(
                ErrorKind.INVALID_REQUEST,
                "Invalid request: token may not be passed in the body when using the GET verb",
            )
        if not request.is_type("application/x-www-form-urlencoded"):
            raise OAuthError(
                ErrorKind.INVALID_REQUEST,
                "Invalid request: content must be application/x-www-form-urlencoded",
            )
        return request.body["access_token"]

    async def get_access_token(self, token: str) -> Any:
        access_token = await call_model(self.model.get_access_token, token)
        if not access_token:
            raise OAuthError(ErrorKind.INVALID_TOKEN, "Invalid token: access token is invalid")
        if get_field(access_token, "user") is None:
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `get_access_token()` did not return a `user` object",
            )
        return access_token

    def validate_access_token(self, access_token: Any) -> Any:
        expires_at = get_field(access_token, "access_token_expires_at")
        if not isinstance(expires_at, datetime):
            raise OAuthError(
                ErrorKind.SERVER_ERROR,
                "Server error: `access_token_expires_at` must be a datetime",
            )
        if is_expired(expires_at):
            raise OAuthError(ErrorKind.INVALID_TOKEN, "Invalid token: access token has expired")
        return access_token

    async def verify_scope(self, access_token: Any) -> Any:
        scope = await call_model(self.model.verify_scope, access_token, self.scope)
        if not scope:
            raise OAuthError(
                ErrorKind.INSUFFICIENT_SCOPE, "Insufficient scope: authorized scope is insufficient"
            )
        return scope

    def update_response(self, response: Response, access_token: Any) -> None:
        if self.scope and self.add_accepted_scopes_header:
            response.set("X-Accepted-OAuth-Scopes", self.scope)
        if self.scope and self.add_authorized_scopes_header:
            response.set("X-OAuth-Scopes", get_field(access_token, "scope"))
