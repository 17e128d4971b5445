# Authorization endpoint.
# Created: 2026-10-19
#
# Implements the authorization request of the code flow (RFC 6749 4.1.1).
# Outcomes, success or error, are communicated by redirecting the user agent
# back to the client's redirect URI.

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from pocketoauth import validator
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.handlers.authenticate import AuthenticateHandler
from pocketoauth.invoke import call_model
from pocketoauth.models import AuthorizationCode, get_field, utcnow
from pocketoauth.request import Request, Response
from pocketoauth.response_types import DEFAULT_RESPONSE_TYPES, add_query_params
from pocketoauth.token_util import generate_random_token

logger = logging.getLogger(__name__)

__all__ = ["AuthorizeHandler"]


class AuthorizeHandler:
    """Issue authorization codes and redirect back to the client."""

    def __init__(
        self,
        *,
        model: Any = None,
        authorization_code_lifetime: int | None = None,
        authenticate_handler: Any = None,
        allow_empty_state: bool = False,
        response_types: Mapping[str, type] | None = None,
        **options: Any,
    ):
        if authenticate_handler is not None and not callable(
            getattr(authenticate_handler, "handle", None)
        ):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT,
                "Invalid argument: authenticate_handler does not implement `handle()`",
            )
        if not authorization_code_lifetime:
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Missing parameter: `authorization_code_lifetime`"
            )
        if model is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `model`")
        for name in ("get_client", "save_authorization_code"):
            if not callable(getattr(model, name, None)):
                raise OAuthError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"Invalid argument: model does not implement `{name}()`",
                )

        self.model = model
        self.allow_empty_state = allow_empty_state
        self.authorization_code_lifetime = authorization_code_lifetime
        self.authenticate_handler = authenticate_handler or AuthenticateHandler(
            model=model, **options
        )
        self.response_types = dict(
            DEFAULT_RESPONSE_TYPES if response_types is None else response_types
        )

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

        if request.query.get("allowed") == "false":
            raise OAuthError(
                ErrorKind.ACCESS_DENIED, "Access denied: user denied access to application"
            )

        expires_at = self.get_authorization_code_expires_at()
        client, user = await asyncio.gather(
            self.get_client(request),
            self.get_user(request, response),
            return_exceptions=True,
        )

        # No redirect target exists until the client is known; fail directly.
        if isinstance(client, BaseException):
            if isinstance(client, OAuthError):
                raise client
            logger.warning("Unexpected error while resolving client: %s", client)
            raise OAuthError.wrap(client) from client

        uri = self.get_redirect_uri(request, client)
        state = None
        try:
            if isinstance(user, BaseException):
                with contextlib.suppress(OAuthError):
                    state = self.get_state(request)
                raise user
            state = self.get_state(request)
            scope = await self.validate_scope(user, client, self.get_scope(request))
            response_type_class = self.get_response_type(request)
            authorization_code = await self.generate_authorization_code(client, user, scope)
            code = await self.save_authorization_code(
                authorization_code, expires_at, scope, client, uri, user
            )

            response_type = response_type_class(
                get_field(code, "authorization_code") or authorization_code
            )
            redirect_uri = self.build_success_redirect_uri(uri, response_type)
            self.update_response(response, redirect_uri, state)
            logger.debug("Issued authorization code for client %s", get_field(client, "id"))
            return code
        except Exception as exc:
            error = OAuthError.wrap(exc)
            if error is not exc:
                logger.warning("Unexpected error while authorizing request: %s", exc)
            self.update_response(response, self.build_error_redirect_uri(uri, error), state)
            if error is exc:
                raise
            raise error from exc

    async def generate_authorization_code(self, client: Any, user: Any, scope: str | None) -> str:
        generate = getattr(self.model, "generate_authorization_code", None)
        if generate is not None:
            code = await call_model(generate, client, user, scope)
            if code:
                return code
        return await generate_random_token()

    def get_authorization_code_expires_at(self) -> datetime:
        return utcnow() + timedelta(seconds=self.authorization_code_lifetime)

    async def get_client(self, request: Request) -> Any:
        client_id = _param(request, "client_id")
        if not client_id:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `client_id`")
        if not validator.vschar(client_id):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `client_id`")

        redirect_uri = _param(request, "redirect_uri")
        if redirect_uri and not validator.uri(redirect_uri):
            raise OAuthError(
                ErrorKind.INVALID_REQUEST, "Invalid request: `redirect_uri` is not a valid URI"
            )

        client = await call_model(self.model.get_client, client_id, None)
        if client is None:
            raise OAuthError(
                ErrorKind.INVALID_CLIENT, "Invalid client: client credentials are invalid"
            )

        grants = get_field(client, "grants")
        if not grants:
            raise OAuthError(ErrorKind.INVALID_CLIENT, "Invalid client: missing client `grants`")
        if "authorization_code" not in grants:
            raise OAuthError(
                ErrorKind.UNAUTHORIZED_CLIENT, "Unauthorized client: `grant_type` is invalid"
            )

        redirect_uris = get_field(client, "redirect_uris")
        if not redirect_uris:
            raise OAuthError(
                ErrorKind.INVALID_CLIENT, "Invalid client: missing client `redirect_uri`"
            )
        if redirect_uri and redirect_uri not in redirect_uris:
            raise OAuthError(
                ErrorKind.INVALID_CLIENT,
                "Invalid client: `redirect_uri` does not match client value",
            )
        return client

    async def validate_scope(self, user: Any, client: Any, scope: str | None) -> str | None:
        validate = getattr(self.model, "validate_scope", None)
        if validate is None:
            return scope
        valid_scope = await call_model(validate, user, client, scope)
        if not valid_scope:
            raise OAuthError(ErrorKind.INVALID_SCOPE, "Invalid scope: Requested scope is invalid")
        return valid_scope

    def get_scope(self, request: Request) -> str | None:
        scope = _param(request, "scope")
        if not scope:
            return None
        if not validator.nqschar(scope):
            raise OAuthError(ErrorKind.INVALID_SCOPE, "Invalid parameter: `scope`")
        return scope

    def get_state(self, request: Request) -> str | None:
        state = _param(request, "state")
        if not state:
            if not self.allow_empty_state:
                raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `state`")
            return None
        if not validator.vschar(state):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `state`")
        return state

    async def get_user(self, request: Request, response: Response) -> Any:
        if isinstance(self.authenticate_handler, AuthenticateHandler):
            token = await self.authenticate_handler.handle(request, response)
            return get_field(token, "user")

        result = await call_model(self.authenticate_handler.handle, request, response)
        user = get_field(result, "user")
        if user is None:
            raise OAuthError(
                ErrorKind.SERVER_ERROR, "Server error: `handle()` did not return a `user` object"
            )
        return user

    def get_redirect_uri(self, request: Request, client: Any) -> str:
        return _param(request, "redirect_uri") or get_field(client, "redirect_uris")[0]

    async def save_authorization_code(
        self,
        authorization_code: str,
        expires_at: datetime,
        scope: str | None,
        client: Any,
        redirect_uri: str,
        user: Any,
    ) -> Any:
        code = AuthorizationCode(
            authorization_code=authorization_code,
            expires_at=expires_at,
            redirect_uri=redirect_uri,
            scope=scope,
        )
        return await call_model(self.model.save_authorization_code, code, client, user)

    def get_response_type(self, request: Request) -> type:
        response_type = _param(request, "response_type")
        if not response_type:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `response_type`")
        if response_type not in self.response_types:
            raise OAuthError(
                ErrorKind.UNSUPPORTED_RESPONSE_TYPE,
                "Unsupported response type: `response_type` is not supported",
            )
        return self.response_types[response_type]

    def build_success_redirect_uri(self, redirect_uri: str, response_type: Any) -> str:
        return response_type.build_redirect_uri(redirect_uri)

    def build_error_redirect_uri(self, redirect_uri: str, error: OAuthError) -> str:
        params = {"error": error.code}
        if error.message:
            params["error_description"] = error.message
        return add_query_params(redirect_uri, params)

    def update_response(self, response: Response, redirect_uri: str, state: str | None) -> None:
        if state:
            redirect_uri = add_query_params(redirect_uri, {"state": state})
        response.redirect(redirect_uri)


def _param(request: Request, name: str) -> Any:
    value = request.body.get(name)
    if value:
        return value
    return request.query.get(name)
