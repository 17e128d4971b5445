# Token endpoint.
# Created: 2026-10-19
#
# Authenticates the client, dispatches on ``grant_type`` and writes a bearer
# token (or an error body) into the response.
# See https://tools.ietf.org/html/rfc6749#section-3.2

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Mapping
from typing import Any

from pocketoauth import validator
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.grant_types import DEFAULT_GRANT_TYPES
from pocketoauth.invoke import call_model
from pocketoauth.models import TokenModel, get_field
from pocketoauth.request import Request, Response
from pocketoauth.token_types import BearerTokenType

logger = logging.getLogger(__name__)

__all__ = ["ClientCredentials", "TokenHandler"]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ClientCredentials(dict):
    """``{"client_id": ..., "client_secret": ...}``; the secret may be absent."""

    @property
    def client_id(self) -> str | None:
        return self.get("client_id")

    @property
    def client_secret(self) -> str | None:
        return self.get("client_secret")


def parse_basic_auth(header: str | None) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic`` header into ``(name, password)``."""
    if not header:
        return None
    scheme, _, encoded = str(header).strip().partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    name, separator, password = decoded.partition(":")
    if not separator:
        return None
    return name, password


class TokenHandler:
    """Handle ``POST /token`` requests."""

    def __init__(
        self,
        *,
        model: Any = None,
        access_token_lifetime: int | None = None,
        refresh_token_lifetime: int | None = None,
        extended_grant_types: Mapping[str, Any] | None = None,
        allow_extended_token_attributes: bool = False,
        require_client_authentication: Mapping[str, bool] | None = None,
        always_issue_new_refresh_token: bool | None = None,
        **_: Any,
    ):
        if not access_token_lifetime:
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Missing parameter: `access_token_lifetime`"
            )
        if model is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `model`")
        if not refresh_token_lifetime:
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Missing parameter: `refresh_token_lifetime`"
            )
        if not callable(getattr(model, "get_client", None)):
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT,
                "Invalid argument: model does not implement `get_client()`",
            )

        self.model = model
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.grant_types = {**DEFAULT_GRANT_TYPES, **(extended_grant_types or {})}
        self.allow_extended_token_attributes = allow_extended_token_attributes
        self.require_client_authentication = dict(require_client_authentication or {})
        self.always_issue_new_refresh_token = always_issue_new_refresh_token is not False

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
        if str(request.method).upper() != "POST":
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid request: method must be POST")
        if not request.is_type(FORM_CONTENT_TYPE):
            raise OAuthError(
                ErrorKind.INVALID_REQUEST, f"Invalid request: content must be {FORM_CONTENT_TYPE}"
            )

        try:
            client = await self.get_client(request, response)
            data = await self.handle_grant_type(request, client)
            model = TokenModel(
                data, allow_extended_token_attributes=self.allow_extended_token_attributes
            )
            self.update_success_response(response, self.get_token_type(model))
            return data
        except Exception as exc:
            error = OAuthError.wrap(exc)
            if error is not exc:
                logger.warning("Unexpected error while issuing token: %s", exc)
            self.update_error_response(response, error)
            if error is exc:
                raise
            raise error from exc

    async def get_client(self, request: Request, response: Response) -> Any:
        credentials = self.get_client_credentials(request)
        grant_type = request.body.get("grant_type")

        if not credentials.client_id:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `client_id`")
        if self.is_client_authentication_required(grant_type) and not credentials.client_secret:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `client_secret`")
        if not validator.vschar(credentials.client_id):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `client_id`")
        if credentials.client_secret and not validator.vschar(credentials.client_secret):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `client_secret`")

        try:
            client = await call_model(
                self.model.get_client, credentials.client_id, credentials.client_secret
            )
            if client is None:
                raise OAuthError(ErrorKind.INVALID_CLIENT, "Invalid client: client is invalid")

            grants = get_field(client, "grants")
            if grants is None:
                raise OAuthError(ErrorKind.SERVER_ERROR, "Server error: missing client `grants`")
            if not isinstance(grants, (list, tuple, set, frozenset)):
                raise OAuthError(ErrorKind.SERVER_ERROR, "Server error: `grants` must be a list")
            return client
        except OAuthError as exc:
            # Credentials sent via HTTP auth are answered with a Basic challenge.
            # See https://tools.ietf.org/html/rfc6749#section-5.2
            if exc.kind is ErrorKind.INVALID_CLIENT and request.get("authorization"):
                response.set("WWW-Authenticate", 'Basic realm="Service"')
                raise exc.with_status(401) from exc
            raise

    def get_client_credentials(self, request: Request) -> ClientCredentials:
        """Read client credentials from HTTP Basic auth or the request body.

        See https://tools.ietf.org/html/rfc6749#section-2.3.1
        """
        basic = parse_basic_auth(request.get("authorization"))
        grant_type = request.body.get("grant_type")
        client_id = request.body.get("client_id")
        client_secret = request.body.get("client_secret")

        if basic is not None:
            return ClientCredentials(client_id=basic[0], client_secret=basic[1])
        if client_id and client_secret:
            return ClientCredentials(client_id=client_id, client_secret=client_secret)
        if not self.is_client_authentication_required(grant_type) and client_id:
            return ClientCredentials(client_id=client_id)

        raise OAuthError(
            ErrorKind.INVALID_CLIENT, "Invalid client: cannot retrieve client credentials"
        )

    async def handle_grant_type(self, request: Request, client: Any) -> Any:
        grant_type = request.body.get("grant_type")
        if not grant_type:
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Missing parameter: `grant_type`")
        if not validator.nchar(grant_type) and not validator.uri(grant_type):
            raise OAuthError(ErrorKind.INVALID_REQUEST, "Invalid parameter: `grant_type`")
        if grant_type not in self.grant_types:
            raise OAuthError(
                ErrorKind.UNSUPPORTED_GRANT_TYPE, "Unsupported grant type: `grant_type` is invalid"
            )
        if grant_type not in get_field(client, "grants"):
            raise OAuthError(
                ErrorKind.UNAUTHORIZED_CLIENT, "Unauthorized client: `grant_type` is invalid"
            )

        logger.debug("Handling %s grant for client %s", grant_type, get_field(client, "id"))
        grant = self.grant_types[grant_type](
            model=self.model,
            access_token_lifetime=self.get_access_token_lifetime(client),
            refresh_token_lifetime=self.get_refresh_token_lifetime(client),
            always_issue_new_refresh_token=self.always_issue_new_refresh_token,
        )
        return await grant.handle(request, client)

    def get_access_token_lifetime(self, client: Any) -> int:
        return get_field(client, "access_token_lifetime") or self.access_token_lifetime

    def get_refresh_token_lifetime(self, client: Any) -> int:
        return get_field(client, "refresh_token_lifetime") or self.refresh_token_lifetime

    def get_token_type(self, model: TokenModel) -> BearerTokenType:
        return BearerTokenType(
            model.access_token,
            model.access_token_lifetime,
            model.refresh_token,
            model.scope,
            model.custom_attributes,
        )

    def update_success_response(self, response: Response, token_type: BearerTokenType) -> None:
        response.body = token_type.value_of()
        response.set("Cache-Control", "no-store")
        response.set("Pragma", "no-cache")

    def update_error_response(self, response: Response, error: OAuthError) -> None:
        response.body = error.to_dict()
        response.status = error.status

    def is_client_authentication_required(self, grant_type: str | None) -> bool:
        if not self.require_client_authentication:
            return True
        return self.require_client_authentication.get(grant_type, True) is not False
