# Shared grant-type behaviour.
# Created: 2026-10-19

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, Protocol

from pocketoauth import validator
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.invoke import call_model
from pocketoauth.models import Token, utcnow
from pocketoauth.request import Request
from pocketoauth.token_util import generate_random_token

__all__ = ["AbstractGrantType", "GrantType"]


class GrantType(Protocol):
    """Anything the token handler can dispatch a ``grant_type`` to."""

    async def handle(self, request: Request, client: Any) -> Any: ...


class AbstractGrantType:
    """Token lifetimes, token generation and scope checks common to every grant.

    Subclasses list the model methods they need in ``required_model_methods``
    and implement ``handle(request, client)``.
    """

    required_model_methods: tuple[str, ...] = ()

    def __init__(
        self,
        *,
        model: Any = None,
        access_token_lifetime: int | None = None,
        refresh_token_lifetime: int | None = None,
        always_issue_new_refresh_token: bool | None = None,
    ):
        if not access_token_lifetime:
            raise OAuthError(
                ErrorKind.INVALID_ARGUMENT, "Missing parameter: `access_token_lifetime`"
            )
        if model is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `model`")
        for name in self.required_model_methods:
            if not callable(getattr(model, name, None)):
                raise OAuthError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"Invalid argument: model does not implement `{name}()`",
                )

        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.model = model
        self.always_issue_new_refresh_token = always_issue_new_refresh_token

    async def handle(self, request: Request, client: Any) -> Any:
        raise NotImplementedError

    def _check_handle_args(self, request: Request | None, client: Any) -> None:
        if request is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `request`")
        if client is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `client`")

    async def generate_access_token(self, client: Any, user: Any, scope: str | None) -> str:
        generate = getattr(self.model, "generate_access_token", None)
        if generate is not None:
            access_token = await call_model(generate, client, user, scope)
            if access_token:
                return access_token
        return await generate_random_token()

    async def generate_refresh_token(self, client: Any, user: Any, scope: str | None) -> str:
        generate = getattr(self.model, "generate_refresh_token", None)
        if generate is not None:
            refresh_token = await call_model(generate, client, user, scope)
            if refresh_token:
                return refresh_token
        return await generate_random_token()

    def get_access_token_expires_at(self) -> datetime:
        return utcnow() + timedelta(seconds=self.access_token_lifetime)

    def get_refresh_token_expires_at(self) -> datetime | None:
        if not self.refresh_token_lifetime:
            return None
        return utcnow() + timedelta(seconds=self.refresh_token_lifetime)

    def get_scope(self, request: Request) -> str | None:
        scope = request.body.get("scope")
        if not scope:
            return None
        if not validator.nqschar(scope):
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Invalid parameter: `scope`")
        return scope

    async def validate_scope(self, user: Any, client: Any, scope: str | None) -> str | None:
        validate = getattr(self.model, "validate_scope", None)
        if validate is None:
            return scope
        valid_scope = await call_model(validate, user, client, scope)
        if not valid_scope:
            raise OAuthError(ErrorKind.INVALID_SCOPE, "Invalid scope: Requested scope is invalid")
        return valid_scope

    async def save_token(self, token: Token, client: Any, user: Any) -> Any:
        return await call_model(self.model.save_token, token, client, user)

    async def _issue_tokens(
        self, user: Any, client: Any, scope: str | None, *, with_refresh_token: bool = True
    ) -> Token:
        """Validate scope and mint tokens concurrently; any failure cancels issuance."""
        if with_refresh_token:
            valid_scope, access_token, refresh_token = await asyncio.gather(
                self.validate_scope(user, client, scope),
                self.generate_access_token(client, user, scope),
                self.generate_refresh_token(client, user, scope),
            )
            return Token(
                access_token=access_token,
                access_token_expires_at=self.get_access_token_expires_at(),
                refresh_token=refresh_token,
                refresh_token_expires_at=self.get_refresh_token_expires_at(),
                scope=valid_scope,
            )

        valid_scope, access_token = await asyncio.gather(
            self.validate_scope(user, client, scope),
            self.generate_access_token(client, user, scope),
        )
        return Token(
            access_token=access_token,
            access_token_expires_at=self.get_access_token_expires_at(),
            scope=valid_scope,
        )
