# OAuth2 authorization server facade.
# Created: 2026-10-19
#
# Binds a storage model to the three endpoint handlers. Options resolve in
# order: ``Settings`` defaults, server-wide options, per-call options.

from __future__ import annotations

from typing import Any

from pocketoauth.config import Settings, get_settings
from pocketoauth.errors import ErrorKind, OAuthError
from pocketoauth.handlers import AuthenticateHandler, AuthorizeHandler, TokenHandler
from pocketoauth.request import Request, Response

__all__ = ["OAuth2Server"]


class OAuth2Server:
    """OAuth2 authorization server."""

    def __init__(self, model: Any = None, *, settings: Settings | None = None, **options: Any):
        if model is None:
            raise OAuthError(ErrorKind.INVALID_ARGUMENT, "Missing parameter: `model`")
        self.model = model
        self.settings = settings or get_settings()
        self.options = options

    def _options(self, defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
        return {**defaults, **self.options, **overrides, "model": self.model}

    async def authenticate(
        self, request: Request, response: Response, scope: str | None = None, **options: Any
    ) -> Any:
        """Return the access token presented with *request*."""
        if scope is not None:
            options["scope"] = scope
        handler = AuthenticateHandler(
            **self._options(self.settings.authenticate_options(), options)
        )
        return await handler.handle(request, response)

    async def authorize(self, request: Request, response: Response, **options: Any) -> Any:
        """Issue an authorization code and redirect *response* to the client."""
        defaults = {**self.settings.authenticate_options(), **self.settings.authorize_options()}
        handler = AuthorizeHandler(**self._options(defaults, options))
        return await handler.handle(request, response)

    async def token(self, request: Request, response: Response, **options: Any) -> Any:
        """Run the token endpoint and fill *response* with the token or error body."""
        handler = TokenHandler(**self._options(self.settings.token_options(), options))
        return await handler.handle(request, response)
