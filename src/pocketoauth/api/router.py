# OAuth2 router: authorize and token endpoints.
# Created: 2026-10-19

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from pocketoauth.api.adapters import request_from_starlette, to_starlette_response
from pocketoauth.api.schemas import ErrorResponse, TokenResponse
from pocketoauth.errors import OAuthError
from pocketoauth.request import Response
from pocketoauth.server import OAuth2Server

logger = logging.getLogger(__name__)

__all__ = ["build_oauth_router"]


def _fill_error(response: Response, exc: OAuthError) -> None:
    # Errors raised before the handler touched the response still need a body.
    if response.get("location") or response.body:
        return
    response.body = exc.to_dict()
    response.status = exc.status


def build_oauth_router(server: OAuth2Server, *, prefix: str = "/oauth") -> APIRouter:
    """Return an ``APIRouter`` serving ``{prefix}/authorize`` and ``{prefix}/token``."""
    router = APIRouter(tags=["OAuth2"])

    @router.api_route(f"{prefix}/authorize", methods=["GET", "POST"])
    async def authorize(request: Request):
        """Authorization request; answers with a redirect to the client."""
        oauth_request = await request_from_starlette(request)
        oauth_response = Response()
        try:
            await server.authorize(oauth_request, oauth_response)
        except OAuthError as exc:
            logger.info("Authorization request rejected: %s (%s)", exc.code, exc.message)
            _fill_error(oauth_response, exc)
        return to_starlette_response(oauth_response)

    @router.post(
        f"{prefix}/token",
        responses={
            200: {"model": TokenResponse},
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    async def token(request: Request):
        """Token request for any registered grant type."""
        oauth_request = await request_from_starlette(request)
        oauth_response = Response()
        try:
            await server.token(oauth_request, oauth_response)
        except OAuthError as exc:
            logger.info("Token request rejected: %s (%s)", exc.code, exc.message)
            _fill_error(oauth_response, exc)
        return to_starlette_response(oauth_response)

    return router
