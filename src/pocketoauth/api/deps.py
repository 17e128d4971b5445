# FastAPI dependencies for resources protected by bearer tokens.
# Created: 2026-10-19

from __future__ import annotations

from fastapi import HTTPException, Request

from pocketoauth.api.adapters import request_from_starlette
from pocketoauth.errors import OAuthError
from pocketoauth.request import Response
from pocketoauth.server import OAuth2Server


def require_token(server: OAuth2Server, scope: str | None = None):
    """FastAPI dependency returning the access token presented with the request.

    Usage::

        @router.get("/me")
        async def me(token=Depends(require_token(server, "profile"))): ...

    Authentication failures become ``HTTPException`` with the protocol
    status and any challenge headers the handler set.
    """

    async def _check(request: Request):
        oauth_request = await request_from_starlette(request)
        oauth_response = Response()
        try:
            return await server.authenticate(oauth_request, oauth_response, scope=scope)
        except OAuthError as exc:
            headers = {k: str(v) for k, v in oauth_response.headers.items()}
            raise HTTPException(
                status_code=exc.status, detail=exc.to_dict(), headers=headers or None
            ) from exc

    return _check
