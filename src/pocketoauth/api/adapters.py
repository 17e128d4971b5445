# Starlette/FastAPI <-> core request and response conversion.
# Created: 2026-10-19

from __future__ import annotations

import json
import logging

from fastapi import Request as StarletteRequest
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.datastructures import UploadFile
from starlette.responses import Response as StarletteResponse

from pocketoauth.request import Request, Response

logger = logging.getLogger(__name__)

__all__ = ["request_from_starlette", "to_starlette_response"]

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def request_from_starlette(request: StarletteRequest) -> Request:
    """Build a core ``Request`` from an incoming Starlette request."""
    body: dict = {}
    content_type = request.headers.get("content-type", "").lower()

    if request.method not in ("GET", "HEAD"):
        if content_type.startswith(_FORM_TYPES):
            form = await request.form()
            body = {k: v for k, v in form.items() if not isinstance(v, UploadFile)}
        elif content_type.startswith("application/json"):
            try:
                payload = await request.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                logger.debug("Ignoring undecodable JSON body: %s", exc)
            else:
                if isinstance(payload, dict):
                    body = payload

    return Request(
        headers=dict(request.headers),
        method=request.method,
        query=dict(request.query_params),
        body=body,
    )


def to_starlette_response(response: Response) -> StarletteResponse:
    """Render a core ``Response``: redirects as-is, everything else as JSON."""
    headers = {k: str(v) for k, v in response.headers.items() if k != "location"}
    location = response.get("location")
    if location:
        return RedirectResponse(location, status_code=response.status, headers=headers)
    return JSONResponse(status_code=response.status, content=response.body, headers=headers)
