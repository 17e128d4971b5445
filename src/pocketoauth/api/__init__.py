# FastAPI integration.
# Created: 2026-10-19
#
# Thin HTTP layer over ``OAuth2Server``; no protocol logic lives here.

from pocketoauth.api.adapters import request_from_starlette, to_starlette_response
from pocketoauth.api.deps import require_token
from pocketoauth.api.router import build_oauth_router

__all__ = [
    "build_oauth_router",
    "request_from_starlette",
    "require_token",
    "to_starlette_response",
]
