# OAuth2 wire schemas.
# Created: 2026-10-19

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TokenResponse(BaseModel):
    """Bearer token response; extended attributes pass through as extra fields."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


class ErrorResponse(BaseModel):
    """Token endpoint error body."""

    error: str
    error_description: str | None = None
