# Server configuration.
# Created: 2026-10-19
#
# Defaults for every handler option, overridable through POCKETOAUTH_*
# environment variables or explicit keyword arguments to ``OAuth2Server``.

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "get_settings", "reset_settings"]


class Settings(BaseSettings):
    """Protocol defaults. Lifetimes are in seconds."""

    model_config = SettingsConfigDict(env_prefix="POCKETOAUTH_", extra="ignore")

    access_token_lifetime: int = Field(default=60 * 60, gt=0)
    refresh_token_lifetime: int = Field(default=60 * 60 * 24 * 14, gt=0)
    authorization_code_lifetime: int = Field(default=5 * 60, gt=0)

    allow_empty_state: bool = False
    allow_extended_token_attributes: bool = False
    always_issue_new_refresh_token: bool = True

    allow_bearer_tokens_in_query_string: bool = False
    add_accepted_scopes_header: bool = True
    add_authorized_scopes_header: bool = True

    def authenticate_options(self) -> dict:
        return self.model_dump(
            include={
                "allow_bearer_tokens_in_query_string",
                "add_accepted_scopes_header",
                "add_authorized_scopes_header",
            }
        )

    def authorize_options(self) -> dict:
        return self.model_dump(include={"allow_empty_state", "authorization_code_lifetime"})

    def token_options(self) -> dict:
        return self.model_dump(
            include={
                "access_token_lifetime",
                "refresh_token_lifetime",
                "allow_extended_token_attributes",
                "always_issue_new_refresh_token",
            }
        )


# Singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
