"""Configuration for the REST server."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from uigen_export.export.config import ExportSettings


class ServerSettings(ExportSettings):
    """Export settings plus what the HTTP adapter needs to identify callers."""

    session_cookie_name: str = Field(
        default="auth-token",
        validation_alias="UIGEN_SESSION_COOKIE",
        description="Cookie carrying the session token issued at sign-in",
    )

    # Dev-friendly CORS. Override via UIGEN_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="UIGEN_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
