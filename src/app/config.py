from __future__ import annotations

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    # End-user sign-in runs on a per-request client; falls back to the service key.
    SUPABASE_ANON_KEY: str | None = None
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:8080"],
    )

    DEFAULT_TENANT_ID: str = "default"
    DEFAULT_ROLES: list[str] = Field(default_factory=lambda: ["user", "admin", "superadmin"])
    ADMIN_ROLES: list[str] = Field(default_factory=lambda: ["admin", "superadmin"])

    IDEMPOTENCY_TTL_SECONDS: int = 300
    SCRAPE_TIMEOUT_SECONDS: float = 15.0


settings = Settings()
