"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance. The ingestion engine never
reads the environment itself; values such as the archive password and the
timeouts are handed to it from here.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(..., description="Supabase anon/public key")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service-role key (import tool, readiness probe)",
    )
    EXPENSES_TABLE: str = Field(
        default="shared_expenses",
        description="Table receiving ingested expense rows",
    )

    # Ingestion
    ZIP_PASSWORD: Optional[str] = Field(
        default=None,
        description="Password of uploaded ledger archives, if they are encrypted",
    )
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted archive upload",
    )
    ARCHIVE_OPEN_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Upper bound for archive decompression",
    )
    PERSIST_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Upper bound for the bulk upsert call",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def zip_password(self) -> Optional[str]:
        """Archive password, with an empty value meaning none."""
        return self.ZIP_PASSWORD or None

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings; allows test override."""
    return Settings()


# Module-level singleton (lazy: only created when first accessed)
try:
    settings = get_settings()
except Exception:
    # During testing, env vars may not be set, defer to test fixtures
    settings = None  # type: ignore[assignment]
