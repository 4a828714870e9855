# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration (database + identity provider)
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret used to verify Supabase Auth tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # GitHub
    # -------------------------------------------------------------------------
    # Without a token, contribution calendars fall back to generated data

    GITHUB_TOKEN: str = Field(
        default="",
        description="GitHub token for the GraphQL and REST APIs"
    )

    GITHUB_CONTRIBUTORS_REPO: str = Field(
        default="uara-ai/lockedin",
        description="owner/repo whose contributors are shown on the site"
    )

    # -------------------------------------------------------------------------
    # Polar (billing)
    # -------------------------------------------------------------------------

    POLAR_ACCESS_TOKEN: str = Field(
        default="",
        description="Polar organization access token"
    )

    POLAR_WEBHOOK_SECRET: str = Field(
        default="",
        description="Secret used to verify Polar webhook signatures"
    )

    POLAR_SERVER: Literal["sandbox", "production"] = Field(
        default="sandbox",
        description="Which Polar environment to call"
    )

    APP_URL: str = Field(
        default="http://localhost:3000",
        description="Public URL of the front end (used for checkout redirects)"
    )

    # -------------------------------------------------------------------------
    # Favicons
    # -------------------------------------------------------------------------

    FAVICON_SIZE_DEFAULT: int = Field(
        default=64,
        ge=1,
        le=256,
        description="Icon size in pixels when the caller doesn't pass one"
    )

    FAVICON_PROBE_TIMEOUT: float = Field(
        default=5.0,
        gt=0,
        description="Per-candidate timeout (seconds) for server-side favicon probing"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    SECRET_KEY: str = Field(
        default="dev-secret-key-change-in-production",
        min_length=16,
        description="Secret key for signing tokens"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist (useful for production where
        # env vars are set directly)
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://lockedin.dev" -> ["http://localhost:3000", "https://lockedin.dev"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def polar_api_url(self) -> str:
        """Base URL of the Polar API for the configured server."""
        if self.POLAR_SERVER == "production":
            return "https://api.polar.sh"
        return "https://sandbox-api.polar.sh"

    @property
    def checkout_success_url(self) -> str:
        return f"{self.APP_URL.rstrip('/')}/sponsor/success"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
