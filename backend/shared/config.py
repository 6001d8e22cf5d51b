"""
Centralized configuration for the VegasVault backend.

All settings are loaded from environment variables with empty defaults.
Nothing falls back to a live project: an unset Supabase or Stripe key stays
empty and the code that needs it refuses to start.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "VegasVault API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_id: str = ""

    # Frontend URLs (for redirects)
    frontend_url: str = "http://localhost:5173"

    # Sync timeouts (seconds)
    auth_init_timeout: float = 3.0
    profile_fetch_timeout: float = 2.0
    predictions_load_timeout: float = 10.0
    request_timeout: float = 10.0

    # Feature Flags
    demo_mode: bool = False
    enable_billing: bool = True


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
