"""
Centralized configuration for the panel backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, LOGIN_*).
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
    app_name: str = "Panel API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Client-side login throttling (not a security boundary)
    login_attempt_limit: int = 5
    login_attempt_window_seconds: int = 15 * 60
    login_attempt_max_tracked_emails: int = 100

    # Navigation targets
    login_path: str = "/login"
    panel_path: str = "/panel"
    invitation_redirect_delay_seconds: float = 3.0
    success_redirect_delay_seconds: float = 2.0

    # Invitation finalization endpoint
    accept_invitation_url: str = "http://localhost:8000/api/accept-invitation"
    http_timeout_seconds: float = 30.0


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
