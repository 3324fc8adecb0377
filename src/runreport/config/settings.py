"""
Application settings using Pydantic.

Provides environment-based configuration loading with RUNREPORT_ prefix.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RUNREPORT_",
        extra="ignore",
    )

    # Run history service
    server_url: str = "http://localhost:4000"
    client_name: str | None = None
    token: str | None = None

    # Operator kill-switch; a disabled session makes no network calls
    reporting_enabled: bool = True

    # HTTP client settings
    http_timeout: float = 30.0
    http_max_retries: int = 3
    http_retry_backoff_factor: float = 0.5

    # Logging
    log_level: str = "INFO"
