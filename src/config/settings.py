"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.ports import AuthMode


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Logging
    log_level: str = "INFO"

    # Authentication surface
    default_mode: AuthMode = AuthMode.LOGIN  # Mode a surface opens in when none is given
    submission_timeout_seconds: float | None = None  # None waits indefinitely

    # Identity service settings
    identity_latency_seconds: float = 1.5  # Simulated round-trip of the account service
    bcrypt_cost: int = 10  # bcrypt work factor for stored credentials
    demo_accounts: dict[str, str] = {}  # identifier -> secret, seeded at startup


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
