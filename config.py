"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "token-manager"


class TokenSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    token_collection: str = "tokens"

    # Grace window after expires_at before the TTL monitor removes a record.
    # Hygiene only; expiry itself is checked on every validation.
    cleanup_after_expiry_seconds: int = Field(default=86400, ge=0)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "token-manager"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    tokens: Optional[TokenSettings] = None
    logging: Optional[LoggingSettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.tokens is None:
            self.tokens = TokenSettings()
        if self.logging is None:
            self.logging = LoggingSettings()

        return self
