"""Configuration management for MultiSMTP.

This module uses Pydantic Settings to load the application's own settings
(logging, default sender, local mail binary) from environment variables and
.env files. The SMTP settings table itself is read separately, see
``multismtp.domain.settings_table``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MULTISMTP_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "MultiSMTP"
    environment: Literal["development", "production", "testing"] = "development"

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # SMTP settings table source
    env_prefix: str = Field(
        default="GLOBAL_SMTP_",
        description="Prefix of the environment variables holding the SMTP settings table",
    )

    # Mailer defaults, used when no from override is registered
    default_from_email: str = "noreply@localhost"
    default_from_name: str = "MultiSMTP"
    sendmail_path: str = "/usr/sbin/sendmail"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lowercase log level names."""
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
