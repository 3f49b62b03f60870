"""MenuPal application settings loaded from environment variables."""

from enum import StrEnum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application-wide settings loaded from environment variables / .env file.

    Deployment-specific values live here. Never hardcode them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Storage ---
    STORAGE_ROOT: str = Field(
        default="./menupal_data",
        description="Root directory for translation history, images and preferences.",
    )

    # --- Upstream menu analysis ---
    UPSTREAM_URL: str = Field(
        default="",
        description="Menu-analysis endpoint that accepts photos and returns the raw response.",
    )
    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=120.0,
        gt=0,
        description="Request timeout for the analysis call.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == Environment.PROD

    @property
    def storage_root(self) -> Path:
        return Path(self.STORAGE_ROOT)

    @property
    def preferences_path(self) -> Path:
        return self.storage_root / "user_settings.json"


def get_settings() -> Settings:
    """Factory function for the process-wide settings."""
    return Settings()
