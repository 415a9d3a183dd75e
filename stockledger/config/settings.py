"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["memory", "sqlite"] = "sqlite"
    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class InventorySettings(BaseSettings):
    """Inventory facade configuration."""

    model_config = SettingsConfigDict(env_prefix="INVENTORY_")

    movement_list_default: int = 50
    movement_list_max: int = 200

    # Deadline applied to every facade operation; None disables it
    operation_timeout: float | None = 30.0

    @field_validator("operation_timeout")
    @classmethod
    def positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("operation_timeout must be positive")
        return v


class AlertSettings(BaseSettings):
    """Alert evaluation configuration."""

    model_config = SettingsConfigDict(env_prefix="ALERT_")

    # Refresh an unread alert of the same (product, size, type) instead of
    # appending a new one
    dedupe_unread: bool = True


class ForecastSettings(BaseSettings):
    """Forecast engine configuration."""

    model_config = SettingsConfigDict(env_prefix="FORECAST_")

    history_limit: int = 100
    no_stockout_sentinel: int = 999


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "StockLedger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    alerts: AlertSettings = Field(default_factory=AlertSettings)
    forecast: ForecastSettings = Field(default_factory=ForecastSettings)
    api: APISettings = Field(default_factory=APISettings)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
