"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Match minutes after the trigger during which a goal counts as a hit
    window_minutes: int = 10

    # Signals older than this (by trigger time) are dropped on save
    storage_retention_days: int = 7

    # SQLite database path for the signal and calibration stores
    db_path: Path = Path.home() / ".goal-edge" / "signals.db"

    # PostgreSQL DSN; SQLite is used when empty
    database_url: str = ""

    # Store keys
    signal_store_name: str = "signals_v1"
    calibration_store_name: str = "calibration_records_v1"
    calibration_table_name: str = "calibration_table_v1"

    # Calibration log cap (oldest records dropped first)
    calibration_max_records: int = 5000

    # HTTP request timeout seconds
    http_timeout: float = 30.0

    # Telegram settlement scorecards
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_enabled: bool = False

    @field_validator("window_minutes")
    @classmethod
    def _window_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"window_minutes must be > 0, got {v}")
        return v

    @field_validator("storage_retention_days")
    @classmethod
    def _retention_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"storage_retention_days must be > 0, got {v}")
        return v

    @field_validator("calibration_max_records")
    @classmethod
    def _max_records_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"calibration_max_records must be >= 1, got {v}")
        return v


def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
