"""Application settings and configuration management."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/feedback.db")
    APP_CONFIG_PATH: str = Field(default="app_config.json")
    BIAS_LEXICON_PATH: str = Field(default=str(Path(__file__).resolve().parent / "bias_lexicon.yaml"))

    UNDO_WINDOW_MINUTES: int = Field(default=10, ge=1)
    FAIRNESS_THRESHOLD: float = Field(default=0.7, ge=0.0, le=1.0)
    FAIRNESS_DEFAULT: float = Field(default=0.8, ge=0.0, le=1.0)
    MAX_AUDIO_BYTES: int = 50 * 1024 * 1024
    NOTIFY_WORKERS: int = Field(default=2, ge=1)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
