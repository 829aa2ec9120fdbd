"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPLINE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Storage
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str | None = None

    # Continuity thresholds
    timeline_gap_threshold_minutes: int = 240
    proximity_threshold_km: float = 30.0

    # Overlap policy (segment type values)
    stackable_types: list[str] = ["custom"]
    container_types: list[str] = ["hotel"]

    # Gap filling (transfer type values)
    default_transfer_type: str = "ground"
    default_transfer_minutes: int = 60
    min_fill_confidence: float = 0.0
    free_time_label: str = "Free time"
    skip_overnight_location_gaps: bool = True

    # Editing
    enforce_date_range: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
