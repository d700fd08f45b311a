"""
Configuration and settings for the study spot backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.firebase_constants import STUDY_SPOTS_COLLECTION


class Settings(BaseSettings):
    """Environment-backed settings, read from STUDYSPOT_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="STUDYSPOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_prefix: str = Field(default="/api")

    # Firebase project
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_api_key: Optional[str] = Field(default=None)
    auth_emulator_host: Optional[str] = Field(default=None)

    study_spots_collection: str = Field(default=STUDY_SPOTS_COLLECTION)

    # Every remote call is bounded by this many seconds.
    remote_call_timeout_seconds: float = Field(default=10.0, gt=0)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    seed_spot_names: list[str] = Field(default_factory=list)

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
