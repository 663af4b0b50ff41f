# gigsim/settings.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from gigsim.config import SOCIAL_BUZZ_WINDOW_DAYS


class Settings(BaseSettings):
    """Runtime settings. Env vars (GIGSIM_*) override .env, which overrides defaults."""

    model_config = SettingsConfigDict(
        env_prefix="GIGSIM_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    store_backend: Literal["memory", "sqlite"] = "memory"
    sqlite_path: str = "data/gigsim.db"

    log_level: str = "INFO"
    json_logs: bool = False

    # None -> fresh randomness per request
    rng_seed: Optional[int] = None

    social_buzz_window_days: int = SOCIAL_BUZZ_WINDOW_DAYS


def get_settings() -> Settings:
    return Settings()
