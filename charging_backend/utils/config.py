"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration shared by every layer."""

    app_name: str
    app_version: str
    database_path: Path
    database_timeout_seconds: float
    log_level: str
    seed_demo_data: bool
    host: str
    port: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Charging Capacity Service"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        database_path=Path(os.getenv("DATABASE_PATH", "data/charging.db")),
        database_timeout_seconds=float(os.getenv("DATABASE_TIMEOUT_SECONDS", "5.0")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", False),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
