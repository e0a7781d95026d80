"""Settings for the task service, read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    page_size: int = 10
    max_page_size: int = 100
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        redis_host=os.getenv("REDIS_HOST", "redis"),
        redis_port=_env_int("REDIS_PORT", 6379),
        redis_db=_env_int("REDIS_DB", 0),
        redis_password=os.getenv("REDIS_PASSWORD") or None,
        page_size=_env_int("TASKS_PAGE_SIZE", 10),
        max_page_size=_env_int("TASKS_MAX_PAGE_SIZE", 100),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
