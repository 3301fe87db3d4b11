from __future__ import annotations

import os
from dataclasses import dataclass

import redis


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment at call time."""

    defaults = Settings()
    return Settings(
        redis_url=os.environ.get("REDIS_URL", defaults.redis_url),
        log_level=os.environ.get("SANTA_LOG_LEVEL", defaults.log_level).upper(),
    )


def create_redis(settings: Settings | None = None) -> redis.Redis:
    settings = settings or load_settings()
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)
