from __future__ import annotations

from collections.abc import Generator

import redis

from santa.infra.settings import create_redis
from santa.sessions import SessionRegistry


_SESSIONS = SessionRegistry()


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_sessions() -> SessionRegistry:
    """Process-wide dialogue state; tests override this with a fresh registry."""

    return _SESSIONS
