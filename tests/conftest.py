from __future__ import annotations

import random
from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from santa.api.deps import get_redis, get_sessions
from santa.dialogue import DialogueEngine
from santa.main import app
from santa.models import GAME_KEY_PREFIX, USER_KEY_PREFIX, decode_game, decode_user
from santa.sessions import SessionRegistry


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(20241224)


@pytest.fixture()
def sessions() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture()
def engine(r: fakeredis.FakeRedis, sessions: SessionRegistry, rng: random.Random) -> DialogueEngine:
    return DialogueEngine(r=r, sessions=sessions, rng=rng)


@pytest.fixture()
def client_and_redis() -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to fakeredis and a fresh session registry."""

    r = fakeredis.FakeRedis(decode_responses=True)
    registry = SessionRegistry()

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_sessions] = lambda: registry
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()


def assert_store_consistent(r: fakeredis.FakeRedis) -> None:
    """Check both directions of every user/game membership link."""

    users = {u.id: u for u in (decode_user(r.get(k)) for k in r.scan_iter(match=f"{USER_KEY_PREFIX}*"))}
    games = {g.id: g for g in (decode_game(r.get(k)) for k in r.scan_iter(match=f"{GAME_KEY_PREFIX}*"))}

    for user in users.values():
        for gid in user.active_games:
            assert gid in games, f"user {user.id} references missing game {gid}"
            assert user.id in games[gid].active_users
        for gid in user.pending_games:
            assert gid in games, f"user {user.id} references missing game {gid}"
            assert user.id in games[gid].pending_users
        for gid in user.admin_games:
            assert gid in games, f"user {user.id} administers missing game {gid}"
            assert games[gid].admin == user.id
        assert not (user.active_games & user.pending_games)
        assert not (user.admin_games & (user.active_games | user.pending_games))

    for game in games.values():
        assert game.id in users[game.admin].admin_games
        assert game.admin not in game.active_users | game.pending_users
        assert not (game.active_users & game.pending_users)
        for uid in game.active_users:
            assert game.id in users[uid].active_games
        for uid in game.pending_users:
            assert game.id in users[uid].pending_games
