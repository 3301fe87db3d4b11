from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from typing import TypeVar

import redis
from redis.client import Pipeline

from santa import prompts
from santa.assignment import derange
from santa.errors import AlreadyExists, AlreadyInGame, GameNotFound, NotGameAdmin, NotPending, UserNotFound
from santa.models import (
    Game,
    User,
    decode_game,
    decode_user,
    encode_game,
    encode_user,
    game_key,
    user_key,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

Outgoing = list[tuple[int, str]]


def _in_transaction(*, r: redis.Redis, keys: Iterable[str], func: Callable[[Pipeline], T]) -> T:
    """Run `func` as one optimistic read-check-write unit.

    `keys` are WATCHed before `func` runs, so its reads (issued on the pipeline)
    see a consistent snapshot. `func` validates, then calls `pipe.multi()` and
    queues every write; they are committed together by a single EXEC. If another
    client touches a watched key first, redis-py discards the queued writes and
    runs `func` again from scratch. Exceptions raised by `func` abort the unit
    with nothing written.
    """

    return r.transaction(func, *keys, value_from_callable=True)


def _read_user(conn: redis.Redis | Pipeline, user_id: int) -> User | None:
    raw = conn.get(user_key(user_id))
    if not raw:
        return None
    return decode_user(raw)


def _read_game(conn: redis.Redis | Pipeline, game_id: int) -> Game | None:
    raw = conn.get(game_key(game_id))
    if not raw:
        return None
    return decode_game(raw)


def get_user(*, r: redis.Redis, user_id: int) -> User | None:
    return _read_user(r, user_id)


def get_game(*, r: redis.Redis, game_id: int) -> Game | None:
    return _read_game(r, game_id)


def require_game(*, r: redis.Redis, game_id: int) -> Game:
    game = get_game(r=r, game_id=game_id)
    if game is None:
        raise GameNotFound(game_id)
    return game


def require_admin(*, r: redis.Redis, user_id: int, game_id: int) -> Game:
    game = require_game(r=r, game_id=game_id)
    if game.admin != user_id:
        raise NotGameAdmin(user_id, game_id)
    return game


def get_users(*, r: redis.Redis, user_ids: Iterable[int]) -> list[User]:
    """Bulk lookup; ids without a record are skipped."""

    ids = sorted(user_ids)
    if not ids:
        return []
    raws = r.mget([user_key(uid) for uid in ids])
    return [decode_user(raw) for raw in raws if raw]


def get_games(*, r: redis.Redis, game_ids: Iterable[int]) -> list[Game]:
    """Bulk lookup; ids without a record (e.g. games that already ran) are skipped."""

    ids = sorted(game_ids)
    if not ids:
        return []
    raws = r.mget([game_key(gid) for gid in ids])
    return [decode_game(raw) for raw in raws if raw]


def register_user(*, r: redis.Redis, user_id: int, username: str) -> User:
    user = User(id=user_id, username=username)

    # SET NX never overwrites an existing registration.
    if not r.set(user_key(user_id), encode_user(user), nx=True):
        existing = get_user(r=r, user_id=user_id)
        raise AlreadyExists(user_id, existing.username if existing is not None else "")

    logger.info("registered user %s", user_id)
    return user


def change_username(*, r: redis.Redis, user_id: int, username: str) -> User:
    def _apply(pipe: Pipeline) -> User:
        user = _read_user(pipe, user_id)
        if user is None:
            raise UserNotFound(user_id)
        user.username = username
        pipe.multi()
        pipe.set(user_key(user_id), encode_user(user))
        return user

    user = _in_transaction(r=r, keys=[user_key(user_id)], func=_apply)
    logger.info("user %s changed username", user_id)
    return user


def _new_game_id(*, r: redis.Redis, rng: random.Random) -> int:
    # 64-bit draws make collisions astronomically rare, so this loop is uncapped.
    while True:
        candidate = rng.getrandbits(64)
        if not r.exists(game_key(candidate)):
            return candidate


def create_game(*, r: redis.Redis, admin_id: int, name: str, rng: random.Random | None = None) -> Game:
    rng = rng or random.SystemRandom()

    while True:
        game_id = _new_game_id(r=r, rng=rng)
        game = Game(id=game_id, name=name, admin=admin_id)

        def _apply(pipe: Pipeline) -> bool:
            admin = _read_user(pipe, admin_id)
            if admin is None:
                raise UserNotFound(admin_id)
            if pipe.exists(game_key(game.id)):
                # Taken between the draw and the WATCH; draw again.
                return False
            admin.admin_games.add(game.id)
            pipe.multi()
            pipe.set(game_key(game.id), encode_game(game))
            pipe.set(user_key(admin_id), encode_user(admin))
            return True

        if _in_transaction(r=r, keys=[user_key(admin_id), game_key(game_id)], func=_apply):
            logger.info("user %s created game %s", admin_id, game_id)
            return game


def _load_pair(pipe: Pipeline, user_id: int, game_id: int) -> tuple[User, Game]:
    game = _read_game(pipe, game_id)
    if game is None:
        raise GameNotFound(game_id)
    user = _read_user(pipe, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user, game


def _write_pair(pipe: Pipeline, user: User, game: Game) -> None:
    pipe.multi()
    pipe.set(user_key(user.id), encode_user(user))
    pipe.set(game_key(game.id), encode_game(game))


def request_join(*, r: redis.Redis, user_id: int, game_id: int) -> Game:
    def _apply(pipe: Pipeline) -> Game:
        user, game = _load_pair(pipe, user_id, game_id)

        # The admin is implicitly part of the game and never a participant.
        if user_id == game.admin or user_id in game.pending_users or user_id in game.active_users:
            raise AlreadyInGame(user_id, game_id)
        if game_id in user.pending_games or game_id in user.active_games:
            raise AlreadyInGame(user_id, game_id)

        user.pending_games.add(game_id)
        game.pending_users.add(user_id)
        _write_pair(pipe, user, game)
        return game

    game = _in_transaction(r=r, keys=[user_key(user_id), game_key(game_id)], func=_apply)
    logger.info("user %s requested to join game %s", user_id, game_id)
    return game


def promote(*, r: redis.Redis, user_id: int, game_id: int) -> Game:
    def _apply(pipe: Pipeline) -> Game:
        user, game = _load_pair(pipe, user_id, game_id)

        # Both sides must agree; a one-sided record means the store is damaged.
        if user_id not in game.pending_users or game_id not in user.pending_games:
            raise NotPending(user_id, game_id)

        user.pending_games.discard(game_id)
        user.active_games.add(game_id)
        game.pending_users.discard(user_id)
        game.active_users.add(user_id)
        _write_pair(pipe, user, game)
        return game

    game = _in_transaction(r=r, keys=[user_key(user_id), game_key(game_id)], func=_apply)
    logger.info("user %s promoted to active in game %s", user_id, game_id)
    return game


def withdraw(*, r: redis.Redis, user_id: int, game_id: int) -> Game:
    """Remove a user from a game's pending and active sets on both sides.

    Idempotent: withdrawing a non-member rewrites identical records.
    """

    def _apply(pipe: Pipeline) -> Game:
        user, game = _load_pair(pipe, user_id, game_id)
        user.pending_games.discard(game_id)
        user.active_games.discard(game_id)
        game.pending_users.discard(user_id)
        game.active_users.discard(user_id)
        _write_pair(pipe, user, game)
        return game

    game = _in_transaction(r=r, keys=[user_key(user_id), game_key(game_id)], func=_apply)
    logger.info("user %s withdrawn from game %s", user_id, game_id)
    return game


def run_game(*, r: redis.Redis, game_id: int, rng: random.Random | None = None) -> Outgoing:
    """Close a game and compute who gives a present to whom.

    The game record is deleted and its id stripped from every involved user
    (admin, active and pending) in one EXEC. Pending users get nothing. Returns
    the ordered `(recipient_user_id, text)` messages; delivering them is up to
    the caller.
    """

    def _apply(pipe: Pipeline) -> tuple[Game, dict[int, User]]:
        game = _read_game(pipe, game_id)
        if game is None:
            raise GameNotFound(game_id)

        involved = sorted(game.involved_users())
        pipe.watch(*[user_key(uid) for uid in involved])

        users: dict[int, User] = {}
        for uid in involved:
            user = _read_user(pipe, uid)
            if user is None:
                raise UserNotFound(uid)
            user.admin_games.discard(game_id)
            user.active_games.discard(game_id)
            user.pending_games.discard(game_id)
            users[uid] = user

        pipe.multi()
        pipe.delete(game_key(game_id))
        for user in users.values():
            pipe.set(user_key(user.id), encode_user(user))
        return game, users

    game, users = _in_transaction(r=r, keys=[game_key(game_id)], func=_apply)

    participants = sorted(game.active_users)
    messages: Outgoing = []

    if len(participants) <= 1:
        for uid in participants:
            messages.append((uid, prompts.run_too_few_participants()))
        messages.append((game.admin, prompts.run_completed_too_few()))
    else:
        for giver, receiver in derange(participants, rng=rng):
            text = prompts.run_assignment(
                giver_name=users[giver].username,
                receiver_name=users[receiver].username,
                game_name=game.name,
            )
            messages.append((giver, text))
        messages.append((game.admin, prompts.run_completed()))

    logger.info("game %s ran with %d participants", game_id, len(participants))
    return messages
