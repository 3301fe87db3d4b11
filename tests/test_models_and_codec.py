from __future__ import annotations

import pytest
from pydantic import ValidationError

from santa.errors import CorruptRecord
from santa.models import (
    Game,
    User,
    decode_game,
    decode_user,
    encode_game,
    encode_user,
    game_key,
    user_key,
    validate_game_id,
    validate_user_id,
)


def test_keys_are_prefixed_per_entity() -> None:
    assert user_key(5) == "santa:user:5"
    assert game_key(5) == "santa:game:5"
    # Same number, different entity, different key.
    assert user_key(5) != game_key(5)
    assert user_key(-5) != user_key(5)


def test_encoding_is_canonical_regardless_of_set_order() -> None:
    a = User(id=1, username="alice", active_games={30, 10, 20})
    b = User(id=1, username="alice", active_games={20, 30, 10})

    assert encode_user(a) == encode_user(b)
    assert '"active_games":[10,20,30]' in encode_user(a)


def test_encode_decode_encode_is_stable() -> None:
    user = User(id=-100, username="Zoë", admin_games={7}, active_games={8, 9}, pending_games={2**64 - 1})
    game = Game(id=2**64 - 1, name="Office party", admin=-100, active_users={3, 1}, pending_users={2})

    raw_user = encode_user(user)
    raw_game = encode_game(game)

    assert encode_user(decode_user(raw_user)) == raw_user
    assert encode_game(decode_game(raw_game)) == raw_game
    assert decode_game(raw_game) == game


def test_decode_garbage_raises_corrupt_record() -> None:
    with pytest.raises(CorruptRecord):
        decode_user("not json")
    with pytest.raises(CorruptRecord):
        decode_game('{"id": 1}')


def test_id_ranges() -> None:
    assert validate_user_id(-(2**63)) == -(2**63)
    assert validate_game_id(2**64 - 1) == 2**64 - 1

    with pytest.raises(ValidationError):
        validate_user_id(2**63)
    with pytest.raises(ValidationError):
        validate_game_id(-1)
    with pytest.raises(ValidationError):
        validate_game_id(2**64)


def test_game_involved_users_includes_admin() -> None:
    game = Game(id=1, name="g", admin=9, active_users={1}, pending_users={2})
    assert game.involved_users() == {9, 1, 2}
