from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_serializer

from santa.errors import CorruptRecord


UserId = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]
GameId = Annotated[int, Field(ge=0, le=2**64 - 1)]

USER_KEY_PREFIX = "santa:user:"  # + {user_id}
GAME_KEY_PREFIX = "santa:game:"  # + {game_id}

_user_id_adapter: TypeAdapter[int] = TypeAdapter(UserId)
_game_id_adapter: TypeAdapter[int] = TypeAdapter(GameId)


def user_key(user_id: int) -> str:
    return f"{USER_KEY_PREFIX}{user_id}"


def game_key(game_id: int) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def validate_user_id(value: int) -> int:
    return _user_id_adapter.validate_python(value)


def validate_game_id(value: int) -> int:
    return _game_id_adapter.validate_python(value)


class User(BaseModel):
    id: UserId
    username: str

    # Games this user created.
    admin_games: set[GameId] = Field(default_factory=set)
    # Confirmed participation.
    active_games: set[GameId] = Field(default_factory=set)
    # Join requests waiting for the admin.
    pending_games: set[GameId] = Field(default_factory=set)

    @field_serializer("admin_games", "active_games", "pending_games")
    def _sorted_ids(self, value: set[int]) -> list[int]:
        return sorted(value)

    def describe(self) -> str:
        return f"Name: {self.username}\nId: {self.id}\n"


class Game(BaseModel):
    id: GameId
    name: str
    admin: UserId
    active_users: set[UserId] = Field(default_factory=set)
    pending_users: set[UserId] = Field(default_factory=set)

    @field_serializer("active_users", "pending_users")
    def _sorted_ids(self, value: set[int]) -> list[int]:
        return sorted(value)

    def involved_users(self) -> set[int]:
        return {self.admin} | self.active_users | self.pending_users

    def describe(self) -> str:
        return f"Name: {self.name}\nId: {self.id}\n"


def encode_user(user: User) -> str:
    return user.model_dump_json()


def encode_game(game: Game) -> str:
    return game.model_dump_json()


def decode_user(raw: str | bytes) -> User:
    try:
        return User.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptRecord(f"Stored user record is not decodable: {e}") from e


def decode_game(raw: str | bytes) -> Game:
    try:
        return Game.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptRecord(f"Stored game record is not decodable: {e}") from e
