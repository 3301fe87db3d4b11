from __future__ import annotations


class SantaError(ValueError):
    """Base class for every expected failure of a repository or dialogue operation.

    These are user-facing conditions (missing records, precondition violations,
    malformed input) rather than bugs, so the dialogue engine turns each one into
    a reply instead of letting it escape.
    """


class UserNotFound(SantaError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User with id {user_id} does not exist")
        self.user_id = user_id


class GameNotFound(SantaError):
    def __init__(self, game_id: int) -> None:
        super().__init__(f"Game with id {game_id} does not exist")
        self.game_id = game_id


class AlreadyExists(SantaError):
    def __init__(self, user_id: int, username: str) -> None:
        super().__init__(f"User with id {user_id} already exists and has username {username}")
        self.user_id = user_id
        self.username = username


class AlreadyInGame(SantaError):
    def __init__(self, user_id: int, game_id: int) -> None:
        super().__init__(f"User with id {user_id} is already in game with id {game_id}")
        self.user_id = user_id
        self.game_id = game_id


class NotPending(SantaError):
    def __init__(self, user_id: int, game_id: int) -> None:
        super().__init__(f"User with id {user_id} is not pending in game with id {game_id}")
        self.user_id = user_id
        self.game_id = game_id


class NotGameAdmin(SantaError):
    def __init__(self, user_id: int, game_id: int) -> None:
        super().__init__(f"User with id {user_id} is not admin of game with id {game_id}")
        self.user_id = user_id
        self.game_id = game_id


class InvalidInput(SantaError):
    pass


class StoreError(RuntimeError):
    """The store misbehaved; the in-flight operation is abandoned."""


class CorruptRecord(StoreError):
    pass
