from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class DialogueStep(StrEnum):
    idle = "idle"
    register_get_name = "register.get_name"
    username_get_name = "username.get_name"
    create_get_name = "create.get_name"
    run_get_id = "run.get_id"
    run_confirm = "run.confirm"
    join_get_id = "join.get_id"
    leave_get_id = "leave.get_id"
    accept_get_game_id = "accept.get_game_id"
    accept_get_user_id = "accept.get_user_id"
    remove_get_game_id = "remove.get_game_id"
    remove_get_user_id = "remove.get_user_id"
    info_get_id = "info.get_id"


# Steps that remember which game the flow is about.
STEPS_WITH_GAME = frozenset(
    {
        DialogueStep.run_confirm,
        DialogueStep.accept_get_user_id,
        DialogueStep.remove_get_user_id,
    }
)


@dataclass(frozen=True, slots=True)
class DialogueState:
    """Where one session is in its conversation.

    `game_id` is set exactly for the steps in `STEPS_WITH_GAME`.
    """

    step: DialogueStep = DialogueStep.idle
    game_id: int | None = None

    def __post_init__(self) -> None:
        if (self.step in STEPS_WITH_GAME) != (self.game_id is not None):
            raise ValueError(f"Step '{self.step.value}' does not match game_id={self.game_id!r}")

    def require_game_id(self) -> int:
        if self.game_id is None:
            raise ValueError(f"Step '{self.step.value}' carries no game id")
        return self.game_id

    @property
    def is_idle(self) -> bool:
        return self.step == DialogueStep.idle

    def describe(self) -> str:
        if self.game_id is None:
            return self.step.value
        return f"{self.step.value}{{{self.game_id}}}"


IDLE = DialogueState()


class SessionRegistry:
    """In-process dialogue state, one slot per session.

    Volatile on purpose: a restart only loses half-finished multi-step input,
    never committed users or games. A session's messages are handled one at a
    time, so slots need no locking.
    """

    def __init__(self) -> None:
        self._by_session: dict[int, DialogueState] = {}

    def get(self, session_id: int) -> DialogueState:
        return self._by_session.get(session_id, IDLE)

    def set(self, session_id: int, state: DialogueState) -> None:
        if state.is_idle:
            self._by_session.pop(session_id, None)
        else:
            self._by_session[session_id] = state

    def __len__(self) -> int:
        return len(self._by_session)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._by_session
