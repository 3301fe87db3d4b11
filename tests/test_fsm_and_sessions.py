from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from santa.fsm import DialogueFSM
from santa.sessions import IDLE, DialogueState, DialogueStep, SessionRegistry


def test_fsm_starts_from_the_session_step() -> None:
    fsm = DialogueFSM(DialogueState(step=DialogueStep.join_get_id))
    assert fsm.to_dialogue_state().step == DialogueStep.join_get_id

    assert DialogueFSM(IDLE).to_dialogue_state() == IDLE


def test_fsm_flow_into_and_out_of_a_two_step_flow() -> None:
    fsm = DialogueFSM(IDLE)
    fsm.send("begin_accept")
    assert fsm.to_dialogue_state().step == DialogueStep.accept_get_game_id

    fsm.send("game_chosen_for_accept")
    state = fsm.to_dialogue_state(game_id=42)
    assert state == DialogueState(step=DialogueStep.accept_get_user_id, game_id=42)

    fsm.send("finish")
    assert fsm.to_dialogue_state() == IDLE


def test_fsm_rejects_starting_a_flow_mid_flow() -> None:
    fsm = DialogueFSM(DialogueState(step=DialogueStep.create_get_name))
    with pytest.raises(TransitionNotAllowed):
        fsm.send("begin_join")


def test_fsm_registration_cannot_be_cancelled() -> None:
    fsm = DialogueFSM(DialogueState(step=DialogueStep.register_get_name))
    with pytest.raises(TransitionNotAllowed):
        fsm.send("cancel")

    fsm.send("finish")
    assert fsm.to_dialogue_state() == IDLE


@pytest.mark.parametrize("step", [s for s in DialogueStep if s not in {DialogueStep.idle, DialogueStep.register_get_name}])
def test_fsm_every_other_step_can_be_cancelled(step: DialogueStep) -> None:
    game_id = 7 if step in {DialogueStep.run_confirm, DialogueStep.accept_get_user_id, DialogueStep.remove_get_user_id} else None
    fsm = DialogueFSM(DialogueState(step=step, game_id=game_id))
    fsm.send("cancel")
    assert fsm.to_dialogue_state() == IDLE


def test_fsm_confirm_only_after_choosing_game() -> None:
    with pytest.raises(TransitionNotAllowed):
        DialogueFSM(IDLE).send("game_chosen_for_run")


def test_dialogue_state_requires_game_id_exactly_where_needed() -> None:
    with pytest.raises(ValueError):
        DialogueState(step=DialogueStep.run_confirm)
    with pytest.raises(ValueError):
        DialogueState(step=DialogueStep.join_get_id, game_id=3)

    assert DialogueState(step=DialogueStep.run_confirm, game_id=3).describe() == "run.confirm{3}"
    assert IDLE.describe() == "idle"


def test_session_registry_keeps_one_slot_per_session() -> None:
    registry = SessionRegistry()
    assert registry.get(1) == IDLE

    registry.set(1, DialogueState(step=DialogueStep.join_get_id))
    registry.set(2, DialogueState(step=DialogueStep.run_confirm, game_id=5))

    assert registry.get(1).step == DialogueStep.join_get_id
    assert registry.get(2).game_id == 5
    assert len(registry) == 2

    # Idle sessions do not hold a slot.
    registry.set(1, IDLE)
    assert 1 not in registry
    registry.set(2, IDLE)
    assert len(registry) == 0


def test_require_game_id() -> None:
    assert DialogueState(step=DialogueStep.run_confirm, game_id=7).require_game_id() == 7

    with pytest.raises(ValueError):
        DialogueState(step=DialogueStep.join_get_id).require_game_id()
