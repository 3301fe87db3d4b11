from __future__ import annotations

from statemachine import State, StateMachine

from santa.sessions import DialogueState, DialogueStep


class DialogueFSM(StateMachine):
    """State chart of one session's conversation.

    The machine only guards which step may follow which; the dialogue engine
    does the talking and the repository calls. Payload (the game a flow is
    about) travels in `DialogueState`, not in the machine.
    """

    idle = State("Idle", value=DialogueStep.idle.value, initial=True)

    register_get_name = State("Register.GetName", value=DialogueStep.register_get_name.value)
    username_get_name = State("Username.GetName", value=DialogueStep.username_get_name.value)
    create_get_name = State("Create.GetName", value=DialogueStep.create_get_name.value)
    run_get_id = State("Run.GetId", value=DialogueStep.run_get_id.value)
    run_confirm = State("Run.Confirm", value=DialogueStep.run_confirm.value)
    join_get_id = State("Join.GetId", value=DialogueStep.join_get_id.value)
    leave_get_id = State("Leave.GetId", value=DialogueStep.leave_get_id.value)
    accept_get_game_id = State("Accept.GetGameId", value=DialogueStep.accept_get_game_id.value)
    accept_get_user_id = State("Accept.GetUserId", value=DialogueStep.accept_get_user_id.value)
    remove_get_game_id = State("Remove.GetGameId", value=DialogueStep.remove_get_game_id.value)
    remove_get_user_id = State("Remove.GetUserId", value=DialogueStep.remove_get_user_id.value)
    info_get_id = State("Info.GetId", value=DialogueStep.info_get_id.value)

    begin_register = idle.to(register_get_name)
    begin_username = idle.to(username_get_name)
    begin_create = idle.to(create_get_name)
    begin_run = idle.to(run_get_id)
    begin_join = idle.to(join_get_id)
    begin_leave = idle.to(leave_get_id)
    begin_accept = idle.to(accept_get_game_id)
    begin_remove = idle.to(remove_get_game_id)
    begin_info = idle.to(info_get_id)

    game_chosen_for_run = run_get_id.to(run_confirm)
    game_chosen_for_accept = accept_get_game_id.to(accept_get_user_id)
    game_chosen_for_remove = remove_get_game_id.to(remove_get_user_id)

    # Flow ended, successfully or not.
    finish = (
        register_get_name.to(idle)
        | username_get_name.to(idle)
        | create_get_name.to(idle)
        | run_get_id.to(idle)
        | run_confirm.to(idle)
        | join_get_id.to(idle)
        | leave_get_id.to(idle)
        | accept_get_game_id.to(idle)
        | accept_get_user_id.to(idle)
        | remove_get_game_id.to(idle)
        | remove_get_user_id.to(idle)
        | info_get_id.to(idle)
    )

    # Same as `finish`, except registration cannot be abandoned.
    cancel = (
        username_get_name.to(idle)
        | create_get_name.to(idle)
        | run_get_id.to(idle)
        | run_confirm.to(idle)
        | join_get_id.to(idle)
        | leave_get_id.to(idle)
        | accept_get_game_id.to(idle)
        | accept_get_user_id.to(idle)
        | remove_get_game_id.to(idle)
        | remove_get_user_id.to(idle)
        | info_get_id.to(idle)
    )

    def __init__(self, dialogue: DialogueState):
        super().__init__(start_value=dialogue.step.value)

    def to_dialogue_state(self, *, game_id: int | None = None) -> DialogueState:
        return DialogueState(step=DialogueStep(str(self.current_state.value)), game_id=game_id)
