from __future__ import annotations

import logging
import random
import re
from collections.abc import Callable
from dataclasses import dataclass, field

import redis
from pydantic import ValidationError
from statemachine.exceptions import TransitionNotAllowed

from santa import prompts
from santa.commands import Command, help_text
from santa.errors import (
    AlreadyExists,
    AlreadyInGame,
    GameNotFound,
    InvalidInput,
    NotGameAdmin,
    NotPending,
    SantaError,
    StoreError,
    UserNotFound,
)
from santa.fsm import DialogueFSM
from santa.models import validate_game_id, validate_user_id
from santa.sessions import IDLE, DialogueState, DialogueStep, SessionRegistry
from santa.store import (
    change_username,
    create_game,
    get_games,
    get_user,
    get_users,
    promote,
    register_user,
    request_join,
    require_admin,
    require_game,
    run_game,
    withdraw,
)


logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """Text the transport must deliver to a user."""

    user_id: int
    text: str


@dataclass(slots=True)
class DialogueResult:
    state: DialogueState
    messages: list[OutgoingMessage] = field(default_factory=list)


def _parse_integer(text: str) -> int:
    value = text.strip()
    if not _INTEGER_RE.match(value):
        raise InvalidInput(prompts.invalid_id())
    return int(value)


def parse_game_id(text: str) -> int:
    try:
        return validate_game_id(_parse_integer(text))
    except ValidationError as e:
        raise InvalidInput(prompts.invalid_id()) from e


def parse_user_id(text: str) -> int:
    try:
        return validate_user_id(_parse_integer(text))
    except ValidationError as e:
        raise InvalidInput(prompts.invalid_id()) from e


def _parse_name(text: str, command: Command | None) -> str:
    name = text.strip()
    if not name or command is not None:
        raise InvalidInput(prompts.empty_input())
    return name


def _advance(dialogue: DialogueState, event: str, *, game_id: int | None = None) -> DialogueState:
    fsm = DialogueFSM(dialogue)
    fsm.send(event)
    nxt = fsm.to_dialogue_state(game_id=game_id)
    logger.debug("dialogue %s --%s--> %s", dialogue.describe(), event, nxt.describe())
    return nxt


class _Turn:
    """Everything one inbound message produces."""

    def __init__(self, session_id: int, text: str, command: Command | None, dialogue: DialogueState) -> None:
        self.session_id = session_id
        self.text = text
        self.command = command
        self.dialogue = dialogue
        self.messages: list[OutgoingMessage] = []

    def reply(self, *texts: str) -> None:
        for text in texts:
            self.messages.append(OutgoingMessage(user_id=self.session_id, text=text))

    def notify(self, user_id: int, text: str) -> None:
        self.messages.append(OutgoingMessage(user_id=user_id, text=text))

    def go(self, event: str, *, game_id: int | None = None) -> DialogueState:
        return _advance(self.dialogue, event, game_id=game_id)

    def finish(self) -> DialogueState:
        return self.go("finish")


class DialogueEngine:
    """Turns a session's messages into repository calls and replies.

    One state slot per session lives in the injected `SessionRegistry`; the
    store handle `r` is passed on to every repository call. Expected failures
    (`SantaError`) become replies and end the flow; store failures are logged,
    answered with a generic "try again" and reset the session to idle.
    `handle_message` never raises.
    """

    def __init__(self, *, r: redis.Redis, sessions: SessionRegistry, rng: random.Random | None = None) -> None:
        self.r = r
        self.sessions = sessions
        self.rng = rng

        self._commands: dict[Command, Callable[[_Turn], DialogueState]] = {
            Command.start: self._start,
            Command.help: self._help,
            Command.username: self._prompt_step("begin_username", prompts.ask_new_username),
            Command.create: self._prompt_step("begin_create", prompts.ask_game_name),
            Command.run: self._run,
            Command.join: self._prompt_step("begin_join", prompts.ask_join_game_id),
            Command.leave: self._prompt_step("begin_leave", prompts.ask_leave_game_id),
            Command.accept: self._prompt_step("begin_accept", prompts.ask_manage_game_id),
            Command.remove: self._prompt_step("begin_remove", prompts.ask_manage_game_id),
            Command.info: self._prompt_step("begin_info", prompts.ask_info_game_id),
            Command.list: self._list,
        }
        self._steps: dict[DialogueStep, Callable[[_Turn], DialogueState]] = {
            DialogueStep.register_get_name: self._register_name,
            DialogueStep.username_get_name: self._username_name,
            DialogueStep.create_get_name: self._create_name,
            DialogueStep.run_get_id: self._run_game_id,
            DialogueStep.run_confirm: self._run_confirm,
            DialogueStep.join_get_id: self._join_game_id,
            DialogueStep.leave_get_id: self._leave_game_id,
            DialogueStep.accept_get_game_id: self._accept_game_id,
            DialogueStep.accept_get_user_id: self._accept_user_id,
            DialogueStep.remove_get_game_id: self._remove_game_id,
            DialogueStep.remove_get_user_id: self._remove_user_id,
            DialogueStep.info_get_id: self._info_game_id,
        }

    def handle_message(self, *, session_id: int, text: str, command: Command | None = None) -> DialogueResult:
        dialogue = self.sessions.get(session_id)
        turn = _Turn(session_id, text, command, dialogue)

        try:
            nxt = self._dispatch(turn)
        except (redis.RedisError, StoreError):
            logger.exception("store failure while handling session %s in %s", session_id, dialogue.describe())
            turn.reply(prompts.try_again())
            nxt = IDLE

        self.sessions.set(session_id, nxt)
        return DialogueResult(state=nxt, messages=turn.messages)

    def _dispatch(self, turn: _Turn) -> DialogueState:
        if turn.command == Command.cancel:
            return self._cancel(turn)

        if turn.dialogue.is_idle:
            if turn.command is None:
                turn.reply(prompts.unknown_command())
                return IDLE
            return self._commands[turn.command](turn)

        # Mid-flow, commands are just text for the current step.
        try:
            return self._steps[turn.dialogue.step](turn)
        except SantaError as e:
            turn.reply(self._error_text(turn, e))
            return turn.finish()

    def _error_text(self, turn: _Turn, error: SantaError) -> str:
        if isinstance(error, UserNotFound):
            return prompts.not_registered() if error.user_id == turn.session_id else prompts.no_such_user()
        if isinstance(error, GameNotFound):
            return prompts.no_such_game()
        if isinstance(error, AlreadyExists):
            return prompts.already_registered()
        if isinstance(error, AlreadyInGame):
            return prompts.already_in_game()
        if isinstance(error, NotPending):
            return prompts.not_pending()
        if isinstance(error, NotGameAdmin):
            return prompts.not_admin()
        return str(error)

    # Commands from idle

    def _cancel(self, turn: _Turn) -> DialogueState:
        if turn.dialogue.is_idle:
            turn.reply(prompts.cancelled())
            return IDLE
        try:
            nxt = turn.go("cancel")
        except TransitionNotAllowed:
            turn.reply(prompts.cannot_cancel_registration())
            return turn.dialogue
        turn.reply(prompts.cancelled())
        return nxt

    def _prompt_step(self, event: str, prompt: Callable[[], str]) -> Callable[[_Turn], DialogueState]:
        def _handler(turn: _Turn) -> DialogueState:
            turn.reply(prompt())
            return turn.go(event)

        return _handler

    def _start(self, turn: _Turn) -> DialogueState:
        if get_user(r=self.r, user_id=turn.session_id) is not None:
            turn.reply(prompts.already_registered())
            return IDLE
        turn.reply(prompts.ask_register_name())
        return turn.go("begin_register")

    def _help(self, turn: _Turn) -> DialogueState:
        turn.reply(help_text())
        return IDLE

    def _run(self, turn: _Turn) -> DialogueState:
        user = get_user(r=self.r, user_id=turn.session_id)
        options = get_games(r=self.r, game_ids=user.admin_games) if user is not None else []
        turn.reply(prompts.ask_run_game_id(options))
        return turn.go("begin_run")

    def _list(self, turn: _Turn) -> DialogueState:
        user = get_user(r=self.r, user_id=turn.session_id)
        if user is None:
            turn.reply(prompts.not_registered())
            return IDLE
        turn.reply(
            *prompts.list_games(
                user=user,
                pending=get_games(r=self.r, game_ids=user.pending_games),
                active=get_games(r=self.r, game_ids=user.active_games),
                admin=get_games(r=self.r, game_ids=user.admin_games),
            )
        )
        return IDLE

    # Flow steps

    def _register_name(self, turn: _Turn) -> DialogueState:
        name = _parse_name(turn.text, turn.command)
        register_user(r=self.r, user_id=turn.session_id, username=name)
        turn.reply(prompts.registered(name))
        return turn.finish()

    def _username_name(self, turn: _Turn) -> DialogueState:
        name = _parse_name(turn.text, turn.command)
        change_username(r=self.r, user_id=turn.session_id, username=name)
        turn.reply(prompts.username_changed(name))
        return turn.finish()

    def _create_name(self, turn: _Turn) -> DialogueState:
        name = _parse_name(turn.text, turn.command)
        game = create_game(r=self.r, admin_id=turn.session_id, name=name, rng=self.rng)
        turn.reply(*prompts.game_created(game))
        return turn.finish()

    def _run_game_id(self, turn: _Turn) -> DialogueState:
        game_id = parse_game_id(turn.text)
        game = require_admin(r=self.r, user_id=turn.session_id, game_id=game_id)
        turn.reply(prompts.confirm_run(game))
        return turn.go("game_chosen_for_run", game_id=game_id)

    def _run_confirm(self, turn: _Turn) -> DialogueState:
        game_id = turn.dialogue.require_game_id()

        if turn.text.strip() != prompts.confirmation_phrase(game_id):
            turn.reply(prompts.confirmation_mismatch())
            return turn.dialogue

        messages = run_game(r=self.r, game_id=game_id, rng=self.rng)
        turn.reply(prompts.game_ran())
        for user_id, text in messages:
            turn.notify(user_id, text)
        return turn.finish()

    def _join_game_id(self, turn: _Turn) -> DialogueState:
        game_id = parse_game_id(turn.text)
        request_join(r=self.r, user_id=turn.session_id, game_id=game_id)
        turn.reply(prompts.joined())
        return turn.finish()

    def _leave_game_id(self, turn: _Turn) -> DialogueState:
        game_id = parse_game_id(turn.text)
        withdraw(r=self.r, user_id=turn.session_id, game_id=game_id)
        turn.reply(prompts.left())
        return turn.finish()

    def _accept_game_id(self, turn: _Turn) -> DialogueState:
        game_id = parse_game_id(turn.text)
        game = require_admin(r=self.r, user_id=turn.session_id, game_id=game_id)
        turn.reply(prompts.pending_users(get_users(r=self.r, user_ids=game.pending_users)))
        return turn.go("game_chosen_for_accept", game_id=game_id)

    def _accept_user_id(self, turn: _Turn) -> DialogueState:
        user_id = parse_user_id(turn.text)
        game = promote(r=self.r, user_id=user_id, game_id=turn.dialogue.require_game_id())
        turn.reply(prompts.accepted())
        turn.notify(user_id, prompts.accepted_notice(game))
        return turn.finish()

    def _remove_game_id(self, turn: _Turn) -> DialogueState:
        game_id = parse_game_id(turn.text)
        game = require_admin(r=self.r, user_id=turn.session_id, game_id=game_id)
        turn.reply(
            prompts.all_users(
                active=get_users(r=self.r, user_ids=game.active_users),
                pending=get_users(r=self.r, user_ids=game.pending_users),
            )
        )
        return turn.go("game_chosen_for_remove", game_id=game_id)

    def _remove_user_id(self, turn: _Turn) -> DialogueState:
        user_id = parse_user_id(turn.text)
        before = require_game(r=self.r, game_id=turn.dialogue.require_game_id())
        game = withdraw(r=self.r, user_id=user_id, game_id=before.id)
        turn.reply(prompts.removed())
        if user_id in before.active_users or user_id in before.pending_users:
            turn.notify(user_id, prompts.removed_notice(game))
        return turn.finish()

    def _info_game_id(self, turn: _Turn) -> DialogueState:
        game_id = parse_game_id(turn.text)
        game = require_game(r=self.r, game_id=game_id)
        admin = get_user(r=self.r, user_id=game.admin)
        turn.reply(
            prompts.game_info(
                game=game,
                admin=admin,
                active=get_users(r=self.r, user_ids=game.active_users),
                pending=get_users(r=self.r, user_ids=game.pending_users),
            )
        )
        return turn.finish()
