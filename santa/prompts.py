"""User-facing texts.

Every reply the bot sends lives here so dialogue code only decides *which* text
to send.
"""

from __future__ import annotations

from collections.abc import Iterable

from santa.models import Game, User


HELP_HINT = "Please use /help"
CANCEL_HINT = "You can /cancel"


def confirmation_phrase(game_id: int) -> str:
    return f"Yes, I do want to run game {game_id}"


# Idle / commands

def unknown_command() -> str:
    return "Unable to handle the message. Type /help to see the usage."


def already_registered() -> str:
    return (
        "It looks like you're already registered.\n"
        "You can change your username using /username\n"
        "Use /help to get more info."
    )


def not_registered() -> str:
    return "It looks like you're not registered. Please register with /start"


def ask_register_name() -> str:
    return "Let's start! How should I call you?"


def ask_new_username() -> str:
    return f"Please enter a new username.\n{CANCEL_HINT}"


def ask_game_name() -> str:
    return f"Please enter name of the game.\n{CANCEL_HINT}"


def ask_run_game_id(options: Iterable[Game]) -> str:
    listed = "\n".join(g.describe() for g in options) or "You don't administer any games yet.\n"
    return f"Please enter id of the game you want to run\n{CANCEL_HINT}\n\nHere are available options:\n{listed}"


def ask_join_game_id() -> str:
    return f"Please enter id of the game you want to join.\n{CANCEL_HINT}"


def ask_leave_game_id() -> str:
    return f"Please enter id of the game you want to leave.\n{CANCEL_HINT}\nYou will be able to rejoin this game."


def ask_manage_game_id() -> str:
    return f"Please enter id of the game you want to manage.\n{CANCEL_HINT}"


def ask_info_game_id() -> str:
    return f"Please enter id of the game you want to get info about.\n{CANCEL_HINT}"


def cancelled() -> str:
    return "Cancelling the dialogue."


def cannot_cancel_registration() -> str:
    return "It's not possible to cancel the registration process."


# Listing

def _section(title: str, games: list[Game], empty: str) -> str:
    if not games:
        return empty
    return f"Here are your {title} games:\n\n" + "\n".join(g.describe() for g in games)


def list_games(*, user: User, pending: list[Game], active: list[Game], admin: list[Game]) -> list[str]:
    return [
        f"Hi, {user.username}! Here's the list of all your games:",
        _section("pending", pending, "There were no pending games found."),
        _section("active", active, "There were no active games found."),
        _section("admin", admin, "There were no admin games found."),
    ]


def _people(users: list[User]) -> str:
    if not users:
        return "nobody yet\n"
    return "\n".join(u.describe() for u in users)


def game_info(*, game: Game, admin: User | None, active: list[User], pending: list[User]) -> str:
    admin_name = admin.username if admin is not None else str(game.admin)
    return (
        "Here is info about your game:\n\n"
        f"Name: {game.name}\n"
        f"Id: {game.id}\n"
        f"Admin: {admin_name}\n\n"
        f"Active users:\n{_people(active)}\n"
        f"Pending users:\n{_people(pending)}"
    )


def pending_users(users: list[User]) -> str:
    return f"Here are all pending users:\n\n{_people(users)}\nPlease send id of the user to accept."


def all_users(*, active: list[User], pending: list[User]) -> str:
    return (
        "Here are all users:\n\n"
        f"Pending users:\n{_people(pending)}\n"
        f"Active users:\n{_people(active)}\n"
        "Please send id of the user to remove."
    )


# Flow outcomes

def registered(name: str) -> str:
    return (
        f"Thanks for completing the registration, {name}.\n"
        "You can change your username using /username\n"
        "Use /help to get more info."
    )


def username_changed(name: str) -> str:
    return f"You've changed your username to {name}."


def game_created(game: Game) -> list[str]:
    return [
        f"You've created game named {game.name} with game id {game.id}",
        f"To join game {game.name} you have to use /join after registration and use {game.id}.",
    ]


def confirm_run(game: Game) -> str:
    return (
        f"Please confirm that you're going to run game {game.name}\n"
        "This action is irreversible\n"
        "Messages about who to give the gift to will be sent out instantly\n\n"
        f"To confirm please type: {confirmation_phrase(game.id)}\n"
        f"{CANCEL_HINT}"
    )


def confirmation_mismatch() -> str:
    return "Text doesn't match the confirmation statement.\nPlease retry or use /cancel"


def game_ran() -> str:
    return "You've successfully run this game.\nMessages will be sent immediately.\nThanks for using this bot!"


def joined() -> str:
    return (
        "You're now in the waiting list to this game.\n"
        "Please wait until game administrator confirms you.\n"
        "You can /leave to leave game and /list to list all your games."
    )


def left() -> str:
    return "You've successfully left this game."


def accepted() -> str:
    return "You've accepted this user to the game."


def accepted_notice(game: Game) -> str:
    return f"You've been accepted to game {game.name} ({game.id})!"


def removed() -> str:
    return "You've removed this user from the game."


def removed_notice(game: Game) -> str:
    return f"You've been removed from game {game.name} ({game.id})."


# Errors

def no_such_game() -> str:
    return f"It looks like there's no such game.\n{HELP_HINT}"


def no_such_user() -> str:
    return "It looks like there's no such user."


def not_admin() -> str:
    return "It looks like you're not admin of this game"


def already_in_game() -> str:
    return "It looks like you're already in this game."


def not_pending() -> str:
    return "This user is not waiting to join this game."


def invalid_id() -> str:
    return f"That doesn't look like a valid id.\n{HELP_HINT}"


def empty_input() -> str:
    return HELP_HINT


def try_again() -> str:
    return "Something went wrong on our side. Please try again."


# Game run

def run_assignment(*, giver_name: str, receiver_name: str, game_name: str) -> str:
    return (
        f"Ho Ho Ho, {giver_name}!\n\n"
        f"As a result of participating in game {game_name}, it looks like you have to prepare a present for {receiver_name}!\n\n"
        "Have a happy new year, your secret santa bot."
    )


def run_too_few_participants() -> str:
    return "It looks like there's only one participant :(\nWe can't run this game."


def run_completed() -> str:
    return "All messages have been sent successfully!"


def run_completed_too_few() -> str:
    return "All messages have been sent successfully!\nIt seems like there were less than 2 players so there'll be no presents :("
