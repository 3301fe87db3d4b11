from __future__ import annotations

from enum import StrEnum


class Command(StrEnum):
    start = "start"
    help = "help"
    username = "username"
    create = "create"
    run = "run"
    join = "join"
    leave = "leave"
    list = "list"
    accept = "accept"
    remove = "remove"
    info = "info"
    cancel = "cancel"


DESCRIPTIONS: dict[Command, str] = {
    Command.start: "please use this command to register if you haven't!",
    Command.help: "display this text.",
    Command.username: "changes your username.",
    Command.create: "create a new secret santa event.",
    Command.run: "run a secret santa game.",
    Command.join: "join a secret santa event.",
    Command.leave: "leave a secret santa event.",
    Command.list: "list all your secret santa events.",
    Command.accept: "accept someone to one of your games.",
    Command.remove: "remove someone from one of your games.",
    Command.info: "get info about one of your games.",
    Command.cancel: "cancel operation.",
}


def help_text() -> str:
    lines = ["These commands are supported:"]
    lines.extend(f"/{cmd.value} - {DESCRIPTIONS[cmd]}" for cmd in Command)
    return "\n".join(lines)
