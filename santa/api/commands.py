from __future__ import annotations

import re

from santa.commands import Command


# "/join", "/join 42", "/join@SecretSantaBot"
_COMMAND_RE = re.compile(r"^/(?P<name>[A-Za-z_]+)(?:@\w+)?(?:\s|$)")


def parse_command(text: str) -> Command | None:
    """Recognize a leading command token; anything else is free text."""

    m = _COMMAND_RE.match(text.strip())
    if m is None:
        return None
    try:
        return Command(m.group("name").lower())
    except ValueError:
        return None
