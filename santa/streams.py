from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import cast

import redis


MAILBOX_KEY_PREFIX = "mailbox:"  # + {user_id}


@dataclass(frozen=True, slots=True)
class Mailbox:
    user_id: int

    @property
    def key(self) -> str:
        return f"{MAILBOX_KEY_PREFIX}{self.user_id}"


def publish_many(*, r: redis.Redis, entries: Iterable[tuple[int, str]]) -> list[str]:
    """Append a batch of texts in one MULTI/EXEC: either every outbox gets its entry or none does."""

    with r.pipeline(transaction=True) as pipe:
        for user_id, text in entries:
            pipe.xadd(Mailbox(user_id=user_id).key, {"type": "message", "text": text})
        return cast(list[str], pipe.execute())


def read_mailbox(*, r: redis.Redis, mailbox: Mailbox, count: int = 20, start: str = "-", end: str = "+") -> list[tuple[str, dict[str, str]]]:
    return cast(list[tuple[str, dict[str, str]]], r.xrange(mailbox.key, min=start, max=end, count=count))
