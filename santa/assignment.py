from __future__ import annotations

import random
from collections.abc import Sequence


def derange(users: Sequence[int], *, rng: random.Random | None = None) -> list[tuple[int, int]]:
    """Pair every giver with a receiver so that nobody draws themselves.

    Returns `(giver, receiver)` pairs in the input order of givers; the receivers
    are a permutation of the givers with no fixed point.

    Rejection sampling: shuffle a copy until no position maps to itself. The
    expected number of shuffles tends to e (~2.718) whatever the length, so the
    loop has no cap. A single participant can never be deranged; callers must
    handle `len(users) < 2` themselves.
    """

    if len(users) < 2:
        raise ValueError("At least two participants are required")

    rng = rng or random.SystemRandom()
    givers = list(users)
    receivers = list(givers)
    while True:
        rng.shuffle(receivers)
        if all(g != r for g, r in zip(givers, receivers)):
            return list(zip(givers, receivers))
