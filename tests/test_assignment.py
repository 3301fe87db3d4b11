from __future__ import annotations

import random

import pytest

from santa.assignment import derange


@pytest.mark.parametrize("n", [2, 3, 4, 7, 25])
def test_derange_has_no_fixed_points_and_is_a_permutation(n: int) -> None:
    rng = random.Random(n)
    users = [1000 + i for i in range(n)]

    for _ in range(50):
        pairs = derange(users, rng=rng)

        givers = [g for g, _ in pairs]
        receivers = [rc for _, rc in pairs]
        assert givers == users
        assert sorted(receivers) == sorted(users)
        assert all(g != rc for g, rc in pairs)


def test_two_users_swap() -> None:
    assert derange([1, 2], rng=random.Random(0)) == [(1, 2), (2, 1)]


def test_input_is_not_mutated() -> None:
    users = [3, 1, 2]
    derange(users, rng=random.Random(1))
    assert users == [3, 1, 2]


@pytest.mark.parametrize("users", [[], [42]])
def test_fewer_than_two_users_is_rejected(users: list[int]) -> None:
    with pytest.raises(ValueError):
        derange(users)


def test_every_derangement_of_three_is_reachable() -> None:
    rng = random.Random(7)
    seen = {tuple(rc for _, rc in derange([1, 2, 3], rng=rng)) for _ in range(200)}
    assert seen == {(2, 3, 1), (3, 1, 2)}
