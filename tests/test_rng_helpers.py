import random
from collections import Counter

import pytest

from economy.rng import chance, clamp, jitter, pick, random_between, random_int_between, weighted_choice


def test_weighted_choice_is_deterministic_for_a_seed() -> None:
    items = ["a", "b", "c"]
    weights = [1.0, 2.0, 3.0]
    first = [weighted_choice(items, weights, random.Random(7)) for _ in range(5)]
    second = [weighted_choice(items, weights, random.Random(7)) for _ in range(5)]
    assert first == second


def test_weighted_choice_follows_weights() -> None:
    rng = random.Random(42)
    counts = Counter(weighted_choice(["rare", "common"], [1.0, 9.0], rng) for _ in range(10_000))
    assert counts["common"] / 10_000 == pytest.approx(0.9, abs=0.02)


def test_weighted_choice_never_picks_zero_weight() -> None:
    rng = random.Random(3)
    picks = {weighted_choice(["x", "y", "z"], [0.0, 1.0, 0.0], rng) for _ in range(500)}
    assert picks == {"y"}


@pytest.mark.parametrize(
    "items, weights",
    [([], []), (["a"], [1.0, 2.0]), (["a", "b"], [-1.0, 2.0]), (["a", "b"], [0.0, 0.0])],
)
def test_weighted_choice_rejects_invalid_input(items, weights) -> None:
    with pytest.raises(ValueError):
        weighted_choice(items, weights, random.Random(0))


def test_jitter_stays_within_spread_and_centers() -> None:
    rng = random.Random(11)
    values = [jitter(50.0, 10.0, rng) for _ in range(5_000)]
    assert all(40.0 <= v <= 60.0 for v in values)
    assert sum(values) / len(values) == pytest.approx(50.0, abs=0.5)


def test_jitter_rejects_negative_spread() -> None:
    with pytest.raises(ValueError):
        jitter(1.0, -1.0, random.Random(0))


def test_random_between_bounds() -> None:
    rng = random.Random(5)
    assert all(2.0 <= random_between(2.0, 4.0, rng) < 4.0 for _ in range(1_000))
    assert all(2 <= random_int_between(2, 4, rng) <= 3 for _ in range(1_000))
    with pytest.raises(ValueError):
        random_between(4.0, 2.0, rng)


def test_chance_edges() -> None:
    rng = random.Random(0)
    assert not any(chance(0.0, rng) for _ in range(100))
    assert all(chance(1.0, rng) for _ in range(100))


def test_pick_and_clamp() -> None:
    assert pick(["only"], random.Random(0)) == "only"
    with pytest.raises(ValueError):
        pick([], random.Random(0))
    assert clamp(120.0) == 100.0
    assert clamp(-3.0) == 0.0
    assert clamp(5.0, 1.0, 4.0) == 4.0
