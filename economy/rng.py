"""Seedable randomness helpers.

Every game-balance decision (harvest jitter, outcome tiers, customer selection,
log flavour text) draws from an injected RNG so that tests can pin outcomes
with `random.Random(seed)`.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import Protocol, TypeVar

T = TypeVar("T")


class RNG(Protocol):
    """Minimal RNG protocol; `random.Random` satisfies it."""

    def random(self) -> float:  # pragma: no cover - protocol
        ...

    def uniform(self, a: float, b: float) -> float:  # pragma: no cover - protocol
        ...


def make_rng(seed: int | None = None) -> random.Random:
    return random.Random(seed)


def random_between(low: float, high: float, rng: RNG) -> float:
    if low > high:
        raise ValueError("low must not exceed high")
    return low + rng.random() * (high - low)


def random_int_between(low: float, high: float, rng: RNG) -> int:
    """Floor of a uniform draw in [low, high)."""
    return math.floor(random_between(low, high, rng))


def chance(probability: float, rng: RNG) -> bool:
    if probability <= 0:
        return False
    if probability >= 1:
        return True
    return rng.random() < probability


def pick(items: Sequence[T], rng: RNG) -> T:
    if not items:
        raise ValueError("cannot pick from an empty sequence")
    return items[min(len(items) - 1, int(rng.random() * len(items)))]


def weighted_choice(items: Sequence[T], weights: Sequence[float], rng: RNG) -> T:
    """Pick one item with probability proportional to its weight.

    Raises:
        ValueError: on empty input, mismatched lengths, negative weights or
            an all-zero weight vector.
    """
    if not items:
        raise ValueError("cannot choose from an empty sequence")
    if len(items) != len(weights):
        raise ValueError("items and weights must have the same length")
    if any(w < 0 for w in weights):
        raise ValueError("weights must be non-negative")
    total = float(sum(weights))
    if total <= 0:
        raise ValueError("at least one weight must be positive")

    roll = rng.random() * total
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += weight
        if roll < cumulative:
            return item
    # Float rounding can leave roll == total; fall back to the last weighted item.
    for item, weight in zip(reversed(items), reversed(weights)):
        if weight > 0:
            return item
    raise AssertionError("unreachable")  # pragma: no cover


def jitter(center: float, spread: float, rng: RNG) -> float:
    """Bell-shaped noise around `center`, bounded to `center ± spread`.

    The sum of two uniform draws gives a triangular distribution, which is
    close enough to a gaussian for balancing while never leaving the bounds.
    """
    if spread < 0:
        raise ValueError("spread must be >= 0")
    offset = (rng.random() + rng.random() - 1.0) * spread
    return center + offset


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))
