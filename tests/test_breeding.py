import random
from collections import Counter

import pytest

from config import BreedingConfig
from economy.breeding import (
    OUTCOME_ORDER,
    Outcome,
    breed,
    breed_seeds,
    combine_traits,
    offspring_rarity,
    outcome_weights,
)
from economy.commodities import Drug, Rarity
from economy.results import FailureReason


def test_breed_seeds_consumes_both_parents(inventory, make_seed, rng) -> None:
    parent_a = make_seed(name="Green Dream", traits=frozenset({"Steady"}))
    parent_b = make_seed(name="Purple Haze", rarity=Rarity.UNCOMMON, generation=2)
    inventory.add_seed(parent_a)
    inventory.add_seed(parent_b)

    result = breed_seeds(inventory, parent_a.id, parent_b.id, rng)

    assert result.success
    assert result.outcome in OUTCOME_ORDER
    assert inventory.find_seed(parent_a.id) is None
    assert inventory.find_seed(parent_b.id) is None
    assert inventory.seeds() == (result.seed,)
    assert result.seed.generation == 3
    assert result.seed.parent_names == ("Green Dream", "Purple Haze")
    assert result.seed.is_hybrid


def test_breed_seeds_rejects_same_seed(inventory, make_seed, rng) -> None:
    seed = make_seed()
    inventory.add_seed(seed)

    result = breed_seeds(inventory, seed.id, seed.id, rng)

    assert result.reason is FailureReason.INELIGIBLE
    assert inventory.seeds() == (seed,)


def test_breed_seeds_rejects_mixed_drugs_and_missing_ids(inventory, make_seed, rng) -> None:
    weed = make_seed()
    coca = make_seed(Drug.KOKS, name="Andean Leaf")
    inventory.add_seed(weed)
    inventory.add_seed(coca)

    assert breed_seeds(inventory, weed.id, coca.id, rng).reason is FailureReason.INELIGIBLE
    assert breed_seeds(inventory, weed.id, "seed-404", rng).reason is FailureReason.NOT_FOUND
    assert len(inventory.seeds()) == 2


def test_breed_raises_for_self_cross(make_seed, rng) -> None:
    seed = make_seed()
    with pytest.raises(ValueError):
        breed(seed, seed, rng)


def test_breed_is_reproducible_for_a_seed(make_seed) -> None:
    parent_a = make_seed(name="Green Dream")
    parent_b = make_seed(name="Blue Cheese", rarity=Rarity.RARE)

    first = breed(parent_a, parent_b, random.Random(77))
    second = breed(parent_a, parent_b, random.Random(77))

    assert first.outcome == second.outcome
    assert first.seed.name == second.seed.name
    assert first.seed.traits == second.seed.traits
    assert first.yield_min <= first.seed.base_yield <= first.yield_max


def test_variance_shifts_weight_towards_good_outcomes() -> None:
    cfg = BreedingConfig()
    low = dict(zip(OUTCOME_ORDER, outcome_weights(0, Rarity.COMMON, cfg)))
    high = dict(zip(OUTCOME_ORDER, outcome_weights(5, Rarity.LEGENDARY, cfg)))

    assert low[Outcome.NORMAL] == pytest.approx(45.0)
    assert high[Outcome.GOOD] > low[Outcome.GOOD]
    assert high[Outcome.GODTIER] > low[Outcome.GODTIER]
    assert high[Outcome.FAIL] < low[Outcome.FAIL]
    assert all(weight >= 0 for weight in high.values())


def test_outcome_distribution_roughly_matches_weights(make_seed) -> None:
    rng = random.Random(2024)
    counts: Counter[Outcome] = Counter()
    for _ in range(3_000):
        counts[breed(make_seed(), make_seed(), rng).outcome] += 1

    # generation 1 with common parents: variance 3, normal weight 43.5 of 100
    assert counts[Outcome.NORMAL] / 3_000 == pytest.approx(0.435, abs=0.04)


@pytest.mark.parametrize(
    "outcome, expected",
    [
        (Outcome.FAIL, Rarity.COMMON),
        (Outcome.POOR, Rarity.COMMON),
        (Outcome.NORMAL, Rarity.UNCOMMON),
        (Outcome.GOOD, Rarity.RARE),
        (Outcome.EXCELLENT, Rarity.EPIC),
        (Outcome.GODTIER, Rarity.LEGENDARY),
    ],
)
def test_offspring_rarity_by_outcome(outcome: Outcome, expected: Rarity) -> None:
    assert offspring_rarity(Rarity.UNCOMMON, Rarity.RARE, outcome) is expected


def test_fail_keeps_a_single_trait(rng) -> None:
    traits = combine_traits(frozenset({"Turbo", "Lucky"}), frozenset({"Steady"}), Outcome.FAIL, rng)
    assert len(traits) == 1
    assert traits <= {"Turbo", "Lucky", "Steady"}
    assert combine_traits(frozenset(), frozenset(), Outcome.FAIL, rng) == frozenset({"Steady"})


def test_godtier_inherits_every_trait_up_to_the_cap(rng) -> None:
    cfg = BreedingConfig(max_traits=3, novel_trait_chance={})
    traits = combine_traits(
        frozenset({"A", "B"}), frozenset({"C", "D"}), Outcome.GODTIER, rng, cfg
    )
    assert traits == frozenset({"A", "B", "C"})
