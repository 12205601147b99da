"""Breeding / genetics generator.

`breed` is pure apart from the injected RNG: it maps two parent seeds to one
offspring and an outcome tier. `breed_seeds` wraps it with the inventory
transaction (both parents are always consumed, even on a `fail`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

from config import CONFIG_MODEL, BreedingConfig
from logger import log

from .commodities import Rarity, GeneticEntity
from .ids import next_id
from .inventory import Inventory
from .results import CommandResult, FailureReason
from .rng import RNG, chance, pick, weighted_choice


class Outcome(StrEnum):
    FAIL = "fail"
    POOR = "poor"
    NORMAL = "normal"
    GOOD = "good"
    EXCELLENT = "excellent"
    GODTIER = "godtier"


OUTCOME_ORDER: tuple[Outcome, ...] = tuple(Outcome)


@dataclass(frozen=True, slots=True)
class OutcomeModifiers:
    yield_mult: float
    speed_mult: float
    purity_bonus: float
    variance: float


OUTCOME_MODIFIERS: dict[Outcome, OutcomeModifiers] = {
    Outcome.FAIL: OutcomeModifiers(0.3, 0.5, -10.0, 0.1),
    Outcome.POOR: OutcomeModifiers(0.6, 0.7, -5.0, 0.15),
    Outcome.NORMAL: OutcomeModifiers(1.0, 1.0, 0.0, 0.2),
    Outcome.GOOD: OutcomeModifiers(1.3, 1.15, 5.0, 0.25),
    Outcome.EXCELLENT: OutcomeModifiers(1.6, 1.3, 10.0, 0.3),
    Outcome.GODTIER: OutcomeModifiers(2.5, 1.5, 20.0, 0.4),
}

OUTCOME_MESSAGES: dict[Outcome, str] = {
    Outcome.FAIL: "Breeding failed. The genetics were not compatible.",
    Outcome.POOR: "Weak cross. The result is disappointing.",
    Outcome.NORMAL: "Normal cross. Solid result.",
    Outcome.GOOD: "Good cross. The genetics blended well.",
    Outcome.EXCELLENT: "Excellent cross. An impressive hybrid.",
    Outcome.GODTIER: "GODLIKE CROSS. A legendary strain was born.",
}

# Inheritance chance per parent trait, and how many inherited traits survive.
_INHERIT_CHANCE: dict[Outcome, float] = {
    Outcome.POOR: 0.5,
    Outcome.NORMAL: 0.6,
    Outcome.GOOD: 0.7,
    Outcome.EXCELLENT: 0.8,
    Outcome.GODTIER: 1.0,
}
_POOR_TRAIT_LIMIT = 2

NAME_PREFIXES: dict[int, tuple[str, ...]] = {
    1: ("Hybrid", "Cross", "Mix", "Blend", "Fusion"),
    2: ("Ultra", "Super", "Mega", "Power", "Prime", "Alpha"),
    3: ("Atomic", "Nuclear", "Plasma", "Quantum", "Cosmic", "Astral", "Nebula"),
    4: ("Godlike", "Divine", "Celestial", "Immortal", "Eternal", "Omnipotent"),
    5: ("Transcendent", "Legendary", "Mythical", "Apocalyptic", "Reality-Bending"),
}
ADJECTIVES: tuple[str, ...] = (
    "Crystal", "Purple", "Golden", "Silver", "Neon", "Glowing", "Frozen", "Burning",
    "Thunder", "Lightning", "Shadow", "Mystic", "Phantom", "Ghost", "Dream", "Nightmare",
    "Cosmic", "Stellar", "Solar", "Lunar", "Arctic", "Tropical", "Desert", "Ocean",
    "Electric", "Magnetic", "Radioactive", "Toxic", "Royal", "Savage", "Wild", "Ancient",
)
NOUNS: tuple[str, ...] = (
    "Kush", "Haze", "Dream", "Blaze", "Fire", "Ice", "Storm", "Thunder",
    "Widow", "Ghost", "Spirit", "Diesel", "Express", "Rocket", "Glue", "Cookies",
    "Frost", "Crush", "Punch", "OG", "Gelato", "Sherbet", "Sunset", "Eclipse",
    "Venom", "Elixir", "Nectar", "Honey", "King", "Queen", "Titan", "Beast",
)
EPIC_SUFFIXES: tuple[str, ...] = (
    "X", "XL", "XXL", "MAX", "ULTRA", "OMEGA", "PRIME", "APEX", "GOD", "INFINITY",
)
FAIL_NAMES: tuple[str, ...] = (
    "Sad Weed", "Depressing Plant", "Garbage Grass", "Trash Tier", "Disappointment",
    "Epic Fail", "Total Flop", "Mold Special", "Lame Leaf", "Wasted Harvest",
)
GODTIER_NAMES: tuple[str, ...] = (
    "God Strain", "Holy Grail", "Perfection", "Masterpiece", "Legend",
    "Immortal", "Ultimate", "Absolute", "Phenomenon", "One Of A Kind",
)


@dataclass(frozen=True, slots=True)
class BreedingOffspring:
    seed: GeneticEntity
    outcome: Outcome
    yield_min: int
    yield_max: int

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]


@dataclass(slots=True)
class BreedingResult(CommandResult):
    seed: GeneticEntity | None = None
    outcome: Outcome | None = None


def outcome_weights(
    generation: int, best_rarity: Rarity, config: BreedingConfig | None = None
) -> list[float]:
    """Tier weights; higher generation and rarer parents widen the variance."""
    cfg = config or CONFIG_MODEL.breeding
    variance = min(
        generation * cfg.generation_variance_step + best_rarity.rank * cfg.rarity_variance_step,
        cfg.variance_cap,
    )
    return [
        max(0.0, cfg.outcome_weights.get(tier, 0.0) + cfg.outcome_weight_shift.get(tier, 0.0) * variance)
        for tier in OUTCOME_ORDER
    ]


def roll_outcome(
    generation: int, best_rarity: Rarity, rng: RNG, config: BreedingConfig | None = None
) -> Outcome:
    return weighted_choice(OUTCOME_ORDER, outcome_weights(generation, best_rarity, config), rng)


def offspring_rarity(rarity_a: Rarity, rarity_b: Rarity, outcome: Outcome) -> Rarity:
    average = (rarity_a.rank + rarity_b.rank) // 2
    best = max(rarity_a.rank, rarity_b.rank)
    match outcome:
        case Outcome.FAIL:
            rank = average - 2
        case Outcome.POOR:
            rank = average - 1
        case Outcome.GOOD:
            rank = average + 1
        case Outcome.EXCELLENT:
            rank = best + 1
        case Outcome.GODTIER:
            rank = best + 2
        case _:
            rank = average
    return Rarity.from_rank(rank)


def combine_traits(
    traits_a: frozenset[str],
    traits_b: frozenset[str],
    outcome: Outcome,
    rng: RNG,
    config: BreedingConfig | None = None,
) -> frozenset[str]:
    cfg = config or CONFIG_MODEL.breeding
    pool = sorted(traits_a | traits_b)

    if outcome is Outcome.FAIL:
        return frozenset([pick(pool, rng)]) if pool else frozenset({"Steady"})

    inherit = _INHERIT_CHANCE[outcome]
    kept = [trait for trait in pool if chance(inherit, rng)]
    if outcome is Outcome.POOR:
        kept = kept[:_POOR_TRAIT_LIMIT]
    elif outcome is Outcome.NORMAL and not kept and pool:
        kept = [pool[0]]

    if chance(cfg.novel_trait_chance.get(outcome, 0.0), rng) and cfg.power_traits:
        novel = pick(cfg.power_traits, rng)
        if novel not in kept:
            kept.append(novel)

    return frozenset(kept[: cfg.max_traits])


def hybrid_name(name_a: str, name_b: str, generation: int, outcome: Outcome, rng: RNG) -> str:
    if outcome is Outcome.FAIL:
        return pick(FAIL_NAMES, rng)
    if outcome is Outcome.GODTIER:
        name = pick(GODTIER_NAMES, rng)
        return f"{name} {pick(EPIC_SUFFIXES, rng)}" if generation >= 3 else name

    prefixes = NAME_PREFIXES[max(1, min(generation, 5))]
    roll = rng.random()
    if roll < 0.4:
        name = f"{name_a.split()[0]} {name_b.split()[-1]}"
        if generation >= 2:
            name = f"{pick(prefixes, rng)} {name}"
        suffix_from = 4
    elif roll < 0.7:
        blended = name_a[: math.ceil(len(name_a) / 2)] + name_b[len(name_b) // 2 :]
        name = "".join(blended.split())
        if generation >= 2:
            name = f"{pick(ADJECTIVES, rng)} {name}"
        suffix_from = 4
    else:
        name = f"{pick(ADJECTIVES, rng)} {pick(NOUNS, rng)}"
        if generation >= 2:
            name = f"{pick(prefixes, rng)} {name}"
        suffix_from = 5

    if generation >= suffix_from:
        name = f"{name} {pick(EPIC_SUFFIXES, rng)}"
    return name


def breed(
    parent_a: GeneticEntity,
    parent_b: GeneticEntity,
    rng: RNG,
    config: BreedingConfig | None = None,
) -> BreedingOffspring:
    """Combine two seeds into one offspring.

    Raises:
        ValueError: when both parents are the same seed or of different drugs.
    """
    if parent_a.id == parent_b.id:
        raise ValueError("a seed cannot be bred with itself")
    if parent_a.drug != parent_b.drug:
        raise ValueError("parents must be of the same drug")

    generation = max(parent_a.generation, parent_b.generation) + 1
    best_rarity = max(parent_a.rarity, parent_b.rarity, key=lambda r: r.rank)
    outcome = roll_outcome(generation, best_rarity, rng, config)
    mods = OUTCOME_MODIFIERS[outcome]

    base_yield = math.floor((parent_a.base_yield + parent_b.base_yield) / 2 * mods.yield_mult)
    growth_speed = round((parent_a.growth_speed + parent_b.growth_speed) / 2 * mods.speed_mult, 2)
    purity_bonus = (parent_a.purity_bonus + parent_b.purity_bonus) / 2 + mods.purity_bonus

    seed = GeneticEntity(
        id=next_id("seed"),
        name=hybrid_name(parent_a.name, parent_b.name, generation, outcome, rng),
        drug=parent_a.drug,
        rarity=offspring_rarity(parent_a.rarity, parent_b.rarity, outcome),
        traits=combine_traits(parent_a.traits, parent_b.traits, outcome, rng, config),
        base_yield=float(max(1, base_yield)),
        growth_speed=max(0.1, growth_speed),
        generation=generation,
        parent_names=(parent_a.name, parent_b.name),
        purity_bonus=purity_bonus,
    )
    return BreedingOffspring(
        seed=seed,
        outcome=outcome,
        yield_min=math.floor(seed.base_yield * (1 - mods.variance)),
        yield_max=math.floor(seed.base_yield * (1 + mods.variance)),
    )


def breed_seeds(
    inventory: Inventory,
    seed_a_id: str,
    seed_b_id: str,
    rng: RNG,
    config: BreedingConfig | None = None,
) -> BreedingResult:
    """Breed two seeds from the seed bank; both parents are consumed."""
    if seed_a_id == seed_b_id:
        return BreedingResult.failed(FailureReason.INELIGIBLE, "Pick two different seeds")
    parent_a = inventory.find_seed(seed_a_id)
    parent_b = inventory.find_seed(seed_b_id)
    if parent_a is None or parent_b is None:
        missing = seed_a_id if parent_a is None else seed_b_id
        return BreedingResult.failed(FailureReason.NOT_FOUND, f"Unknown seed {missing}")
    if parent_a.drug != parent_b.drug:
        return BreedingResult.failed(FailureReason.INELIGIBLE, "Parents must be the same drug")

    offspring = breed(parent_a, parent_b, rng, config)
    inventory.take_seed(parent_a.id)
    inventory.take_seed(parent_b.id)
    inventory.add_seed(offspring.seed)
    log(
        f"Breeding: {parent_a.name} x {parent_b.name} -> {offspring.seed.name} "
        f"({offspring.outcome}, gen {offspring.seed.generation})",
        level="INFO",
    )
    return BreedingResult.ok(offspring.message, seed=offspring.seed, outcome=offspring.outcome)
