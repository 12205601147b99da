"""Commodity units, genetic entities and their shared vocabularies."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum

from .ids import next_id
from .rng import clamp


class Drug(StrEnum):
    WEED = "weed"
    KOKS = "koks"
    METH = "meth"


class Rarity(StrEnum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return RARITY_ORDER.index(self)

    @classmethod
    def from_rank(cls, rank: int) -> Rarity:
        return RARITY_ORDER[max(0, min(len(RARITY_ORDER) - 1, rank))]


RARITY_ORDER: tuple[Rarity, ...] = (
    Rarity.COMMON,
    Rarity.UNCOMMON,
    Rarity.RARE,
    Rarity.EPIC,
    Rarity.LEGENDARY,
)

# Harvest quality base per rarity tier
RARITY_QUALITY: dict[Rarity, float] = {
    Rarity.COMMON: 50.0,
    Rarity.UNCOMMON: 65.0,
    Rarity.RARE: 75.0,
    Rarity.EPIC: 85.0,
    Rarity.LEGENDARY: 95.0,
}


@dataclass(frozen=True, slots=True)
class GeneticEntity:
    """A seed. Immutable; breeding consumes parents and yields a new entity."""

    id: str
    name: str
    drug: Drug
    rarity: Rarity = Rarity.COMMON
    traits: frozenset[str] = frozenset()
    base_yield: float = 10.0
    growth_speed: float = 1.0
    generation: int = 0
    parent_names: tuple[str, str] | None = None
    purity_bonus: float = 0.0

    @property
    def is_hybrid(self) -> bool:
        return self.parent_names is not None

    def has_trait(self, trait: str) -> bool:
        return trait in self.traits

    def clone(self) -> GeneticEntity:
        """Same genetics under a fresh id (seed drops)."""
        return replace(self, id=next_id("seed"))


@dataclass(slots=True)
class CommodityUnit:
    """A quantity of product owned by exactly one slot, station or inventory."""

    id: str
    drug: Drug
    strain_name: str
    stage: str
    grams: float
    quality: float
    rarity: Rarity = Rarity.COMMON
    purity: float | None = None
    source_seed_id: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.grams < 0:
            raise ValueError("grams must be >= 0")
        self.quality = clamp(self.quality)
        if self.purity is not None:
            self.purity = clamp(self.purity)

    @property
    def quality_score(self) -> float:
        """Combined quality/purity score used for pricing and stock selection."""
        if self.purity is None:
            return self.quality
        return (self.quality + self.purity) / 2.0

    @property
    def ranking_score(self) -> float:
        return self.quality + (self.purity or 0.0)

    def split(self, grams: float) -> CommodityUnit:
        """Return a detached copy carrying `grams` of this unit (no mutation)."""
        return replace(self, id=next_id("unit"), grams=float(grams))
