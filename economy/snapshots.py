"""Read-only snapshot shapes handed to the presentation layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typing_extensions import TypedDict

if TYPE_CHECKING:
    from .commodities import CommodityUnit, GeneticEntity


class UnitSnapshot(TypedDict):
    id: str
    drug: str
    strain_name: str
    stage: str
    grams: float
    quality: float
    purity: float | None
    rarity: str


class SeedSnapshot(TypedDict):
    id: str
    name: str
    drug: str
    rarity: str
    traits: list[str]
    base_yield: float
    growth_speed: float
    generation: int
    parent_names: list[str] | None


class SlotSnapshot(TypedDict):
    id: str
    unlocked: bool
    stage: str
    progress: float
    occupant: SeedSnapshot | None


class StationSnapshot(TypedDict):
    id: str
    name: str
    input_stage: str
    output_stage: str
    unlocked: bool
    progress: float
    level: int
    batch: UnitSnapshot | None
    batch_stage: str | None


class RequestSnapshot(TypedDict):
    id: str
    drug: str
    grams_requested: float
    max_price: int
    urgency: str
    created_at: float
    expires_at: float | None
    spontaneous: bool


class CustomerSnapshot(TypedDict):
    id: str
    name: str
    status: str
    personality: str
    loyalty: float
    satisfaction: float
    spending_power: float
    drug_preferences: dict[str, bool]
    addiction: dict[str, float]
    pending_request: RequestSnapshot | None
    next_request_at: float | None


class WorkerSnapshot(TypedDict):
    id: str
    name: str
    domain: str
    role: str
    abilities: list[str]
    owned: bool
    paused: bool
    level: int
    upgrade_cost: int


def unit_snapshot(unit: CommodityUnit) -> UnitSnapshot:
    return UnitSnapshot(
        id=unit.id,
        drug=str(unit.drug),
        strain_name=unit.strain_name,
        stage=unit.stage,
        grams=float(unit.grams),
        quality=float(unit.quality),
        purity=None if unit.purity is None else float(unit.purity),
        rarity=str(unit.rarity),
    )


def seed_snapshot(seed: GeneticEntity) -> SeedSnapshot:
    return SeedSnapshot(
        id=seed.id,
        name=seed.name,
        drug=str(seed.drug),
        rarity=str(seed.rarity),
        traits=sorted(seed.traits),
        base_yield=float(seed.base_yield),
        growth_speed=float(seed.growth_speed),
        generation=int(seed.generation),
        parent_names=list(seed.parent_names) if seed.parent_names else None,
    )
