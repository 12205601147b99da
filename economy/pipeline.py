"""Production pipeline: grow slots, processing stations and cook stations.

One `ProductionPipeline` exists per commodity domain (weed, koks, meth). It
owns its slots and stations; harvested and collected units move into the
shared `Inventory`, and processing inputs are taken out of it.

Rates are expressed per real second of tick delta:

- grow slots:  progress += base_rate × speed_multiplier × elapsed
- stations:    progress += 100 / duration × (1 + speed_level × bonus) × level × elapsed

Every command returns a result object; preconditions that do not hold leave
the pipeline untouched.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from config import CookConfig, DomainConfig, GrowConfig, MethRecipeConfig, StageThreshold
from logger import log

from .commodities import RARITY_QUALITY, CommodityUnit, Drug, GeneticEntity
from .ids import next_id
from .inventory import Inventory
from .results import CommandResult, FailureReason, HarvestResult, ProcessingResult, PurchaseResult
from .rng import RNG, chance, clamp, random_between
from .snapshots import SlotSnapshot, StationSnapshot, seed_snapshot, unit_snapshot

TRAIT_SPEED_MULTIPLIERS: dict[str, float] = {"Turbo": 1.3, "SpeedBoost": 1.5}
TRAIT_SEED_DROP_BONUS: dict[str, float] = {"Lucky": 0.15, "LuckyDrop": 0.3}
BOUNTIFUL_QUALITY_BONUS = 10.0
BOUNTIFUL_YIELD_MULTIPLIER = 1.2


def stage_for_progress(stages: Sequence[StageThreshold], progress: float) -> str:
    """Name of the last stage whose threshold has been reached."""
    current = stages[0].name
    for stage in stages:
        if progress >= stage.at:
            current = stage.name
        else:
            break
    return current


@dataclass
class PipelineUpgrades:
    grow_light: int = 0
    soil: int = 0
    tap_power: int = 0
    player_level: int = 1
    processing_speed: int = 0
    processing_efficiency: int = 0
    purity_boost: int = 0


@dataclass(slots=True)
class GrowSlot:
    id: str
    unlocked: bool = False
    occupant: GeneticEntity | None = None
    progress: float = 0.0
    stage: str = "seed"
    water_level: float | None = None
    fertilizer: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.occupant is None


@dataclass(slots=True)
class ProcessingStation:
    id: str
    name: str
    input_stage: str
    output_stage: str
    duration_seconds: float
    unlocked: bool = False
    unlock_cost: float = 0.0
    retention: float = 1.0
    purity_bonus: float = 0.0
    quality_bonus: float = 0.0
    level: int = 1
    current_batch: CommodityUnit | None = None
    progress: float = 0.0
    cook: bool = False
    recipe_id: str | None = None
    batch_stages: tuple[tuple[float, str], ...] = field(default_factory=tuple)

    @property
    def is_idle(self) -> bool:
        return self.current_batch is None

    @property
    def is_ready(self) -> bool:
        return self.current_batch is not None and self.progress >= 100.0

    @property
    def batch_stage(self) -> str | None:
        if self.current_batch is None:
            return None
        if not self.batch_stages:
            return "ready" if self.is_ready else "processing"
        for ends_at, name in self.batch_stages:
            if self.progress < ends_at:
                return name
        return "ready"


class ProductionPipeline:
    """Stage machines for one commodity domain."""

    def __init__(
        self,
        drug: Drug,
        domain: DomainConfig,
        inventory: Inventory,
        rng: RNG,
        *,
        upgrades: PipelineUpgrades | None = None,
    ) -> None:
        self.drug = Drug(drug)
        self.domain = domain
        self.inventory = inventory
        self.rng = rng
        self.upgrades = upgrades or PipelineUpgrades()
        self.auto_collect_enabled = False

        grow = domain.grow
        self._slots: list[GrowSlot] = []
        if grow is not None:
            initial = grow.stages[0].name
            self._slots = [
                GrowSlot(id=f"{self.drug}-slot-{i + 1}", unlocked=i < grow.unlocked_slots, stage=initial)
                for i in range(grow.slot_count)
            ]

        self._stations: list[ProcessingStation] = [
            ProcessingStation(
                id=s.id,
                name=s.name,
                input_stage=s.input_stage,
                output_stage=s.output_stage,
                duration_seconds=s.duration_seconds,
                unlocked=s.unlocked,
                unlock_cost=s.unlock_cost,
                retention=s.retention,
                purity_bonus=s.purity_bonus,
                quality_bonus=s.quality_bonus,
            )
            for s in domain.processing.stations
        ]
        cook = domain.cook
        if cook is not None:
            self._stations.extend(
                ProcessingStation(
                    id=f"{self.drug}-lab-{i + 1}",
                    name=f"Lab {i + 1}",
                    input_stage="precursor",
                    output_stage=cook.output_stage,
                    duration_seconds=sum(cook.stage_durations.values()),
                    unlocked=i < cook.unlocked_stations,
                    cook=True,
                )
                for i in range(cook.station_count)
            )

    # --- Queries ---
    @property
    def grow_config(self) -> GrowConfig | None:
        return self.domain.grow

    @property
    def cook_config(self) -> CookConfig | None:
        return self.domain.cook

    @property
    def slots(self) -> tuple[GrowSlot, ...]:
        return tuple(self._slots)

    @property
    def stations(self) -> tuple[ProcessingStation, ...]:
        return tuple(self._stations)

    @property
    def station_ceiling(self) -> float:
        if self.auto_collect_enabled:
            return self.domain.processing.overflow_ceiling
        return 100.0

    @property
    def terminal_stage(self) -> str | None:
        grow = self.domain.grow
        return grow.stages[-1].name if grow is not None else None

    def get_slot(self, slot_id: str) -> GrowSlot | None:
        return next((s for s in self._slots if s.id == slot_id), None)

    def get_station(self, station_id: str) -> ProcessingStation | None:
        return next((s for s in self._stations if s.id == station_id), None)

    def empty_slots(self) -> list[GrowSlot]:
        return [s for s in self._slots if s.unlocked and s.is_empty]

    def ready_slots(self) -> list[GrowSlot]:
        return [s for s in self._slots if s.unlocked and self._is_terminal(s)]

    def growing_slots(self) -> list[GrowSlot]:
        return [
            s for s in self._slots if s.unlocked and not s.is_empty and not self._is_terminal(s)
        ]

    def idle_stations(self) -> list[ProcessingStation]:
        return [s for s in self._stations if s.unlocked and s.is_idle]

    def find_recipe(self, recipe_id: str) -> MethRecipeConfig | None:
        cook = self.domain.cook
        if cook is None:
            return None
        return next((r for r in cook.recipes if r.id == recipe_id), None)

    def slot_snapshots(self) -> list[SlotSnapshot]:
        return [
            SlotSnapshot(
                id=s.id,
                unlocked=s.unlocked,
                stage=s.stage,
                progress=round(s.progress, 3),
                occupant=seed_snapshot(s.occupant) if s.occupant else None,
            )
            for s in self._slots
        ]

    def station_snapshots(self) -> list[StationSnapshot]:
        return [
            StationSnapshot(
                id=s.id,
                name=s.name,
                input_stage=s.input_stage,
                output_stage=s.output_stage,
                unlocked=s.unlocked,
                progress=round(s.progress, 3),
                level=s.level,
                batch=unit_snapshot(s.current_batch) if s.current_batch else None,
                batch_stage=s.batch_stage,
            )
            for s in self._stations
        ]

    # --- Growth formulas ---
    def _is_terminal(self, slot: GrowSlot) -> bool:
        return not slot.is_empty and slot.stage == self.terminal_stage

    def speed_multiplier(self, seed: GeneticEntity) -> float:
        grow = self._require_grow()
        multiplier = (1 + self.upgrades.grow_light * grow.light_bonus_per_level) * seed.growth_speed
        for trait, bonus in TRAIT_SPEED_MULTIPLIERS.items():
            if seed.has_trait(trait):
                multiplier *= bonus
        return multiplier

    def tap_strength(self) -> float:
        grow = self._require_grow()
        return (
            grow.tap_base
            * (1 + self.upgrades.tap_power * grow.tap_power_bonus)
            * (1 + (self.upgrades.player_level // 10) * grow.level_tap_bonus)
        )

    def _require_grow(self) -> GrowConfig:
        if self.domain.grow is None:
            msg = f"{self.drug} pipeline has no grow slots"
            raise ValueError(msg)
        return self.domain.grow

    def _apply_progress(self, slot: GrowSlot, delta: float) -> None:
        grow = self._require_grow()
        slot.progress = clamp(slot.progress + max(0.0, delta))
        slot.stage = stage_for_progress(grow.stages, slot.progress)

    # --- Commands: grow slots ---
    def plant(self, slot_id: str, seed_id: str) -> CommandResult:
        slot = self.get_slot(slot_id)
        if slot is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        if not slot.unlocked:
            return CommandResult.failed(FailureReason.INVALID_STATE, "Slot is locked")
        if not slot.is_empty:
            return CommandResult.failed(FailureReason.INVALID_STATE, "Slot is occupied")
        seed = self.inventory.find_seed(seed_id)
        if seed is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown seed {seed_id}")
        if seed.drug != self.drug:
            return CommandResult.failed(
                FailureReason.INELIGIBLE, f"{seed.name} cannot grow in a {self.drug} slot"
            )

        self.inventory.take_seed(seed_id)
        slot.occupant = seed
        slot.progress = 0.0
        slot.stage = self._require_grow().stages[0].name
        log(f"Pipeline {self.drug}: planted {seed.name} in {slot.id}", level="DEBUG")
        return CommandResult.ok(f"Planted {seed.name}")

    def advance(self, elapsed_seconds: float) -> None:
        """Passive progress for every occupied slot and busy station."""
        if elapsed_seconds < 0:
            raise ValueError("elapsed_seconds must be >= 0")
        for slot in self._slots:
            self.advance_slot(slot, elapsed_seconds)
        for station in self._stations:
            self.advance_station(station, elapsed_seconds)

    def advance_slot(self, slot: GrowSlot, elapsed_seconds: float) -> None:
        if not slot.unlocked or slot.occupant is None or slot.progress >= 100.0:
            return
        grow = self._require_grow()
        delta = grow.base_growth_rate * self.speed_multiplier(slot.occupant) * elapsed_seconds
        self._apply_progress(slot, delta)

    def boost(self, slot_id: str, taps: int = 1, *, strength: float | None = None) -> CommandResult:
        """Manual tap acceleration: same formula as passive growth, no elapsed time."""
        slot = self.get_slot(slot_id)
        if slot is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        if not slot.unlocked or slot.occupant is None:
            return CommandResult.failed(FailureReason.INVALID_STATE, "Nothing is growing here")
        if slot.progress >= 100.0:
            return CommandResult.failed(FailureReason.INVALID_STATE, "Plant is already ready")
        if taps <= 0:
            return CommandResult.failed(FailureReason.INVALID_STATE, "taps must be positive")

        per_tap = self.tap_strength() if strength is None else float(strength)
        self._apply_progress(slot, per_tap * self.speed_multiplier(slot.occupant) * taps)
        return CommandResult.ok(f"{slot.id} at {slot.progress:.1f}%")

    def harvest(self, slot_id: str) -> HarvestResult:
        slot = self.get_slot(slot_id)
        if slot is None:
            return HarvestResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        seed = slot.occupant
        if seed is None or not self._is_terminal(slot):
            return HarvestResult.failed(FailureReason.INVALID_STATE, "Plant is not ready yet")

        grow = self._require_grow()
        unit = self._harvest_unit(seed, grow)
        seed_drop: GeneticEntity | None = None
        drop_chance = grow.seed_drop_chance + sum(
            bonus for trait, bonus in TRAIT_SEED_DROP_BONUS.items() if seed.has_trait(trait)
        )
        if chance(min(grow.seed_drop_cap, drop_chance), self.rng):
            seed_drop = seed.clone()
            self.inventory.add_seed(seed_drop)

        slot.occupant = None
        slot.progress = 0.0
        slot.stage = grow.stages[0].name
        self.inventory.add_unit(unit)
        log(
            f"Pipeline {self.drug}: harvested {unit.grams}g {seed.name} (q={unit.quality:.0f})",
            level="DEBUG",
        )
        return HarvestResult.ok(
            f"Harvested {unit.grams}g {seed.name}", unit=unit, seed_drop=seed_drop
        )

    def _harvest_unit(self, seed: GeneticEntity, grow: GrowConfig) -> CommodityUnit:
        bountiful = seed.has_trait("Bountiful")
        nominal = seed.base_yield * (1 + self.upgrades.soil * grow.soil_yield_bonus)
        if bountiful:
            nominal *= BOUNTIFUL_YIELD_MULTIPLIER
        low, high = nominal * (1 - grow.yield_jitter), nominal * (1 + grow.yield_jitter)
        grams = min(high, max(low, round(random_between(low, high, self.rng), 1)))

        quality = RARITY_QUALITY[seed.rarity] + math.floor(self.rng.random() * grow.quality_jitter)
        if chance(grow.crit_chance, self.rng):
            quality += grow.crit_quality_bonus
        if bountiful:
            quality += BOUNTIFUL_QUALITY_BONUS

        purity: float | None = None
        if grow.tracks_purity:
            purity = clamp(quality + seed.purity_bonus)
        else:
            quality += seed.purity_bonus

        return CommodityUnit(
            id=next_id("unit"),
            drug=self.drug,
            strain_name=seed.name,
            stage=grow.harvest_product_stage,
            grams=grams,
            quality=clamp(quality),
            rarity=seed.rarity,
            purity=purity,
            source_seed_id=seed.id,
        )

    def unlock_slot(self, slot_id: str) -> PurchaseResult:
        slot = self.get_slot(slot_id)
        if slot is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        if slot.unlocked:
            return PurchaseResult.failed(FailureReason.INVALID_STATE, "Slot is already unlocked")
        grow = self._require_grow()
        unlocked = sum(1 for s in self._slots if s.unlocked)
        cost = math.floor(
            grow.slot_unlock_base_cost * grow.slot_unlock_cost_scaling ** max(0, unlocked - 1)
        )
        if not self.inventory.debit(cost):
            return PurchaseResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"Need {cost}")
        slot.unlocked = True
        return PurchaseResult.ok(f"Unlocked {slot.id}", cost=cost)

    # --- Commands: stations ---
    def start_processing(self, station_id: str, unit_id: str) -> ProcessingResult:
        station = self.get_station(station_id)
        if station is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        if not station.unlocked:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Station is locked")
        if station.cook:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Cook stations take recipes")
        if not station.is_idle:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Station is busy")
        source = self.inventory.find_unit(unit_id)
        if source is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown unit {unit_id}")
        if source.drug != self.drug or source.stage != station.input_stage:
            return ProcessingResult.failed(
                FailureReason.INELIGIBLE, f"{station.name} needs {station.input_stage}"
            )

        processing = self.domain.processing
        retention = min(
            1.0, station.retention + self.upgrades.processing_efficiency * processing.efficiency_per_level
        )
        boost = self.upgrades.purity_boost * processing.purity_boost_per_level
        quality = source.quality
        purity: float | None = None
        if self.domain.grow is not None and not self.domain.grow.tracks_purity:
            quality = clamp(quality + station.quality_bonus + boost)
        else:
            base = source.purity if source.purity is not None else source.quality
            purity = min(100.0, base + station.purity_bonus + boost)
            quality = clamp(quality + station.quality_bonus)

        self.inventory.take_unit(unit_id)
        station.current_batch = CommodityUnit(
            id=next_id("unit"),
            drug=self.drug,
            strain_name=source.strain_name,
            stage=station.output_stage,
            grams=round(source.grams * retention, 2),
            quality=quality,
            rarity=source.rarity,
            purity=purity,
            source_seed_id=source.source_seed_id,
        )
        station.progress = 0.0
        return ProcessingResult.ok(
            f"{station.name} started on {source.strain_name}", unit=station.current_batch
        )

    def start_cook(self, station_id: str, recipe_id: str) -> ProcessingResult:
        station = self.get_station(station_id)
        cook = self.domain.cook
        if station is None or cook is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        if not station.cook:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Not a cook station")
        if not station.unlocked:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Station is locked")
        if not station.is_idle:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Station is busy")
        recipe = self.find_recipe(recipe_id)
        if recipe is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown recipe {recipe_id}")
        if not self.inventory.use_precursors(recipe.precursor_cost):
            return ProcessingResult.failed(
                FailureReason.INSUFFICIENT_RESOURCE, f"{recipe.name} needs {recipe.precursor_cost} precursors"
            )

        purity = math.floor(random_between(recipe.purity_range.low, recipe.purity_range.high, self.rng))
        quality = math.floor(
            random_between(recipe.quality_range.low, recipe.quality_range.high, self.rng)
        )
        grams = math.floor(
            recipe.base_grams
            * random_between(cook.grams_jitter.low, cook.grams_jitter.high, self.rng)
        )

        total = 0.0
        stages: list[tuple[float, str]] = []
        durations = {name: d / recipe.speed_multiplier for name, d in cook.stage_durations.items()}
        whole = sum(durations.values())
        for name, duration in durations.items():
            total += duration
            stages.append((total / whole * 100.0, name))

        station.duration_seconds = whole
        station.batch_stages = tuple(stages)
        station.recipe_id = recipe.id
        station.current_batch = CommodityUnit(
            id=next_id("unit"),
            drug=self.drug,
            strain_name=recipe.name,
            stage=station.output_stage,
            grams=float(max(1, grams)),
            quality=clamp(quality, 1, 100),
            purity=clamp(purity, 1, 100),
        )
        station.progress = 0.0
        return ProcessingResult.ok(f"Cooking {recipe.name}", unit=station.current_batch)

    def set_auto_collect(self, enabled: bool) -> None:
        self.auto_collect_enabled = bool(enabled)

    def advance_station(self, station: ProcessingStation, elapsed_seconds: float) -> None:
        if station.current_batch is None:
            return
        ceiling = self.station_ceiling
        if station.progress >= ceiling:
            return
        speed = 1 + self.upgrades.processing_speed * self.domain.processing.speed_bonus_per_level
        rate = 100.0 / station.duration_seconds * speed * station.level
        station.progress = min(ceiling, station.progress + rate * elapsed_seconds)

    def collect(self, station_id: str) -> ProcessingResult:
        station = self.get_station(station_id)
        if station is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        batch = station.current_batch
        if batch is None:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Station is empty")
        if station.progress < 100.0:
            return ProcessingResult.failed(FailureReason.INVALID_STATE, "Batch is not finished")

        station.current_batch = None
        station.progress = 0.0
        station.recipe_id = None
        station.batch_stages = ()
        self.inventory.add_unit(batch)
        return ProcessingResult.ok(f"Collected {batch.grams}g {batch.stage}", unit=batch)

    def unlock_station(self, station_id: str) -> PurchaseResult:
        station = self.get_station(station_id)
        if station is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        if station.unlocked:
            return PurchaseResult.failed(FailureReason.INVALID_STATE, "Station is already unlocked")
        cost = station.unlock_cost
        cook = self.domain.cook
        if station.cook and cook is not None:
            unlocked = sum(1 for s in self._stations if s.cook and s.unlocked)
            cost = math.floor(
                cook.station_unlock_base_cost * cook.station_unlock_cost_scaling ** max(0, unlocked - 1)
            )
        if not self.inventory.debit(cost):
            return PurchaseResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"Need {cost}")
        station.unlocked = True
        return PurchaseResult.ok(f"Unlocked {station.name}", cost=cost)

    def upgrade_station(self, station_id: str) -> PurchaseResult:
        station = self.get_station(station_id)
        if station is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        if not station.unlocked:
            return PurchaseResult.failed(FailureReason.INVALID_STATE, f"{station.name} is locked")
        processing = self.domain.processing
        cost = math.floor(
            processing.station_upgrade_base_cost
            * processing.station_upgrade_cost_scaling ** (station.level - 1)
        )
        if not self.inventory.debit(cost):
            return PurchaseResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"Need {cost}")
        station.level += 1
        return PurchaseResult.ok(f"{station.name} is now level {station.level}", cost=cost)

    def buy_precursors(self, count: int) -> PurchaseResult:
        cook = self.domain.cook
        if cook is None:
            return PurchaseResult.failed(FailureReason.INELIGIBLE, f"{self.drug} needs no precursors")
        if count <= 0:
            return PurchaseResult.failed(FailureReason.INVALID_STATE, "count must be positive")
        cost = cook.precursor_price * count
        if not self.inventory.debit(cost):
            return PurchaseResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"Need {cost}")
        self.inventory.add_precursors(count)
        return PurchaseResult.ok(f"Bought {count} precursors", cost=cost)
