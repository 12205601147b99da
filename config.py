from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Literal, cast

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)

output_dir = "output/"

DrugName = Literal["weed", "koks", "meth"]
RarityName = Literal["common", "uncommon", "rare", "epic", "legendary"]


ConfigScalar = bool | int | float | str | None
ConfigValue = ConfigScalar | list["ConfigValue"] | dict[str, "ConfigValue"]


def _coerce_value(value: object) -> ConfigValue:
    if isinstance(value, (bool, int, float, str)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_coerce_value(item) for item in value]
    if isinstance(value, Mapping):
        coerced: dict[str, ConfigValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                msg = "CONFIG keys must be strings"
                raise TypeError(msg)
            coerced[key] = _coerce_value(item)
        return coerced
    msg = f"Unsupported CONFIG value type: {type(value)!r}"
    raise TypeError(msg)


def _coerce_config_dict(data: Mapping[str, object]) -> dict[str, ConfigValue]:
    return {key: _coerce_value(value) for key, value in data.items()}


class BaseConfigModel(BaseModel):
    model_config = ConfigDict(validate_default=True, frozen=False)


class NumberRange(BaseConfigModel):
    low: float
    high: float

    @model_validator(mode="after")
    def _check_order(self) -> NumberRange:
        if self.low > self.high:
            msg = f"Range low ({self.low}) must not exceed high ({self.high})"
            raise ValueError(msg)
        return self


def _range(low: float, high: float) -> NumberRange:
    return NumberRange(low=low, high=high)


class StageThreshold(BaseModel):
    at: float = Field(ge=0, le=100)
    name: str


def _stage_table(*pairs: tuple[float, str]) -> list[StageThreshold]:
    return [StageThreshold(at=at, name=name) for at, name in pairs]


class ClockConfig(BaseConfigModel):
    # 1 real second == 5 game minutes, game starts at 06:00 of day 0
    minutes_per_real_second: float = Field(5.0, gt=0)
    start_minute: float = Field(360.0, ge=0)
    tick_seconds: float = Field(1.0, gt=0)


class GrowConfig(BaseConfigModel):
    slot_count: PositiveInt = 8
    unlocked_slots: int = Field(2, ge=0)
    slot_unlock_base_cost: float = Field(1000.0, ge=0)
    slot_unlock_cost_scaling: float = Field(1.8, ge=1)
    stages: list[StageThreshold] = Field(
        default_factory=lambda: _stage_table(
            (0, "seed"), (25, "sprout"), (50, "veg"), (75, "flower"), (100, "harvest")
        )
    )
    harvest_product_stage: str = "wet"
    base_growth_rate: float = Field(0.8, gt=0)
    light_bonus_per_level: float = Field(0.1, ge=0)
    tap_base: float = Field(2.0, ge=0)
    tap_power_bonus: float = Field(0.2, ge=0)
    level_tap_bonus: float = Field(0.1, ge=0)
    soil_yield_bonus: float = Field(0.1, ge=0)
    yield_jitter: float = Field(0.2, ge=0, lt=1)
    quality_jitter: float = Field(30.0, ge=0, le=100)
    crit_chance: float = Field(0.1, ge=0, le=1)
    crit_quality_bonus: float = Field(20.0, ge=0)
    seed_drop_chance: float = Field(0.3, ge=0, le=1)
    seed_drop_cap: float = Field(0.95, ge=0, le=1)
    tracks_purity: bool = False

    @field_validator("stages")
    @classmethod
    def _validate_stages(cls, value: list[StageThreshold]) -> list[StageThreshold]:
        if len(value) < 2:
            msg = "A stage table needs at least two stages"
            raise ValueError(msg)
        if value[0].at != 0 or value[-1].at != 100:
            msg = "Stage tables must start at 0 and end at 100"
            raise ValueError(msg)
        thresholds = [stage.at for stage in value]
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            msg = "Stage thresholds must be strictly increasing"
            raise ValueError(msg)
        return value


class StationConfig(BaseConfigModel):
    id: str
    name: str
    input_stage: str
    output_stage: str
    duration_seconds: float = Field(gt=0)
    unlocked: bool = False
    unlock_cost: float = Field(0.0, ge=0)
    retention: float = Field(0.7, gt=0, le=1)
    purity_bonus: float = Field(5.0, ge=0)
    quality_bonus: float = Field(0.0, ge=0)


class ProcessingConfig(BaseConfigModel):
    stations: list[StationConfig] = Field(default_factory=list)
    speed_bonus_per_level: float = Field(0.2, ge=0)
    efficiency_per_level: float = Field(0.03, ge=0)
    purity_boost_per_level: float = Field(5.0, ge=0)
    overflow_ceiling: float = Field(105.0, ge=100, le=150)
    station_upgrade_base_cost: float = Field(2500.0, ge=0)
    station_upgrade_cost_scaling: float = Field(1.6, ge=1)


class MethRecipeConfig(BaseConfigModel):
    id: str
    name: str
    precursor_cost: PositiveInt
    base_grams: float = Field(gt=0)
    purity_range: NumberRange
    quality_range: NumberRange
    speed_multiplier: float = Field(1.0, gt=0)


def _default_meth_recipes() -> list[MethRecipeConfig]:
    return [
        MethRecipeConfig(
            id="red-phosphorus",
            name="Red P",
            precursor_cost=3,
            base_grams=40,
            purity_range=_range(72, 90),
            quality_range=_range(65, 88),
            speed_multiplier=0.95,
        ),
        MethRecipeConfig(
            id="one-pot",
            name="One Pot",
            precursor_cost=2,
            base_grams=28,
            purity_range=_range(55, 78),
            quality_range=_range(50, 70),
            speed_multiplier=1.2,
        ),
        MethRecipeConfig(
            id="cold-cook",
            name="Cold Cook",
            precursor_cost=4,
            base_grams=32,
            purity_range=_range(80, 96),
            quality_range=_range(72, 95),
            speed_multiplier=0.85,
        ),
    ]


class CookConfig(BaseConfigModel):
    station_count: PositiveInt = 3
    unlocked_stations: int = Field(1, ge=0)
    station_unlock_base_cost: float = Field(20_000.0, ge=0)
    station_unlock_cost_scaling: float = Field(1.8, ge=1)
    stage_durations: dict[str, float] = Field(
        default_factory=lambda: {"maceration": 12.0, "oxidation": 18.0, "crystallization": 16.0}
    )
    output_stage: str = "crystal"
    precursor_price: float = Field(750.0, ge=0)
    grams_jitter: NumberRange = Field(default_factory=lambda: _range(0.85, 1.2))
    recipes: list[MethRecipeConfig] = Field(default_factory=_default_meth_recipes)

    @field_validator("stage_durations")
    @classmethod
    def _validate_durations(cls, value: dict[str, float]) -> dict[str, float]:
        if not value or any(duration <= 0 for duration in value.values()):
            msg = "Cook stage durations must be positive"
            raise ValueError(msg)
        return value


class DomainConfig(BaseConfigModel):
    grow: GrowConfig | None = None
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    cook: CookConfig | None = None


def _default_weed_domain() -> DomainConfig:
    racks = [
        StationConfig(
            id=f"rack-{i + 1}",
            name=f"Drying Rack {i + 1}",
            input_stage="wet",
            output_stage="dried",
            duration_seconds=200.0,
            unlocked=i < 2,
            unlock_cost=2500.0 * (i + 1),
            retention=1.0,
            purity_bonus=0.0,
        )
        for i in range(8)
    ]
    return DomainConfig(grow=GrowConfig(), processing=ProcessingConfig(stations=racks))


def _default_koks_domain() -> DomainConfig:
    grow = GrowConfig(
        stages=_stage_table(
            (0, "seed"), (20, "sprout"), (45, "bush"), (70, "flowering"), (100, "harvest")
        ),
        harvest_product_stage="leaves",
        base_growth_rate=0.5,
        light_bonus_per_level=0.15,
        tap_power_bonus=0.0,
        level_tap_bonus=0.0,
        quality_jitter=10.0,
        crit_chance=0.0,
        seed_drop_chance=0.4,
        tracks_purity=True,
    )
    stations = [
        StationConfig(
            id="maceration",
            name="Maceration",
            input_stage="leaves",
            output_stage="paste",
            duration_seconds=60,
            unlocked=True,
        ),
        StationConfig(
            id="oxidation",
            name="Oxidation",
            input_stage="paste",
            output_stage="base",
            duration_seconds=120,
            unlock_cost=10_000,
        ),
        StationConfig(
            id="crystallization",
            name="Crystallization",
            input_stage="base",
            output_stage="powder",
            duration_seconds=180,
            unlock_cost=50_000,
        ),
    ]
    return DomainConfig(grow=grow, processing=ProcessingConfig(stations=stations))


def _default_meth_domain() -> DomainConfig:
    return DomainConfig(cook=CookConfig())


class DrugPricingConfig(BaseConfigModel):
    base_price: float = Field(gt=0)
    quality_floor: float = Field(0.5, ge=0)
    quality_span: float = Field(1.5, ge=0)
    loyalty_floor: float = Field(1.0, ge=0)
    loyalty_span: float = Field(0.3, ge=0)
    spending_floor: float = Field(0.8, ge=0)
    spending_span: float = Field(0.5, ge=0)
    price_ceiling: float | None = Field(None, gt=0)
    stage_factors: dict[str, float] = Field(default_factory=dict)


def _default_drug_pricing() -> dict[str, DrugPricingConfig]:
    return {
        "weed": DrugPricingConfig(
            base_price=15, stage_factors={"wet": 0.5, "dried": 1.0}
        ),
        "koks": DrugPricingConfig(
            base_price=150,
            quality_floor=0.6,
            quality_span=1.2,
            stage_factors={"leaves": 2 / 150, "paste": 15 / 150, "base": 50 / 150, "powder": 1.0},
        ),
        "meth": DrugPricingConfig(
            base_price=80, quality_floor=0.6, quality_span=1.2, price_ceiling=100
        ),
    }


def _default_urgency_multipliers() -> dict[str, float]:
    return {"low": 1.0, "medium": 1.15, "high": 1.35, "desperate": 1.6}


class PricingConfig(BaseConfigModel):
    drugs: dict[str, DrugPricingConfig] = Field(default_factory=_default_drug_pricing)
    urgency_multipliers: dict[str, float] = Field(default_factory=_default_urgency_multipliers)
    request_loyalty_floor: float = Field(0.9, ge=0)
    request_loyalty_span: float = Field(0.4, ge=0)

    @field_validator("drugs")
    @classmethod
    def _validate_drugs(cls, value: dict[str, DrugPricingConfig]) -> dict[str, DrugPricingConfig]:
        missing = {"weed", "koks", "meth"} - set(value)
        if missing:
            msg = f"Pricing is missing drugs: {sorted(missing)}"
            raise ValueError(msg)
        return value


class CustomerConfig(BaseConfigModel):
    initial_prospects: int = Field(3, ge=0)
    max_customers: PositiveInt = 100
    prospect_limit: PositiveInt = 50
    prospect_interval_minutes: NumberRange = Field(default_factory=lambda: _range(30, 60))
    spending_power_range: NumberRange = Field(default_factory=lambda: _range(35, 85))
    satisfaction_range: NumberRange = Field(default_factory=lambda: _range(35, 70))
    personality_weights: dict[str, float] = Field(
        default_factory=lambda: {"casual": 40, "adventurous": 30, "paranoid": 20, "hardcore": 10}
    )
    max_messages: PositiveInt = 50
    sample_grams: float = Field(0.5, gt=0)
    sample_conversion_base: float = Field(0.3, ge=0, le=1)
    sample_conversion_span: float = Field(0.5, ge=0, le=1)
    sample_preference_quality: float = Field(75.0, ge=0, le=100)
    request_cooldown_minutes: float = Field(30.0, ge=0)
    churn_satisfaction: float = Field(30.0, ge=0, le=100)
    sale_loyalty_gain: float = Field(2.0, ge=0)
    sale_satisfaction_gain: float = Field(5.0, ge=0)
    sale_satisfaction_loss: float = Field(3.0, ge=0)
    sale_good_quality: float = Field(80.0, ge=0, le=100)
    sale_poor_quality: float = Field(60.0, ge=0, le=100)
    addiction_factors: dict[str, float] = Field(
        default_factory=lambda: {"weed": 0.25, "koks": 1.0, "meth": 1.0}
    )
    expiry_loyalty_penalty: dict[str, float] = Field(
        default_factory=lambda: {"low": 3.0, "medium": 3.0, "high": 8.0, "desperate": 15.0}
    )
    expiry_satisfaction_penalty: dict[str, float] = Field(
        default_factory=lambda: {"low": 0.0, "medium": 0.0, "high": 0.0, "desperate": 20.0}
    )
    expiry_reschedule_minutes: NumberRange = Field(default_factory=lambda: _range(120, 360))
    spontaneous_tick_divisor: float = Field(12.0, gt=0)
    offer_min_addiction: dict[str, float] = Field(
        default_factory=lambda: {"hardcore": 15.0, "adventurous": 10.0}
    )
    adventurous_accept_chance: float = Field(0.3, ge=0, le=1)
    soft_rejection_loyalty_penalty: float = Field(5.0, ge=0)
    rejection_loyalty_penalty: float = Field(10.0, ge=0)
    inactivity_minutes: float = Field(7 * 24 * 60, gt=0)
    inactivity_loyalty_penalty: float = Field(10.0, ge=0)

    @field_validator("personality_weights")
    @classmethod
    def _validate_weights(cls, value: dict[str, float]) -> dict[str, float]:
        if not value or any(weight < 0 for weight in value.values()) or sum(value.values()) <= 0:
            msg = "Personality weights must be non-negative with a positive total"
            raise ValueError(msg)
        return value


class WorkerTemplate(BaseConfigModel):
    id: str
    name: str
    domain: Literal["weed", "coca"]
    role: Literal["grower", "processor", "dealer"]
    abilities: list[Literal["plant", "tap", "harvest", "process", "sell"]]
    cost: float = Field(ge=0)
    slots_managed: int = Field(0, ge=0)
    sales_per_tick: int = Field(0, ge=0)
    drugs: list[DrugName] = Field(default_factory=list)
    deal_grams: NumberRange = Field(default_factory=lambda: _range(2, 10))


def _default_roster() -> list[WorkerTemplate]:
    return [
        WorkerTemplate(
            id="grower-apprentice",
            name="Grower Apprentice",
            domain="weed",
            role="grower",
            abilities=["plant", "tap"],
            cost=5_000,
            slots_managed=2,
        ),
        WorkerTemplate(
            id="harvest-master",
            name="Harvest Master",
            domain="weed",
            role="grower",
            abilities=["harvest", "process"],
            cost=10_000,
            slots_managed=3,
        ),
        WorkerTemplate(
            id="farm-manager",
            name="Farm Manager",
            domain="weed",
            role="grower",
            abilities=["plant", "tap", "harvest", "process"],
            cost=50_000,
            slots_managed=6,
        ),
        WorkerTemplate(
            id="sales-dealer",
            name="Sales Dealer",
            domain="weed",
            role="dealer",
            abilities=["sell"],
            cost=25_000,
            sales_per_tick=1,
            drugs=["weed"],
            deal_grams=_range(2, 10),
        ),
        WorkerTemplate(
            id="street-psycho",
            name="Street Psycho",
            domain="weed",
            role="dealer",
            abilities=["sell"],
            cost=75_000,
            sales_per_tick=2,
            drugs=["weed"],
            deal_grams=_range(5, 20),
        ),
        WorkerTemplate(
            id="coca-farmer",
            name="Coca Farmer",
            domain="coca",
            role="grower",
            abilities=["plant", "harvest"],
            cost=15_000,
            slots_managed=8,
        ),
        WorkerTemplate(
            id="coca-processor",
            name="Lab Processor",
            domain="coca",
            role="processor",
            abilities=["process"],
            cost=30_000,
        ),
        WorkerTemplate(
            id="coca-mule",
            name="Mule",
            domain="coca",
            role="dealer",
            abilities=["sell"],
            cost=20_000,
            sales_per_tick=3,
            drugs=["koks", "meth"],
            deal_grams=_range(4, 12),
        ),
        WorkerTemplate(
            id="cartel-sicario",
            name="Sicario",
            domain="coca",
            role="dealer",
            abilities=["sell"],
            cost=80_000,
            sales_per_tick=8,
            drugs=["koks", "meth"],
            deal_grams=_range(4, 12),
        ),
        WorkerTemplate(
            id="corrupt-cop",
            name="Corrupt Cop",
            domain="coca",
            role="dealer",
            abilities=["sell"],
            cost=150_000,
            sales_per_tick=12,
            drugs=["koks", "meth"],
            deal_grams=_range(4, 12),
        ),
        WorkerTemplate(
            id="chemist-zombie",
            name="Chemist Zombie",
            domain="coca",
            role="processor",
            abilities=["plant", "harvest", "process"],
            cost=200_000,
            slots_managed=8,
        ),
        WorkerTemplate(
            id="ghost-dealer",
            name="Ghost Dealer",
            domain="coca",
            role="dealer",
            abilities=["sell"],
            cost=500_000,
            sales_per_tick=20,
            drugs=["koks", "meth"],
            deal_grams=_range(4, 12),
        ),
    ]


class WorkerConfig(BaseConfigModel):
    roster: list[WorkerTemplate] = Field(default_factory=_default_roster)
    max_level: PositiveInt = 10
    upgrade_cost_factor: float = Field(0.5, ge=0)
    upgrade_cost_scaling: float = Field(1.8, ge=1)
    quota_factor: float = Field(1.6, gt=0)
    quota_level_step: float = Field(0.5, ge=0)
    revenue_level_bonus: float = Field(0.1, ge=0)
    deal_level_step: float = Field(0.6, ge=0)
    tap_boost_base: float = Field(2.0, ge=0)
    warehouse_deal_grams: NumberRange = Field(default_factory=lambda: _range(6, 18))
    warehouse_deal_level_step: NumberRange = Field(default_factory=lambda: _range(0.6, 1.4))
    addiction_weight_divisor: float = Field(40.0, gt=0)
    spending_weight_divisor: float = Field(60.0, gt=0)
    idle_log_chance: float = Field(0.15, ge=0, le=1)
    idle_log_cooldown_minutes: float = Field(75.0, ge=0)
    activity_log_limit: PositiveInt = 50

    @field_validator("roster")
    @classmethod
    def _validate_roster(cls, value: list[WorkerTemplate]) -> list[WorkerTemplate]:
        ids = [template.id for template in value]
        if len(ids) != len(set(ids)):
            msg = "Worker ids must be unique"
            raise ValueError(msg)
        return value


def _default_outcome_weights() -> dict[str, float]:
    return {"fail": 10, "poor": 15, "normal": 45, "good": 20, "excellent": 8, "godtier": 2}


def _default_outcome_shift() -> dict[str, float]:
    return {
        "fail": -0.5,
        "poor": -0.5,
        "normal": -0.5,
        "good": 1.5,
        "excellent": -0.5,
        "godtier": 0.5,
    }


class BreedingConfig(BaseConfigModel):
    outcome_weights: dict[str, float] = Field(default_factory=_default_outcome_weights)
    outcome_weight_shift: dict[str, float] = Field(default_factory=_default_outcome_shift)
    generation_variance_step: float = Field(3.0, ge=0)
    rarity_variance_step: float = Field(1.5, ge=0)
    variance_cap: float = Field(15.0, ge=0)
    max_traits: PositiveInt = 5
    novel_trait_chance: dict[str, float] = Field(
        default_factory=lambda: {"excellent": 0.2, "godtier": 0.5}
    )
    power_traits: list[str] = Field(
        default_factory=lambda: ["Bountiful", "GoldRush", "DoubleHarvest", "CritMaster", "LuckyDrop"]
    )

    @model_validator(mode="after")
    def _check_weights_stay_positive(self) -> BreedingConfig:
        for tier, weight in self.outcome_weights.items():
            shifted = weight + self.outcome_weight_shift.get(tier, 0.0) * self.variance_cap
            if weight < 0 or shifted < 0:
                msg = f"Outcome weight for {tier!r} becomes negative at the variance cap"
                raise ValueError(msg)
        return self


class TerritoryConfig(BaseConfigModel):
    sales_multiplier: float = Field(1.0, ge=0)


class SeedTemplate(BaseConfigModel):
    name: str
    drug: DrugName
    rarity: RarityName = "common"
    traits: list[str] = Field(default_factory=list)
    base_yield: float = Field(10.0, gt=0)
    growth_speed: float = Field(1.0, gt=0)
    count: PositiveInt = 1


def _default_starting_seeds() -> list[SeedTemplate]:
    return [
        SeedTemplate(name="Green Dream", drug="weed", traits=["Steady"], count=3),
        SeedTemplate(
            name="Purple Haze",
            drug="weed",
            rarity="uncommon",
            traits=["Turbo"],
            base_yield=14,
            growth_speed=1.1,
        ),
        SeedTemplate(name="Andean Leaf", drug="koks", base_yield=20, count=2),
    ]


class SimulationConfig(BaseConfigModel):
    simulation_steps: PositiveInt = 600
    seed: int | None = None
    clock: ClockConfig = Field(default_factory=ClockConfig)
    weed: DomainConfig = Field(default_factory=_default_weed_domain)
    koks: DomainConfig = Field(default_factory=_default_koks_domain)
    meth: DomainConfig = Field(default_factory=_default_meth_domain)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    customers: CustomerConfig = Field(default_factory=CustomerConfig)
    workers: WorkerConfig = Field(default_factory=WorkerConfig)
    breeding: BreedingConfig = Field(default_factory=BreedingConfig)
    territory: TerritoryConfig = Field(default_factory=TerritoryConfig)
    starting_cash: int = Field(500, ge=0)
    starting_precursors: int = Field(4, ge=0)
    starting_seeds: list[SeedTemplate] = Field(default_factory=_default_starting_seeds)
    logging_level: str = "INFO"
    log_file: str = output_dir + "simulation.log"
    log_format: str = "%(asctime)s - %(levelname)s - %(message)s"
    SUMMARY_FILE: str = output_dir + "simulation_summary.json"
    JSON_INDENT: PositiveInt = 4
    metrics_export_path: str = output_dir + "metrics"

    def domain(self, drug: str) -> DomainConfig:
        match drug:
            case "weed":
                return self.weed
            case "koks":
                return self.koks
            case "meth":
                return self.meth
        msg = f"Unknown drug domain: {drug!r}"
        raise KeyError(msg)

    @property
    def summary_file(self) -> str:
        return self.SUMMARY_FILE

    @property
    def json_indent(self) -> PositiveInt:
        return self.JSON_INDENT


def load_simulation_config(data: Mapping[str, ConfigValue] | None = None) -> SimulationConfig:
    if data is not None:
        coerced = _coerce_config_dict(cast(Mapping[str, object], data))
        return SimulationConfig(**coerced)
    return SimulationConfig()


CONFIG_MODEL: SimulationConfig = load_simulation_config()


def load_simulation_config_from_yaml(path: str | Path) -> SimulationConfig:
    """Load and validate a YAML config file. An empty file yields the defaults."""
    with Path(path).open(encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return load_simulation_config()
    if not isinstance(data, Mapping):
        msg = f"Config file {path} must contain a mapping at the top level"
        raise TypeError(msg)
    return load_simulation_config(cast(Mapping[str, ConfigValue], data))
