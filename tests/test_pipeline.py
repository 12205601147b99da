import random

import pytest

from config import SimulationConfig
from economy.commodities import Drug
from economy.inventory import Inventory
from economy.pipeline import ProductionPipeline, stage_for_progress
from economy.results import FailureReason


@pytest.fixture
def cfg() -> SimulationConfig:
    return SimulationConfig()


def _weed(cfg: SimulationConfig, inventory: Inventory, seed: int = 1) -> ProductionPipeline:
    return ProductionPipeline(Drug.WEED, cfg.weed, inventory, random.Random(seed))


def test_stage_for_progress_uses_thresholds(cfg: SimulationConfig) -> None:
    stages = cfg.weed.grow.stages
    assert stage_for_progress(stages, 0) == "seed"
    assert stage_for_progress(stages, 49.9) == "sprout"
    assert stage_for_progress(stages, 75) == "flower"
    assert stage_for_progress(stages, 100) == "harvest"


def test_plant_requires_unlocked_empty_slot(cfg, inventory, make_seed) -> None:
    pipeline = _weed(cfg, inventory)
    first, second = make_seed(), make_seed()
    inventory.add_seed(first)
    inventory.add_seed(second)

    assert pipeline.plant("weed-slot-8", first.id).reason is FailureReason.INVALID_STATE
    assert pipeline.plant("weed-slot-1", first.id).success
    assert inventory.find_seed(first.id) is None
    assert pipeline.plant("weed-slot-1", second.id).reason is FailureReason.INVALID_STATE
    assert pipeline.plant("nowhere", second.id).reason is FailureReason.NOT_FOUND


def test_plant_rejects_seed_of_other_domain(cfg, inventory, make_seed) -> None:
    pipeline = _weed(cfg, inventory)
    coca = make_seed(Drug.KOKS, name="Andean Leaf")
    inventory.add_seed(coca)

    result = pipeline.plant("weed-slot-1", coca.id)

    assert result.reason is FailureReason.INELIGIBLE
    assert inventory.find_seed(coca.id) is coca


def test_passive_growth_follows_rate(cfg, inventory, make_seed) -> None:
    pipeline = _weed(cfg, inventory)
    seed = make_seed()
    inventory.add_seed(seed)
    pipeline.plant("weed-slot-1", seed.id)

    pipeline.advance(10.0)

    slot = pipeline.get_slot("weed-slot-1")
    assert slot.progress == pytest.approx(0.8 * 10.0)
    assert slot.stage == "seed"
    with pytest.raises(ValueError):
        pipeline.advance(-1.0)


def test_harvest_before_terminal_stage_changes_nothing(cfg, inventory, make_seed) -> None:
    pipeline = _weed(cfg, inventory)
    seed = make_seed()
    inventory.add_seed(seed)
    pipeline.plant("weed-slot-1", seed.id)
    pipeline.boost("weed-slot-1", taps=5)
    before = pipeline.get_slot("weed-slot-1").progress

    result = pipeline.harvest("weed-slot-1")

    assert result.reason is FailureReason.INVALID_STATE
    assert pipeline.get_slot("weed-slot-1").progress == before
    assert inventory.units() == ()


@pytest.mark.parametrize("seed_value", range(25))
def test_harvest_yield_stays_within_jitter_band(cfg, inventory, make_seed, seed_value) -> None:
    pipeline = _weed(cfg, inventory, seed=seed_value)
    seed = make_seed(base_yield=10.0)
    inventory.add_seed(seed)
    pipeline.plant("weed-slot-1", seed.id)
    pipeline.boost("weed-slot-1", taps=200)

    result = pipeline.harvest("weed-slot-1")

    assert result.success
    assert 8.0 <= result.unit.grams <= 12.0
    assert result.unit.stage == "wet"
    assert 0.0 <= result.unit.quality <= 100.0
    slot = pipeline.get_slot("weed-slot-1")
    assert slot.occupant is None
    assert slot.progress == 0.0
    assert slot.stage == "seed"


def test_unlock_slot_charges_scaling_cost(cfg, make_seed) -> None:
    inventory = Inventory(cash=5_000)
    pipeline = _weed(cfg, inventory)

    result = pipeline.unlock_slot("weed-slot-3")

    assert result.success
    assert result.cost == 1_800
    assert inventory.cash == pytest.approx(3_200.0)
    assert pipeline.unlock_slot("weed-slot-3").reason is FailureReason.INVALID_STATE
    poor = _weed(cfg, Inventory(cash=10))
    assert poor.unlock_slot("weed-slot-3").reason is FailureReason.INSUFFICIENT_RESOURCE


def test_upgrade_station_raises_level_and_cost(cfg) -> None:
    inventory = Inventory(cash=10_000)
    pipeline = _weed(cfg, inventory)

    assert pipeline.upgrade_station("rack-1").cost == 2_500
    assert pipeline.upgrade_station("rack-1").cost == 4_000
    assert pipeline.get_station("rack-1").level == 3
    assert inventory.cash == pytest.approx(3_500.0)
    assert pipeline.upgrade_station("rack-1").reason is FailureReason.INSUFFICIENT_RESOURCE
    assert pipeline.upgrade_station("rack-5").reason is FailureReason.INVALID_STATE
    assert pipeline.upgrade_station("rack-99").reason is FailureReason.NOT_FOUND


def test_station_runs_one_batch_at_a_time(cfg, inventory, make_unit) -> None:
    pipeline = _weed(cfg, inventory)
    first = make_unit(stage="wet", grams=10.0)
    second = make_unit(stage="wet", grams=8.0)
    inventory.add_unit(first)
    inventory.add_unit(second)

    assert pipeline.start_processing("rack-1", first.id).success
    busy = pipeline.start_processing("rack-1", second.id)

    assert busy.reason is FailureReason.INVALID_STATE
    assert inventory.find_unit(second.id) is second
    assert inventory.find_unit(first.id) is None


def test_station_rejects_wrong_stage_without_consuming(cfg, inventory, make_unit) -> None:
    pipeline = _weed(cfg, inventory)
    dried = make_unit(stage="dried")
    inventory.add_unit(dried)

    assert pipeline.start_processing("rack-1", dried.id).reason is FailureReason.INELIGIBLE
    assert pipeline.start_processing("rack-5", dried.id).reason is FailureReason.INVALID_STATE
    assert inventory.find_unit(dried.id) is dried


def test_collect_requires_finished_batch(cfg, inventory, make_unit) -> None:
    pipeline = _weed(cfg, inventory)
    wet = make_unit(stage="wet", grams=10.0, quality=70.0)
    inventory.add_unit(wet)
    pipeline.start_processing("rack-1", wet.id)

    pipeline.advance(100.0)
    assert pipeline.collect("rack-1").reason is FailureReason.INVALID_STATE

    pipeline.advance(100.0)
    result = pipeline.collect("rack-1")

    assert result.success
    assert result.unit.stage == "dried"
    assert result.unit.grams == pytest.approx(10.0)
    assert inventory.find_unit(result.unit.id) is result.unit
    assert pipeline.get_station("rack-1").is_idle


def test_progress_stops_at_hundred_unless_auto_collect(cfg, inventory, make_unit) -> None:
    pipeline = _weed(cfg, inventory)
    wet = make_unit(stage="wet")
    inventory.add_unit(wet)
    pipeline.start_processing("rack-1", wet.id)

    pipeline.advance(1_000.0)
    assert pipeline.get_station("rack-1").progress == pytest.approx(100.0)

    pipeline.set_auto_collect(True)
    pipeline.advance(1_000.0)
    assert pipeline.get_station("rack-1").progress == pytest.approx(105.0)


def test_koks_chain_adds_purity(cfg, inventory, make_unit) -> None:
    pipeline = ProductionPipeline(Drug.KOKS, cfg.koks, inventory, random.Random(3))
    leaves = make_unit(Drug.KOKS, stage="leaves", grams=20.0, quality=60.0, purity=60.0)
    inventory.add_unit(leaves)

    result = pipeline.start_processing("maceration", leaves.id)

    assert result.success
    assert result.unit.stage == "paste"
    assert result.unit.grams == pytest.approx(14.0)
    assert result.unit.purity == pytest.approx(65.0)


def test_cook_consumes_precursors(cfg, inventory) -> None:
    pipeline = ProductionPipeline(Drug.METH, cfg.meth, inventory, random.Random(9))

    result = pipeline.start_cook("meth-lab-1", "red-phosphorus")

    assert result.success
    assert inventory.precursors == 7
    assert 72 <= result.unit.purity <= 90
    assert pipeline.get_station("meth-lab-1").batch_stage == "maceration"
    assert pipeline.start_cook("meth-lab-1", "one-pot").reason is FailureReason.INVALID_STATE
    assert pipeline.start_cook("meth-lab-2", "one-pot").reason is FailureReason.INVALID_STATE
    assert pipeline.start_cook("meth-lab-1", "nope").reason is FailureReason.INVALID_STATE

    pipeline.advance(1_000.0)
    collected = pipeline.collect("meth-lab-1")
    assert collected.success
    assert collected.unit.stage == "crystal"


def test_cook_without_precursors_fails(cfg) -> None:
    inventory = Inventory(cash=0, precursors=1)
    pipeline = ProductionPipeline(Drug.METH, cfg.meth, inventory, random.Random(9))

    result = pipeline.start_cook("meth-lab-1", "red-phosphorus")

    assert result.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert inventory.precursors == 1
    assert pipeline.get_station("meth-lab-1").is_idle


def test_buy_precursors(cfg) -> None:
    inventory = Inventory(cash=2_000)
    pipeline = ProductionPipeline(Drug.METH, cfg.meth, inventory, random.Random(0))

    assert pipeline.buy_precursors(2).cost == pytest.approx(1_500.0)
    assert inventory.precursors == 2
    assert pipeline.buy_precursors(1).reason is FailureReason.INSUFFICIENT_RESOURCE
    assert _weed(cfg, inventory).buy_precursors(1).reason is FailureReason.INELIGIBLE
