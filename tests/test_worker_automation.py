import random
from dataclasses import dataclass

import pytest

from agents.customer_ledger import CustomerLedger
from agents.worker_automation import WorkerAutomation, WorkerTickReport
from config import SimulationConfig, WorkerConfig
from economy.activity_log import ActivityLog
from economy.commodities import CommodityUnit, Drug
from economy.ids import next_id
from economy.inventory import Inventory
from economy.pipeline import ProductionPipeline
from economy.pricing import PricingEngine
from economy.results import FailureReason


@dataclass
class World:
    inventory: Inventory
    pipelines: dict[Drug, ProductionPipeline]
    ledger: CustomerLedger
    pricing: PricingEngine
    activity: ActivityLog
    workers: WorkerAutomation

    def tick(self, now: float = 400.0) -> WorkerTickReport:
        return self.workers.tick(
            now, "day", self.pipelines, self.inventory, self.ledger, self.pricing, self.activity
        )


def _world(worker_config: WorkerConfig | None = None, *, cash: float = 1_000_000.0, seed: int = 7) -> World:
    cfg = SimulationConfig()
    rng = random.Random(seed)
    inventory = Inventory(cash=cash, precursors=6)
    pipelines = {drug: ProductionPipeline(drug, cfg.domain(drug), inventory, rng) for drug in Drug}
    pricing = PricingEngine(cfg.pricing)
    ledger = CustomerLedger(inventory, pricing, rng, cfg.customers)
    return World(
        inventory=inventory,
        pipelines=pipelines,
        ledger=ledger,
        pricing=pricing,
        activity=ActivityLog(50, channel="workers"),
        workers=WorkerAutomation(rng, worker_config or cfg.workers),
    )


def test_roster_starts_unhired() -> None:
    world = _world()

    assert len(world.workers) == 12
    assert world.workers.owned() == []
    assert world.tick().active_workers == 0


def test_hiring_is_charged_once(make_customer) -> None:
    world = _world(cash=30_000)

    result = world.workers.assign_worker("sales-dealer", world.inventory)

    assert result.success
    assert result.cost == 25_000
    assert world.inventory.cash == pytest.approx(5_000.0)
    again = world.workers.assign_worker("sales-dealer", world.inventory)
    assert again.reason is FailureReason.INVALID_STATE
    poor = world.workers.assign_worker("street-psycho", world.inventory)
    assert poor.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert world.workers.assign_worker("nobody", world.inventory).reason is FailureReason.NOT_FOUND
    assert world.inventory.cash == pytest.approx(5_000.0)


def test_pause_and_upgrade() -> None:
    world = _world()
    assert world.workers.toggle_pause("sales-dealer").reason is FailureReason.INELIGIBLE
    world.workers.assign_worker("sales-dealer", world.inventory)

    assert world.workers.toggle_pause("sales-dealer").success
    assert world.workers.get("sales-dealer").paused
    assert world.tick().active_workers == 0
    world.workers.toggle_pause("sales-dealer")

    before = world.inventory.cash
    upgrade = world.workers.upgrade("sales-dealer", world.inventory)
    assert upgrade.success
    assert upgrade.cost == 22_500
    assert world.workers.get("sales-dealer").level == 2
    assert world.inventory.cash == pytest.approx(before - 22_500)


def test_upgrade_stops_at_max_level() -> None:
    world = _world(WorkerConfig(max_level=2))
    world.workers.assign_worker("sales-dealer", world.inventory)

    assert world.workers.upgrade("sales-dealer", world.inventory).success
    assert world.workers.upgrade("sales-dealer", world.inventory).reason is FailureReason.INVALID_STATE


def test_two_dealers_never_oversell(make_customer, make_unit) -> None:
    world = _world()
    for _ in range(3):
        world.ledger.add_customer(make_customer(addiction={Drug.WEED: 40.0}))
    unit = make_unit(grams=10.0)
    world.inventory.add_unit(unit)
    world.workers.assign_worker("sales-dealer", world.inventory)
    world.workers.assign_worker("street-psycho", world.inventory)
    cash_before = world.inventory.cash

    report = world.tick()

    assert report.deals >= 1
    assert report.grams_sold[Drug.WEED] == pytest.approx(10.0)
    assert world.inventory.find_unit(unit.id) is None
    assert world.inventory.cash == pytest.approx(cash_before + report.revenue)
    assert all(u.grams >= 0 for u in world.inventory.units())


def test_dealer_sale_updates_buyer_but_not_loyalty(make_customer, make_unit) -> None:
    world = _world()
    buyer = make_customer(loyalty=30.0)
    world.ledger.add_customer(buyer)
    world.inventory.add_unit(make_unit(grams=100.0))
    world.workers.assign_worker("sales-dealer", world.inventory)

    report = world.tick()

    assert report.deals == 1
    assert buyer.total_purchases == report.deals
    assert buyer.total_spent == report.revenue
    assert buyer.loyalty == 30.0
    assert buyer.addiction_for("weed") > 0
    assert buyer.last_purchase_at == 400.0


def test_dealer_falls_back_to_warehouse_and_walk_ins() -> None:
    world = _world()
    world.inventory.add_warehouse_lot(Drug.KOKS, 30, 70.0)
    world.workers.assign_worker("coca-mule", world.inventory)

    report = world.tick()

    assert report.deals >= 1
    assert report.revenue > 0
    assert world.inventory.warehouse_grams(Drug.KOKS) < 30
    assert any(entry.metadata.get("warehouse") for entry in world.activity)


def test_grower_plants_taps_and_harvester_collects(make_seed) -> None:
    world = _world()
    for _ in range(3):
        world.inventory.add_seed(make_seed(base_yield=10.0))
    world.workers.assign_worker("grower-apprentice", world.inventory)

    report = world.tick()

    assert report.planted == 2
    slots = world.pipelines[Drug.WEED].slots
    assert slots[0].occupant is not None and slots[1].occupant is not None
    assert slots[0].progress > 0
    assert len(world.inventory.seeds(Drug.WEED)) == 1

    for slot in slots[:2]:
        world.pipelines[Drug.WEED].boost(slot.id, taps=200)
    world.workers.assign_worker("harvest-master", world.inventory)
    report = world.tick()

    assert report.harvested == 2
    assert report.batches_started == 2
    assert world.inventory.units(Drug.WEED, "wet") == ()


def test_processor_cooks_with_available_precursors() -> None:
    world = _world()
    world.workers.assign_worker("coca-processor", world.inventory)

    report = world.tick()

    assert report.batches_started == 1
    assert world.inventory.precursors == 3
    assert world.pipelines[Drug.METH].get_station("meth-lab-1").current_batch is not None


def test_idle_worker_logs_rarely() -> None:
    world = _world(WorkerConfig(idle_log_chance=1.0, idle_log_cooldown_minutes=75.0))
    world.workers.assign_worker("sales-dealer", world.inventory)

    world.tick(400.0)
    world.tick(420.0)
    world.tick(480.0)

    idle = [entry for entry in world.activity if entry.metadata.get("idle")]
    assert [entry.timestamp for entry in idle] == [480.0, 400.0]


def test_dealer_sells_fractional_leftovers_and_keeps_going() -> None:
    world = _world()
    remnant = _koks_powder(world, grams=2.06, quality=95.0)
    bulk = _koks_powder(world, grams=500.0, quality=60.0)
    world.workers.assign_worker("coca-mule", world.inventory)

    report = world.tick()

    assert world.inventory.find_unit(remnant.id) is None
    assert report.deals >= 2
    assert bulk.grams < 500.0
    assert world.inventory.total_grams(Drug.KOKS) == pytest.approx(502.06 - report.grams_sold[Drug.KOKS])


def test_weed_dealer_leaves_wet_buds_alone(make_unit) -> None:
    world = _world()
    wet = make_unit(stage="wet", grams=50.0)
    world.inventory.add_unit(wet)
    world.workers.assign_worker("sales-dealer", world.inventory)

    report = world.tick()

    assert report.deals == 0
    assert wet.grams == pytest.approx(50.0)


def _koks_powder(world: World, *, grams: float, quality: float):
    unit = CommodityUnit(
        id=next_id("unit"),
        drug=Drug.KOKS,
        strain_name="Andes Snow",
        stage="powder",
        grams=grams,
        quality=quality,
        purity=quality,
    )
    world.inventory.add_unit(unit)
    return unit
