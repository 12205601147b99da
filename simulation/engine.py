from __future__ import annotations

import os
import sys
import time
from typing import Any

from agents.customer_ledger import CustomerLedger
from agents.worker_automation import WorkerAutomation, WorkerTickReport
from config import SimulationConfig
from economy.activity_log import ActivityEntry, ActivityLog
from economy.breeding import BreedingResult, breed_seeds
from economy.commodities import Drug, GeneticEntity, Rarity
from economy.ids import next_id, reset_id_counters
from economy.inventory import Inventory
from economy.pipeline import PipelineUpgrades, ProductionPipeline
from economy.pricing import ANONYMOUS_BUYER, PricingEngine
from economy.results import (
    CommandResult,
    FailureReason,
    HarvestResult,
    ProcessingResult,
    PurchaseResult,
    SaleResult,
    SampleResult,
)
from economy.rng import make_rng
from economy.snapshots import seed_snapshot, unit_snapshot
from logger import log
from metrics import MetricsCollector
from sim_clock import SimulationClock, Tick


def _clock_label(clock: SimulationClock) -> str:
    """Game time for status lines, e.g. ``D2 17:45 evening``."""
    minute = int(clock.minute_of_day)
    return f"D{clock.day_index} {minute // 60:02d}:{minute % 60:02d} {clock.shift}"


def _format_cash(value: float) -> str:
    for limit, suffix in ((1_000_000, "M"), (1_000, "k")):
        if abs(value) >= limit:
            return f"${value / limit:.1f}{suffix}"
    return f"${value:.0f}"


def _resolve_seed(config: SimulationConfig) -> int | None:
    env_seed = os.getenv("SIM_SEED")
    if env_seed is not None and env_seed != "":
        return int(env_seed)
    return config.seed


def create_starting_seeds(config: SimulationConfig) -> list[GeneticEntity]:
    seeds: list[GeneticEntity] = []
    for template in config.starting_seeds:
        for _ in range(template.count):
            seeds.append(
                GeneticEntity(
                    id=next_id("seed"),
                    name=template.name,
                    drug=Drug(template.drug),
                    rarity=Rarity(template.rarity),
                    traits=frozenset(template.traits),
                    base_yield=template.base_yield,
                    growth_speed=template.growth_speed,
                )
            )
    return seeds


class SimulationEngine:
    """The tick loop plus the command and query surface for a presentation layer.

    One tick runs: clock advance, pipeline advance, worker automation, customer
    ledger, metrics. Commands may be issued between ticks; all of them return
    result objects.
    """

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.reset()

    def reset(self) -> None:
        """Reset the simulation to its initial state."""
        reset_id_counters()
        self.seed = _resolve_seed(self.config)
        self.rng = make_rng(self.seed)

        self.inventory = Inventory(
            cash=self.config.starting_cash, precursors=self.config.starting_precursors
        )
        for seed in create_starting_seeds(self.config):
            self.inventory.add_seed(seed)

        self.upgrades = PipelineUpgrades()
        self.pipelines: dict[Drug, ProductionPipeline] = {
            drug: ProductionPipeline(
                drug, self.config.domain(drug), self.inventory, self.rng, upgrades=self.upgrades
            )
            for drug in Drug
        }
        self.pricing = PricingEngine(self.config.pricing)
        self.territory_multiplier = self.config.territory.sales_multiplier
        self.ledger = CustomerLedger(
            self.inventory,
            self.pricing,
            self.rng,
            self.config.customers,
            territory_multiplier=self.territory_multiplier,
        )
        self.workers = WorkerAutomation(self.rng, self.config.workers)
        self.activity_log = ActivityLog(self.config.workers.activity_log_limit, channel="workers")
        self.clock = SimulationClock(self.config.clock)
        for _ in range(self.config.customers.initial_prospects):
            self.ledger.add_prospect(self.clock.minutes)

        self.steps = int(self.config.simulation_steps)
        self.current_step = 0
        self.collector = MetricsCollector(config=self.config)
        self.last_worker_report: WorkerTickReport | None = None
        self._revenue_mark = self.inventory.total_revenue
        self._grams_sold: dict[Drug, float] = {}

        self.progress_enabled = os.getenv("SIM_PROGRESS", "1") not in {"0", "false", "False"}
        self.start_ts = time.time()
        self.last_progress_ts = self.start_ts
        self.progress_every_steps = max(1, self.steps // 200)
        self.progress_every_seconds = 2.0
        log(f"SimulationEngine: reset with seed={self.seed}", level="INFO")

    @property
    def now(self) -> float:
        return self.clock.minutes

    # --- Tick ---
    def step(self, real_seconds: float | None = None) -> Tick:
        """Execute a single tick of the simulation."""
        tick = self.clock.advance(real_seconds)
        now = tick.now_minutes

        for pipeline in self.pipelines.values():
            pipeline.advance(tick.elapsed_seconds)

        report = self.workers.tick(
            now,
            self.clock.shift,
            self.pipelines,
            self.inventory,
            self.ledger,
            self.pricing,
            self.activity_log,
            territory_multiplier=self.territory_multiplier,
        )
        self.last_worker_report = report
        for drug, grams in report.grams_sold.items():
            self._record_grams(drug, grams)

        self.ledger.tick(now)
        self._collect_metrics(tick)
        self.current_step += 1
        return tick

    def _record_grams(self, drug: str, grams: float) -> None:
        key = Drug(drug)
        self._grams_sold[key] = self._grams_sold.get(key, 0.0) + grams

    def _collect_metrics(self, tick: Tick) -> None:
        revenue = self.inventory.total_revenue - self._revenue_mark
        customers = list(self.ledger)
        self.collector.calculate_global_metrics(
            tick.index,
            now=tick.now_minutes,
            inventory=self.inventory,
            customers=customers,
            revenue=revenue,
            grams_sold=self._grams_sold,
        )
        self.collector.collect_customer_metrics(customers, tick.index)
        self.collector.collect_worker_metrics(self.workers, tick.index)
        self._revenue_mark = self.inventory.total_revenue
        self._grams_sold = {}

    def _print_progress(self, step: int) -> None:
        if not self.progress_enabled:
            return
        is_last = step + 1 >= self.steps
        now = time.time()
        if not is_last and (
            (step + 1) % self.progress_every_steps != 0
            or (now - self.last_progress_ts) < self.progress_every_seconds
        ):
            return
        done = step + 1
        pct = (done / self.steps * 100.0) if self.steps > 0 else 100.0
        stock = self.inventory.total_grams()
        status = (
            f"{pct:6.2f}%  tick {done}/{self.steps}  {_clock_label(self.clock)}  "
            f"customers {len(self.ledger):4d}  stock {stock:8.1f}g  cash {_format_cash(self.inventory.cash):>9}"
        )
        sys.stdout.write("\r" + status)
        if is_last:
            sys.stdout.write("\n")
        sys.stdout.flush()
        self.last_progress_ts = now

    def run(self) -> dict[str, Any]:
        """Run the configured number of ticks and export metrics."""
        log(f"Starting simulation for {self.steps} ticks...", level="INFO")
        self.start_ts = time.time()
        for index in range(self.steps):
            self.step()
            self._print_progress(index)
            if index % max(1, self.steps // 10) == 0:
                log(
                    f"Tick {index}: cash={self.inventory.cash:.0f}, customers={len(self.ledger)}, "
                    f"day={self.clock.day_index} {self.clock.shift}",
                    level="INFO",
                )
        log(f"Simulation finished in {time.time() - self.start_ts:.1f}s.", level="INFO")
        self.collector.export_metrics()
        return self.snapshot()

    # --- Lookup helpers ---
    def _pipeline_for_slot(self, slot_id: str) -> ProductionPipeline | None:
        return next((p for p in self.pipelines.values() if p.get_slot(slot_id) is not None), None)

    def _pipeline_for_station(self, station_id: str) -> ProductionPipeline | None:
        return next(
            (p for p in self.pipelines.values() if p.get_station(station_id) is not None), None
        )

    # --- Commands: production ---
    def plant(self, slot_id: str, seed_id: str) -> CommandResult:
        pipeline = self._pipeline_for_slot(slot_id)
        if pipeline is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        return pipeline.plant(slot_id, seed_id)

    def boost(self, slot_id: str, taps: int = 1) -> CommandResult:
        pipeline = self._pipeline_for_slot(slot_id)
        if pipeline is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        return pipeline.boost(slot_id, taps)

    def harvest(self, slot_id: str) -> HarvestResult:
        pipeline = self._pipeline_for_slot(slot_id)
        if pipeline is None:
            return HarvestResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        return pipeline.harvest(slot_id)

    def unlock_slot(self, slot_id: str) -> PurchaseResult:
        pipeline = self._pipeline_for_slot(slot_id)
        if pipeline is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown slot {slot_id}")
        return pipeline.unlock_slot(slot_id)

    def start_processing(self, station_id: str, unit_id: str) -> ProcessingResult:
        pipeline = self._pipeline_for_station(station_id)
        if pipeline is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        return pipeline.start_processing(station_id, unit_id)

    def start_cook(self, station_id: str, recipe_id: str) -> ProcessingResult:
        pipeline = self._pipeline_for_station(station_id)
        if pipeline is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        return pipeline.start_cook(station_id, recipe_id)

    def collect(self, station_id: str) -> ProcessingResult:
        pipeline = self._pipeline_for_station(station_id)
        if pipeline is None:
            return ProcessingResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        return pipeline.collect(station_id)

    def unlock_station(self, station_id: str) -> PurchaseResult:
        pipeline = self._pipeline_for_station(station_id)
        if pipeline is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        return pipeline.unlock_station(station_id)

    def upgrade_station(self, station_id: str) -> PurchaseResult:
        pipeline = self._pipeline_for_station(station_id)
        if pipeline is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown station {station_id}")
        return pipeline.upgrade_station(station_id)

    def buy_precursors(self, count: int) -> PurchaseResult:
        return self.pipelines[Drug.METH].buy_precursors(count)

    def breed(self, seed_a_id: str, seed_b_id: str) -> BreedingResult:
        return breed_seeds(self.inventory, seed_a_id, seed_b_id, self.rng, self.config.breeding)

    def add_warehouse_lot(self, drug: str, grams: int, quality: float) -> CommandResult:
        if drug not in {d.value for d in Drug}:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown drug {drug}")
        if grams <= 0:
            return CommandResult.failed(FailureReason.INVALID_STATE, "grams must be positive")
        lot = self.inventory.add_warehouse_lot(Drug(drug), grams, quality)
        return CommandResult.ok(f"Stored {lot.grams}g {drug} in the warehouse")

    # --- Commands: sales ---
    def _track_sale(self, result: SaleResult) -> SaleResult:
        if result.success and result.drug is not None:
            self._record_grams(result.drug, result.grams)
        return result

    def sell(self, customer_id: str, unit_id: str, grams: float) -> SaleResult:
        return self._track_sale(self.ledger.sell(customer_id, unit_id, grams, self.now))

    def give_sample(self, customer_id: str, unit_id: str) -> SampleResult:
        return self.ledger.give_sample(customer_id, unit_id, self.now)

    def fulfill_request(self, customer_id: str, unit_id: str | None = None) -> SaleResult:
        return self._track_sale(self.ledger.fulfill_request(customer_id, self.now, unit_id))

    def ignore_request(self, customer_id: str) -> CommandResult:
        return self.ledger.ignore_request(customer_id, self.now)

    def offer_drug(
        self, customer_id: str, drug: str, grams: float, unit_id: str | None = None
    ) -> SaleResult:
        return self._track_sale(self.ledger.offer_drug(customer_id, drug, grams, self.now, unit_id))

    def sell_to_market(self, unit_id: str, grams: float) -> SaleResult:
        """Sell stock without a customer at the anonymous-buyer price."""
        unit = self.inventory.find_unit(unit_id)
        if unit is None:
            return SaleResult.failed(FailureReason.NOT_FOUND, f"Unknown unit {unit_id}")
        grams = round(grams, 1)
        if grams <= 0:
            return SaleResult.failed(FailureReason.INVALID_STATE, "grams must be positive")
        if not self.inventory.can_supply(unit_id, grams):
            return SaleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, "Not enough grams")
        drug = unit.drug
        revenue = self.pricing.price(
            drug,
            grams,
            unit.quality_score,
            ANONYMOUS_BUYER,
            self.territory_multiplier,
            stage=unit.stage,
        )
        if self.inventory.commit_sale(unit_id, grams, revenue) is None:
            return SaleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, "Sale could not be committed")
        return self._track_sale(
            SaleResult.ok(f"Sold {grams:g}g {drug} on the market", drug=str(drug), grams=grams, revenue=revenue)
        )

    # --- Commands: workers ---
    def assign_worker(self, worker_id: str) -> PurchaseResult:
        return self.workers.assign_worker(worker_id, self.inventory)

    def toggle_worker_pause(self, worker_id: str) -> CommandResult:
        return self.workers.toggle_pause(worker_id)

    def upgrade_worker(self, worker_id: str) -> PurchaseResult:
        return self.workers.upgrade(worker_id, self.inventory)

    # --- Queries ---
    def activity(self) -> tuple[ActivityEntry, ...]:
        return self.activity_log.entries()

    def snapshot(self) -> dict[str, Any]:
        """Read-only view of the whole economy."""
        return {
            "clock": {
                "minutes": self.clock.minutes,
                "day": self.clock.day_index,
                "shift": self.clock.shift,
                "tick": self.clock.tick_index,
            },
            "inventory": {
                "cash": self.inventory.cash,
                "precursors": self.inventory.precursors,
                "units": [unit_snapshot(u) for u in self.inventory.units()],
                "seeds": [seed_snapshot(s) for s in self.inventory.seeds()],
                "warehouse": {str(d): self.inventory.warehouse_grams(d) for d in Drug},
            },
            "slots": {str(d): p.slot_snapshots() for d, p in self.pipelines.items()},
            "stations": {str(d): p.station_snapshots() for d, p in self.pipelines.items()},
            "customers": self.ledger.snapshots(),
            "workers": self.workers.snapshots(),
            "activity": [entry.message for entry in self.activity_log],
        }
