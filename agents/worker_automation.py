"""Worker Automation: the roster of hireable workers and their per-tick run.

Workers act one after another in roster order; each sees the pipeline,
inventory and ledger state left by the previous one. Every currency movement
goes through the inventory (`debit` for hiring and upgrades, `commit_sale` and
`credit` for deals).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from agents.logging_utils import create_system_logger
from agents.worker import WorkContext, auto_grow, auto_process, auto_sell, log_work, maybe_log_idle, routine_line
from agents.worker_agent import WorkerAgent
from config import CONFIG_MODEL, WorkerConfig
from economy.commodities import Drug
from economy.results import CommandResult, FailureReason, PurchaseResult
from economy.rng import RNG, chance

if TYPE_CHECKING:
    from agents.protocols import SalesLedger
    from economy.activity_log import ActivityLog
    from economy.inventory import Inventory
    from economy.pipeline import ProductionPipeline
    from economy.pricing import PricingEngine
    from sim_clock import Shift

# Chance of a routine line after a worker did real work this tick
ROUTINE_LOG_CHANCE = 0.05


@dataclass(slots=True)
class WorkerTickReport:
    active_workers: int = 0
    planted: int = 0
    harvested: int = 0
    batches_started: int = 0
    batches_collected: int = 0
    deals: int = 0
    revenue: int = 0
    grams_sold: dict[Drug, float] = field(default_factory=dict)


class WorkerAutomation:
    def __init__(self, rng: RNG, config: WorkerConfig | None = None) -> None:
        self.config: WorkerConfig = config or CONFIG_MODEL.workers
        self.rng = rng
        self._workers: dict[str, WorkerAgent] = {
            template.id: WorkerAgent(template=template, config=self.config) for template in self.config.roster
        }
        self.logger = create_system_logger("WorkerAutomation")

    # --- Queries ---
    def __iter__(self) -> Iterator[WorkerAgent]:
        return iter(tuple(self._workers.values()))

    def __len__(self) -> int:
        return len(self._workers)

    def get(self, worker_id: str) -> WorkerAgent | None:
        return self._workers.get(worker_id)

    def owned(self) -> list[WorkerAgent]:
        return [w for w in self._workers.values() if w.owned]

    def active(self) -> list[WorkerAgent]:
        return [w for w in self._workers.values() if w.is_active]

    def snapshots(self) -> list:
        return [w.snapshot() for w in self._workers.values()]

    # --- Commands ---
    def assign_worker(self, worker_id: str, inventory: Inventory) -> PurchaseResult:
        """Hire a worker from the roster. Hiring is permanent."""
        worker = self._workers.get(worker_id)
        if worker is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown worker {worker_id}")
        if worker.owned:
            return PurchaseResult.failed(FailureReason.INVALID_STATE, f"{worker.name} is already hired")
        cost = worker.hire_cost
        if not inventory.debit(cost):
            return PurchaseResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"{worker.name} costs {cost:g}")
        worker.mark_hired()
        self.logger.log_event("worker_hired", {"worker_id": worker_id, "cost": cost})
        return PurchaseResult.ok(f"Hired {worker.name}", cost=cost)

    def toggle_pause(self, worker_id: str) -> CommandResult:
        worker = self._workers.get(worker_id)
        if worker is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown worker {worker_id}")
        if not worker.owned:
            return CommandResult.failed(FailureReason.INELIGIBLE, f"{worker.name} is not hired")
        worker.set_paused(not worker.paused)
        state = "paused" if worker.paused else "back at work"
        return CommandResult.ok(f"{worker.name} is {state}")

    def upgrade(self, worker_id: str, inventory: Inventory) -> PurchaseResult:
        worker = self._workers.get(worker_id)
        if worker is None:
            return PurchaseResult.failed(FailureReason.NOT_FOUND, f"Unknown worker {worker_id}")
        if not worker.owned:
            return PurchaseResult.failed(FailureReason.INELIGIBLE, f"{worker.name} is not hired")
        if worker.at_max_level:
            return PurchaseResult.failed(FailureReason.INVALID_STATE, f"{worker.name} is at max level")
        cost = worker.upgrade_cost()
        if not inventory.debit(cost):
            return PurchaseResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"Upgrade costs {cost}")
        worker.level_up()
        return PurchaseResult.ok(f"{worker.name} is now level {worker.level}", cost=cost)

    # --- Tick ---
    def tick(
        self,
        now: float,
        shift: Shift,
        pipelines: dict[Drug, ProductionPipeline],
        inventory: Inventory,
        ledger: SalesLedger,
        pricing: PricingEngine,
        activity_log: ActivityLog,
        *,
        territory_multiplier: float = 1.0,
    ) -> WorkerTickReport:
        ctx = WorkContext(
            now=now,
            shift=shift,
            pipelines=pipelines,
            inventory=inventory,
            ledger=ledger,
            pricing=pricing,
            activity_log=activity_log,
            rng=self.rng,
            config=self.config,
            territory_multiplier=territory_multiplier,
        )
        report = WorkerTickReport()
        for worker in self.active():
            report.active_workers += 1
            worked = self._run_worker(worker, ctx, report)
            if not worked:
                maybe_log_idle(worker, ctx)
            elif chance(ROUTINE_LOG_CHANCE, self.rng):
                log_work(worker, ctx, f"{worker.name} {routine_line(worker, ctx)}")
        report.grams_sold = dict(ctx.grams_sold)
        if report.deals:
            self.logger.log_system_metric("dealer_revenue", report.revenue)
        return report

    def _run_worker(self, worker: WorkerAgent, ctx: WorkContext, report: WorkerTickReport) -> bool:
        worked = False
        if worker.can("plant") or worker.can("tap") or worker.can("harvest"):
            grow = auto_grow(worker, ctx)
            report.planted += grow.planted
            report.harvested += grow.harvested
            worked = worked or grow.did_work
        if worker.can("process"):
            processed = auto_process(worker, ctx)
            report.batches_started += processed.started
            report.batches_collected += processed.collected
            worked = worked or processed.did_work
        if worker.can("sell"):
            deals = auto_sell(worker, ctx)
            report.deals += deals.deals
            report.revenue += deals.revenue
            worked = worked or deals.did_work
        return worked
