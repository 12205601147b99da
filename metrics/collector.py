"""MetricsCollector - collects per-tick metrics from the economy aggregates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from config import CONFIG_MODEL, SimulationConfig
from economy.commodities import Drug
from logger import log

from .base import AgentMetricsDict, MetricDict, TimeStep
from .calculator import _customer_metrics, _inventory_metrics, _sales_metrics

if TYPE_CHECKING:
    from agents.customer_agent import Customer
    from agents.worker_agent import WorkerAgent
    from economy.inventory import Inventory


class MetricsCollector:
    """
    Collects and exports economy metrics.

    Global metrics hold one row per tick (cash, stock, customer counts,
    sales). Customer and worker metrics hold one row per tracked agent and tick.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        """Initialize the metrics collector."""
        self.config = config or CONFIG_MODEL
        self.global_metrics: Dict[TimeStep, MetricDict] = {}
        self.customer_metrics: AgentMetricsDict = {}
        self.worker_metrics: AgentMetricsDict = {}
        self.registered_customers: Set[str] = set()
        self.registered_workers: Set[str] = set()
        self.export_path = Path(self.config.metrics_export_path)
        self.latest_global_metrics: MetricDict = {}
        self.global_metrics_df = None
        self.customer_metrics_df = None
        self.worker_metrics_df = None

    def add_metric(self, agent_id, metric_name, value, metric_dict, step):
        """Add a metric value for an agent."""
        agent_metrics = metric_dict.setdefault(agent_id, {})
        step_metrics = agent_metrics.setdefault(step, {})
        step_metrics[metric_name] = value

    def register_customer(self, customer: Customer) -> None:
        agent_id = customer.unique_id
        if agent_id not in self.registered_customers:
            self.registered_customers.add(agent_id)
            self.customer_metrics[agent_id] = {}
            log(f"MetricsCollector: Registered customer {agent_id} for metrics tracking", level="DEBUG")

    def register_worker(self, worker: WorkerAgent) -> None:
        agent_id = worker.unique_id
        if agent_id not in self.registered_workers:
            self.registered_workers.add(agent_id)
            self.worker_metrics[agent_id] = {}
            log(f"MetricsCollector: Registered worker {agent_id} for metrics tracking", level="DEBUG")

    def collect_customer_metrics(self, customers: Iterable[Customer], step: TimeStep) -> None:
        for customer in customers:
            if customer.is_prospect:
                continue
            self.register_customer(customer)
            self.customer_metrics[customer.unique_id][step] = {
                "status": str(customer.status),
                "loyalty": customer.loyalty,
                "satisfaction": customer.satisfaction,
                "max_addiction": customer.max_addiction,
                "total_purchases": customer.total_purchases,
                "total_spent": customer.total_spent,
            }

    def collect_worker_metrics(self, workers: Iterable[WorkerAgent], step: TimeStep) -> None:
        for worker in workers:
            if not worker.owned:
                continue
            self.register_worker(worker)
            self.worker_metrics[worker.unique_id][step] = {
                "role": worker.role,
                "level": worker.level,
                "paused": worker.paused,
            }

    def calculate_global_metrics(
        self,
        step: TimeStep,
        *,
        now: float,
        inventory: Inventory,
        customers: Iterable[Customer],
        revenue: float,
        grams_sold: Mapping[Drug, float],
    ) -> MetricDict:
        metrics: MetricDict = {"game_minutes": float(now)}
        metrics.update(_inventory_metrics(inventory))
        metrics.update(_customer_metrics(customers))
        metrics.update(_sales_metrics(revenue, grams_sold))
        self.global_metrics[step] = metrics
        self.latest_global_metrics = metrics
        return metrics

    def export_metrics(self) -> list[Path]:
        from .exporter import export_metrics

        return export_metrics(self)

    def get_latest_snapshot(self) -> dict[str, Any]:
        from .analyzer import get_latest_snapshot

        return get_latest_snapshot(self)
