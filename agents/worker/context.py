"""Per-tick inputs shared by every worker ability."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from economy.commodities import Drug

if TYPE_CHECKING:
    from agents.protocols import SalesLedger
    from config import WorkerConfig
    from economy.activity_log import ActivityLog
    from economy.inventory import Inventory
    from economy.pipeline import ProductionPipeline
    from economy.pricing import PricingEngine
    from economy.rng import RNG
    from sim_clock import Shift


# Which pipelines a worker domain covers
DOMAIN_DRUGS: dict[str, tuple[Drug, ...]] = {
    "weed": (Drug.WEED,),
    "coca": (Drug.KOKS, Drug.METH),
}


@dataclass(slots=True)
class WorkContext:
    now: float
    shift: Shift
    pipelines: dict[Drug, ProductionPipeline]
    inventory: Inventory
    ledger: SalesLedger
    pricing: PricingEngine
    activity_log: ActivityLog
    rng: RNG
    config: WorkerConfig
    territory_multiplier: float = 1.0
    grams_sold: dict[Drug, float] = field(default_factory=dict)

    def pipelines_for(self, domain: str) -> list[ProductionPipeline]:
        return [self.pipelines[d] for d in DOMAIN_DRUGS.get(domain, ()) if d in self.pipelines]
