"""Dealer automation.

Each tick a dealer works through a sales quota per drug. One deal:

1. pick the best unit in stock (stage preference first, then quality/purity);
   when local stock is empty, sell from the warehouse instead
2. pick a buyer by weighted choice, weight = 1 + addiction/40 + spending/60
3. draw a gram amount from the level-scaled deal range
4. price it with the shared pricing engine and a worker-level bonus
5. commit the sale on the inventory and book it on the ledger

Dealers run one after another, so a later dealer sees the stock an earlier
dealer already sold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from economy.commodities import CommodityUnit, Drug
from economy.pricing import ANONYMOUS_BUYER, Relationship
from economy.rng import random_between, weighted_choice

from .flavor import log_work

if TYPE_CHECKING:
    from agents.protocols import BuyerProtocol
    from agents.worker_agent import WorkerAgent

    from .context import WorkContext

# Stage preference per drug, most valuable first
DEALER_STAGES: dict[Drug, tuple[str, ...]] = {
    Drug.WEED: ("dried",),
    Drug.KOKS: ("powder", "base", "paste", "leaves"),
    Drug.METH: ("crystal",),
}


@dataclass(slots=True)
class DealReport:
    deals: int = 0
    grams: float = 0.0
    revenue: int = 0

    @property
    def did_work(self) -> bool:
        return self.deals > 0


def sales_quota(worker: WorkerAgent, ctx: WorkContext) -> int:
    cfg = ctx.config
    base = worker.template.sales_per_tick + math.floor(worker.level * cfg.quota_level_step)
    return max(1, math.floor(base * cfg.quota_factor))


def level_multiplier(worker: WorkerAgent, ctx: WorkContext) -> float:
    return 1 + worker.level * ctx.config.revenue_level_bonus


def buyer_weight(buyer: BuyerProtocol, drug: Drug, ctx: WorkContext) -> float:
    cfg = ctx.config
    return 1 + buyer.addiction_for(drug) / cfg.addiction_weight_divisor + buyer.spending_power / cfg.spending_weight_divisor


def choose_buyer(drug: Drug, ctx: WorkContext) -> BuyerProtocol | None:
    buyers = ctx.ledger.dealer_buyers(drug)
    if not buyers:
        return None
    return weighted_choice(buyers, [buyer_weight(b, drug, ctx) for b in buyers], ctx.rng)


def choose_unit(drug: Drug, ctx: WorkContext) -> CommodityUnit | None:
    for stage in DEALER_STAGES[drug]:
        unit = ctx.inventory.best_unit(drug, stages=(stage,))
        if unit is not None:
            return unit
    return None


def deal_grams(worker: WorkerAgent, ctx: WorkContext) -> int:
    step = math.floor(worker.level * ctx.config.deal_level_step)
    low = worker.template.deal_grams.low + step
    high = worker.template.deal_grams.high + step
    return max(1, math.floor(random_between(low, high, ctx.rng)))


def warehouse_grams(worker: WorkerAgent, ctx: WorkContext) -> int:
    cfg = ctx.config
    low = cfg.warehouse_deal_grams.low + math.floor(worker.level * cfg.warehouse_deal_level_step.low)
    high = cfg.warehouse_deal_grams.high + math.floor(worker.level * cfg.warehouse_deal_level_step.high)
    return max(1, math.floor(random_between(low, high, ctx.rng)))


def _buyer_terms(buyer: BuyerProtocol | None) -> tuple[str | None, str, Relationship]:
    if buyer is None:
        return None, "a walk-in", ANONYMOUS_BUYER
    return buyer.unique_id, buyer.name, buyer.relationship()


def sell_unit(worker: WorkerAgent, unit: CommodityUnit, ctx: WorkContext) -> tuple[float, int] | None:
    drug = unit.drug
    buyer_id, buyer_name, relationship = _buyer_terms(choose_buyer(drug, ctx))
    grams = min(unit.grams, float(deal_grams(worker, ctx)))
    if grams <= 0:
        return None
    revenue = ctx.pricing.price(
        drug,
        grams,
        unit.quality_score,
        relationship,
        level_multiplier(worker, ctx) * ctx.territory_multiplier,
        stage=unit.stage,
    )
    strain = unit.strain_name
    if ctx.inventory.commit_sale(unit.id, grams, revenue) is None:
        return None
    if buyer_id is not None:
        ctx.ledger.record_dealer_sale(buyer_id, drug, grams, revenue, ctx.now)
    log_work(
        worker,
        ctx,
        f"{worker.name} sold {grams:g}g {strain} to {buyer_name} for {revenue}",
        amount=grams,
        revenue=revenue,
        drug=str(drug),
    )
    return grams, revenue


def sell_from_warehouse(worker: WorkerAgent, drug: Drug, ctx: WorkContext) -> tuple[float, int] | None:
    if ctx.inventory.warehouse_grams(drug) <= 0:
        return None
    buyer_id, buyer_name, relationship = _buyer_terms(choose_buyer(drug, ctx))
    sale = ctx.inventory.take_warehouse_stock(drug, warehouse_grams(worker, ctx))
    if sale.grams_sold <= 0:
        return None
    revenue = ctx.pricing.price(
        drug,
        sale.grams_sold,
        sale.average_quality,
        relationship,
        level_multiplier(worker, ctx) * ctx.territory_multiplier,
    )
    ctx.inventory.credit(revenue)
    if buyer_id is not None:
        ctx.ledger.record_dealer_sale(buyer_id, drug, sale.grams_sold, revenue, ctx.now)
    log_work(
        worker,
        ctx,
        f"{worker.name} moved {sale.grams_sold}g of warehouse {drug} to {buyer_name} for {revenue}",
        amount=float(sale.grams_sold),
        revenue=revenue,
        drug=str(drug),
        warehouse=True,
    )
    return float(sale.grams_sold), revenue


def auto_sell(worker: WorkerAgent, ctx: WorkContext) -> DealReport:
    report = DealReport()
    quota = sales_quota(worker, ctx)
    for drug in worker.drugs:
        for _ in range(quota):
            unit = choose_unit(drug, ctx)
            if unit is not None:
                deal = sell_unit(worker, unit, ctx)
            else:
                deal = sell_from_warehouse(worker, drug, ctx)
            if deal is None:
                break
            grams, revenue = deal
            report.deals += 1
            report.grams += grams
            report.revenue += revenue
            ctx.grams_sold[drug] = ctx.grams_sold.get(drug, 0.0) + grams
    return report
