"""Calculator module - pure per-tick economy metric functions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

import numpy as np

from economy.commodities import Drug

from .base import MetricDict

if TYPE_CHECKING:
    from agents.customer_agent import Customer
    from economy.inventory import Inventory


def _inventory_metrics(inventory: Inventory) -> MetricDict:
    metrics: MetricDict = {
        "cash": float(inventory.cash),
        "precursors": int(inventory.precursors),
        "seeds": len(inventory.seeds()),
        "total_revenue": int(inventory.total_revenue),
        "total_spent": float(inventory.total_spent),
    }
    for drug in Drug:
        metrics[f"grams_{drug}"] = round(inventory.total_grams(drug), 2)
        metrics[f"warehouse_grams_{drug}"] = int(inventory.warehouse_grams(drug))
    return metrics


def _customer_metrics(customers: Iterable[Customer]) -> MetricDict:
    customers = list(customers)
    counts = {"prospect": 0, "active": 0, "loyal": 0, "vip": 0}
    for customer in customers:
        counts[str(customer.status)] += 1

    metrics: MetricDict = {"customers_total": len(customers)}
    metrics.update({f"customers_{status}": count for status, count in counts.items()})

    converted = [c for c in customers if not c.is_prospect]
    if converted:
        loyalty = np.array([c.loyalty for c in converted], dtype=float)
        satisfaction = np.array([c.satisfaction for c in converted], dtype=float)
        addiction = np.array([c.max_addiction for c in converted], dtype=float)
        metrics["mean_loyalty"] = float(np.mean(loyalty))
        metrics["mean_satisfaction"] = float(np.mean(satisfaction))
        metrics["mean_addiction"] = float(np.mean(addiction))
        metrics["max_addiction"] = float(np.max(addiction))
    else:
        metrics["mean_loyalty"] = 0.0
        metrics["mean_satisfaction"] = 0.0
        metrics["mean_addiction"] = 0.0
        metrics["max_addiction"] = 0.0
    metrics["pending_requests"] = sum(1 for c in customers if c.pending_request is not None)
    return metrics


def _sales_metrics(revenue: float, grams_sold: Mapping[Drug, float]) -> MetricDict:
    grams = np.array([grams_sold.get(drug, 0.0) for drug in Drug], dtype=float)
    metrics: MetricDict = {
        "revenue_tick": float(revenue),
        "grams_sold_tick": float(np.sum(grams)),
    }
    for drug, value in zip(Drug, grams):
        metrics[f"grams_sold_{drug}"] = round(float(value), 2)
    return metrics
