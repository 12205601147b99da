"""Analyzer module - summaries over the collected time series."""

import statistics
from typing import TypedDict

from .base import MIN_TREND_POINTS


class RevenueTrend(TypedDict):
    mean_revenue: float
    revenue_volatility: float
    latest_revenue: float
    is_growing: bool


def get_latest_snapshot(collector):
    """Return the most recent global metrics row (empty when nothing was collected)."""
    if not collector.global_metrics:
        return {}
    latest_step = max(collector.global_metrics)
    return {"time_step": latest_step, **collector.global_metrics[latest_step]}


def aggregate_metrics(collector, metric_name, *, window=None, method="mean"):
    """Aggregate one global metric over the last `window` ticks (all ticks when None)."""
    steps = sorted(collector.global_metrics)
    if window is not None:
        steps = steps[-window:]
    values = [
        float(collector.global_metrics[s][metric_name])
        for s in steps
        if metric_name in collector.global_metrics[s]
    ]
    if not values:
        return 0.0
    match method:
        case "sum":
            return float(sum(values))
        case "max":
            return float(max(values))
        case "min":
            return float(min(values))
        case "median":
            return float(statistics.median(values))
        case _:
            return float(statistics.mean(values))


def analyze_revenue_trend(collector):
    """Compare the second half of the revenue series against the first half."""
    revenues = [
        float(collector.global_metrics[s].get("revenue_tick", 0.0))
        for s in sorted(collector.global_metrics)
    ]
    if len(revenues) < MIN_TREND_POINTS:
        return None

    half = len(revenues) // 2
    early = statistics.mean(revenues[:half])
    late = statistics.mean(revenues[half:])
    return RevenueTrend(
        mean_revenue=statistics.mean(revenues),
        revenue_volatility=statistics.pstdev(revenues),
        latest_revenue=revenues[-1],
        is_growing=late > early,
    )
