"""Metrics package for economy simulation analysis."""

from .analyzer import aggregate_metrics, analyze_revenue_trend, get_latest_snapshot
from .base import (
    MIN_TREND_POINTS,
    AgentMetricsDict,
    MetricDict,
    TimeSeriesDict,
    TimeStep,
    TrackedAgent,
    ValueType,
)
from .calculator import _customer_metrics, _inventory_metrics, _sales_metrics
from .collector import MetricsCollector
from .exporter import _export_agent_metrics_df, _export_global_metrics_df, export_metrics

__all__ = [
    "MetricsCollector",
    "aggregate_metrics",
    "analyze_revenue_trend",
    "get_latest_snapshot",
    "export_metrics",
    "_customer_metrics",
    "_inventory_metrics",
    "_sales_metrics",
    "_export_global_metrics_df",
    "_export_agent_metrics_df",
    "MIN_TREND_POINTS",
    "AgentMetricsDict",
    "MetricDict",
    "TimeSeriesDict",
    "TimeStep",
    "TrackedAgent",
    "ValueType",
]
