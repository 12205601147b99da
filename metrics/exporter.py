"""Exporter module - CSV export functionality."""

from datetime import datetime
from pathlib import Path
from typing import Protocol


class MetricsCollectorProtocol(Protocol):
    """Protocol for metrics collector to allow duck typing"""

    global_metrics: dict
    customer_metrics: dict
    worker_metrics: dict
    export_path: Path
    global_metrics_df = None
    customer_metrics_df = None
    worker_metrics_df = None


def export_metrics(collector) -> list[Path]:
    """Persist metrics to CSV files, one per metric family."""
    return export_time_series_to_csv(collector)


def export_time_series_to_csv(collector) -> list[Path]:
    """Export time series of metrics to structured CSV files using pandas."""
    from logger import log

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    Path(collector.export_path).mkdir(parents=True, exist_ok=True)

    exports = [
        _export_global_metrics_df(collector, timestamp),
        _export_agent_metrics_df(collector, collector.customer_metrics, "customer_metrics", timestamp),
        _export_agent_metrics_df(collector, collector.worker_metrics, "worker_metrics", timestamp),
    ]

    written = [path for path in exports if path is not None]
    if written:
        log(
            "MetricsCollector: Exported CSV metrics: " + ", ".join(str(p.name) for p in written),
            level="INFO",
        )
    else:
        log("MetricsCollector: No metrics available for CSV export", level="WARNING")
    return written


def _export_global_metrics_df(collector, timestamp):
    if not collector.global_metrics:
        return None

    import pandas as pd

    rows = []
    for step, metrics in collector.global_metrics.items():
        row = {"time_step": int(step)}
        row.update(metrics)
        rows.append(row)

    df = pd.DataFrame.from_records(rows)
    if not df.empty and "time_step" in df.columns:
        df = df.sort_values("time_step")

    output_file = Path(collector.export_path) / f"global_metrics_{timestamp}.csv"
    df.to_csv(output_file, index=False)
    collector.global_metrics_df = df
    return output_file


def _export_agent_metrics_df(collector, agent_metrics, filename_prefix, timestamp):
    if not agent_metrics:
        return None

    import pandas as pd

    rows = []
    for agent_id, time_series in agent_metrics.items():
        for step, metrics in time_series.items():
            row = {"time_step": int(step), "agent_id": str(agent_id)}
            row.update(metrics)
            rows.append(row)

    if not rows:
        return None

    df = pd.DataFrame.from_records(rows)
    if not df.empty and "time_step" in df.columns:
        df = df.sort_values(["time_step", "agent_id"])

    output_file = Path(collector.export_path) / f"{filename_prefix}_{timestamp}.csv"
    df.to_csv(output_file, index=False)

    if filename_prefix.startswith("customer"):
        collector.customer_metrics_df = df
    elif filename_prefix.startswith("worker"):
        collector.worker_metrics_df = df

    return output_file
