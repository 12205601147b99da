"""Base types and constants for the metrics package."""

from typing import Any, Dict, Protocol, Union

# Type aliases
TimeStep = int
ValueType = Union[float, int, str, bool, None]
MetricDict = Dict[str, Any]
TimeSeriesDict = Dict[TimeStep, MetricDict]
AgentMetricsDict = Dict[str, Dict[TimeStep, MetricDict]]

# Constants
MIN_TREND_POINTS = 5


class TrackedAgent(Protocol):
    """Protocol defining the minimum required attributes for tracked agents"""

    unique_id: str
