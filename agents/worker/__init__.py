"""Worker ability components.

This package contains the per-tick abilities run by WorkerAutomation:
- growing: plant, tap and harvest grow slots
- processing: feed and collect processing and cook stations
- dealing: sell stock to weighted-random customers
- flavor: activity-log chatter and rate-limited idle notices
"""

from .context import DOMAIN_DRUGS, WorkContext
from .dealing import DEALER_STAGES, DealReport, auto_sell, sales_quota
from .flavor import log_work, maybe_log_idle, routine_line
from .growing import GrowReport, auto_grow
from .processing import ProcessReport, auto_process

__all__ = [
    "DEALER_STAGES",
    "DOMAIN_DRUGS",
    "DealReport",
    "GrowReport",
    "ProcessReport",
    "WorkContext",
    "auto_grow",
    "auto_process",
    "auto_sell",
    "log_work",
    "maybe_log_idle",
    "routine_line",
    "sales_quota",
]
