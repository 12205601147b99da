"""Deterministic id generation for simulation entities.

Counters are process-wide; `SimulationEngine.reset()` clears them so that two
engines built from the same seed produce identical ids.
"""

from __future__ import annotations

from collections import defaultdict

_ID_COUNTERS: defaultdict[str, int] = defaultdict(int)


def next_id(prefix: str) -> str:
    _ID_COUNTERS[prefix] += 1
    return f"{prefix}_{_ID_COUNTERS[prefix]}"


def reset_id_counters() -> None:
    _ID_COUNTERS.clear()
