"""Bounded, append-only activity feed for the presentation layer."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from logger import log


@dataclass(frozen=True, slots=True)
class ActivityEntry:
    timestamp: float
    actor_id: str
    actor_name: str
    message: str
    amount: float | None = None
    revenue: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class ActivityLog:
    """Keeps the newest `limit` entries, newest first.

    Every appended entry is mirrored to the stdlib logger at DEBUG so a run can
    be reconstructed from the log file.
    """

    def __init__(self, limit: int = 50, *, channel: str = "activity") -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self.limit = int(limit)
        self.channel = channel
        self._entries: deque[ActivityEntry] = deque(maxlen=self.limit)

    def append(
        self,
        *,
        timestamp: float,
        actor_id: str,
        actor_name: str,
        message: str,
        amount: float | None = None,
        revenue: int | None = None,
        **metadata: Any,
    ) -> ActivityEntry:
        entry = ActivityEntry(
            timestamp=float(timestamp),
            actor_id=actor_id,
            actor_name=actor_name,
            message=message,
            amount=amount,
            revenue=revenue,
            metadata=dict(metadata),
        )
        self._entries.appendleft(entry)
        log(f"[{self.channel}] {actor_name}: {message}", level="DEBUG")
        return entry

    def entries(self) -> tuple[ActivityEntry, ...]:
        return tuple(self._entries)

    def latest(self) -> ActivityEntry | None:
        return self._entries[0] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ActivityEntry]:
        return iter(tuple(self._entries))
