"""Simulation clock / game-time utilities.

Global convention (used everywhere in this project):

- the external driver feeds real seconds into `SimulationClock.advance`
- 1 real second == `minutes_per_real_second` game minutes (default 5)
- 1 game day == 1440 game minutes, the game starts at 06:00 of day 0

Deadlines (request expiry, next scheduled request, prospect arrival, cooldowns)
are plain game-minute values compared against `SimulationClock.minutes`. No part
of the core schedules real-time callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from config import ClockConfig

MINUTES_PER_DAY = 24 * 60

Shift = Literal["morning", "day", "evening", "night"]


@dataclass(frozen=True, slots=True)
class Tick:
    """One discrete simulation step as seen by the aggregates."""

    index: int
    elapsed_seconds: float
    elapsed_minutes: float
    now_minutes: float


@dataclass
class SimulationClock:
    """A monotonic game-minutes counter.

    The clock only moves forward; `advance()` is the single entry point used by
    the engine, `set_minutes()` exists for tests and restored sessions.
    """

    time: ClockConfig
    minutes: float = -1.0
    tick_index: int = 0

    def __post_init__(self) -> None:
        if self.minutes < 0:
            self.minutes = float(self.time.start_minute)

    def set_minutes(self, minutes: float) -> None:
        if minutes < 0:
            raise ValueError("minutes must be >= 0")
        if minutes < self.minutes:
            raise ValueError("game time is monotonic and cannot move backwards")
        self.minutes = float(minutes)

    def advance(self, real_seconds: float | None = None) -> Tick:
        seconds = self.time.tick_seconds if real_seconds is None else float(real_seconds)
        if seconds < 0:
            raise ValueError("real_seconds must be >= 0")
        elapsed_minutes = self.real_seconds_to_minutes(seconds)
        self.minutes += elapsed_minutes
        self.tick_index += 1
        return Tick(
            index=self.tick_index,
            elapsed_seconds=seconds,
            elapsed_minutes=elapsed_minutes,
            now_minutes=self.minutes,
        )

    # --- Derived values ---
    @property
    def day_index(self) -> int:
        """0-based game day."""
        return int(self.minutes // MINUTES_PER_DAY)

    @property
    def minute_of_day(self) -> float:
        return self.minutes % MINUTES_PER_DAY

    @property
    def hour(self) -> int:
        return int(self.minute_of_day // 60)

    @property
    def shift(self) -> Shift:
        hour = self.hour
        if 5 <= hour < 11:
            return "morning"
        if 11 <= hour < 17:
            return "day"
        if 17 <= hour < 22:
            return "evening"
        return "night"

    def has_passed(self, deadline: float | None) -> bool:
        return deadline is not None and self.minutes >= deadline

    # --- Rate conversion ---
    def real_seconds_to_minutes(self, seconds: float) -> float:
        return float(seconds) * float(self.time.minutes_per_real_second)
