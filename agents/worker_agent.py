from __future__ import annotations

import math
from dataclasses import dataclass

from agents.base_agent import BaseAgent
from agents.logging_utils import create_agent_logger
from config import CONFIG_MODEL, WorkerConfig, WorkerTemplate
from economy.commodities import Drug
from economy.snapshots import WorkerSnapshot


@dataclass(eq=False)
class WorkerAgent(BaseAgent):
    """A hireable automation unit built from a roster template.

    `owned` is one-way: once hired a worker is never released. Paused workers
    keep their level but skip their tick.
    """

    template: WorkerTemplate
    owned: bool = False
    paused: bool = False
    level: int = 1
    last_idle_log_at: float | None = None
    config: WorkerConfig | None = None

    def __post_init__(self) -> None:
        super().__init__(self.template.id)
        self.config = self.config or CONFIG_MODEL.workers
        self.logger = create_agent_logger(self.unique_id, "Worker")

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def domain(self) -> str:
        return self.template.domain

    @property
    def role(self) -> str:
        return self.template.role

    @property
    def abilities(self) -> frozenset[str]:
        return frozenset(self.template.abilities)

    @property
    def drugs(self) -> tuple[Drug, ...]:
        return tuple(Drug(d) for d in self.template.drugs)

    @property
    def is_active(self) -> bool:
        return self.owned and not self.paused

    @property
    def hire_cost(self) -> float:
        return self.template.cost

    @property
    def at_max_level(self) -> bool:
        return self.level >= self.config.max_level

    def can(self, ability: str) -> bool:
        return ability in self.template.abilities

    def upgrade_cost(self) -> int:
        cfg = self.config
        return math.floor(self.template.cost * cfg.upgrade_cost_factor * cfg.upgrade_cost_scaling**self.level)

    def slots_per_tick(self) -> int:
        return max(1, self.template.slots_managed + self.level - 1)

    def tap_strength(self) -> float:
        return self.config.tap_boost_base + self.level

    # --- State changes (called by WorkerAutomation) ---
    def mark_hired(self) -> None:
        self.owned = True
        self.paused = False
        self.logger.log_state_change("available", "hired")

    def set_paused(self, paused: bool) -> None:
        old = "paused" if self.paused else "working"
        self.paused = paused
        new = "paused" if paused else "working"
        if old != new:
            self.logger.log_state_change(old, new)

    def level_up(self) -> None:
        self.level += 1
        self.logger.info(f"{self.name} reached level {self.level}")

    def step(self, current_step):
        # Workers act through WorkerAutomation.tick
        return None

    def snapshot(self) -> WorkerSnapshot:
        return WorkerSnapshot(
            id=self.unique_id,
            name=self.name,
            domain=self.domain,
            role=self.role,
            abilities=list(self.template.abilities),
            owned=self.owned,
            paused=self.paused,
            level=self.level,
            upgrade_cost=self.upgrade_cost(),
        )
