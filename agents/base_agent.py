from __future__ import annotations

from logger import log


class BaseAgent:
    def __init__(self, unique_id: str):
        self.unique_id = unique_id

    def step(self, current_step):
        # Default behaviour; subclasses override with their tick logic
        log(f"Agent {self.unique_id} performs step {current_step}.", level="DEBUG")
