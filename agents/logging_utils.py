"""Structured logging helpers for ledger, worker and engine components."""

from __future__ import annotations

import json
from typing import Any, Literal

from logger import log

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class SimulationLogger:
    """
    Context-prefixed logger for simulation components.

    Every line is prefixed with the component name (and the agent id when
    given); optional structured payloads are written as a JSON line below it.
    """

    def __init__(self, component_name: str, agent_id: str | None = None):
        """
        Args:
            component_name: Name of the component (e.g. "CustomerLedger", "Worker")
            agent_id: Optional agent identifier for context
        """
        self.component_name = component_name
        self.agent_id = agent_id

    def _prefix(self) -> str:
        if self.agent_id:
            return f"[{self.component_name}:{self.agent_id}]"
        return f"[{self.component_name}]"

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._log("DEBUG", message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._log("INFO", message, data)

    def _log(self, level: LogLevel, message: str, data: dict[str, Any] | None = None) -> None:
        log(f"{self._prefix()} {message}", level=level)

        if data:
            try:
                data_str = json.dumps(data, default=str, sort_keys=True)
            except (TypeError, ValueError):
                data_str = "(unserializable data)"
            log(f"DATA: {data_str}", level=level)

    def log_event(self, event_type: str, data: dict[str, Any], *, level: LogLevel = "INFO") -> None:
        """
        Log a structured event.

        Args:
            event_type: Short event name, e.g. "prospect_added" or "worker_hired"
            data: Event payload
        """
        payload = {
            "component": self.component_name,
            "agent_id": self.agent_id,
            "event_type": event_type,
            "data": data,
        }
        self._log(level, f"EVENT: {event_type}", payload)


class AgentLogger(SimulationLogger):
    """Logger bound to one customer or worker."""

    def __init__(self, agent_id: str, agent_type: str):
        super().__init__(agent_type, agent_id)
        self.agent_type = agent_type

    def log_state_change(self, old_state: str, new_state: str, reason: str | None = None) -> None:
        """
        Log a lifecycle transition (customer status, worker pause, churn).

        Args:
            old_state: Previous state
            new_state: New state
            reason: Optional reason for change
        """
        data = {"old_state": old_state, "new_state": new_state, "reason": reason}
        self.info(f"State change: {old_state} -> {new_state}", data)

    def log_transaction(self, drug: str, grams: float, revenue: int, cash: float) -> None:
        """
        Log a completed sale.

        Args:
            drug: Drug sold
            grams: Grams moved
            revenue: Currency received
            cash: Resulting cash balance
        """
        data = {"drug": drug, "grams": round(grams, 2), "revenue": revenue, "cash": round(cash, 2)}
        self.debug(f"Sale: {grams:.1f}g {drug} for {revenue}", data)


class SystemLogger(SimulationLogger):
    """Logger for the engine and the aggregates themselves."""

    def __init__(self, system_name: str):
        super().__init__(system_name)

    def log_system_metric(self, metric_name: str, value: Any, unit: str | None = None) -> None:
        data = {"metric": metric_name, "value": value, "unit": unit}
        self.debug(f"System metric: {metric_name} = {value}{f' {unit}' if unit else ''}", data)


def create_agent_logger(agent_id: str, agent_type: str) -> AgentLogger:
    return AgentLogger(agent_id, agent_type)


def create_system_logger(system_name: str) -> SystemLogger:
    return SystemLogger(system_name)
