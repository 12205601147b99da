"""Result types returned by every command of the economy core.

Expected failures (locked slot, missing stock, unknown id, a customer who
refuses) are data, not exceptions: callers inspect `success` and `reason`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

if TYPE_CHECKING:
    from .commodities import CommodityUnit, GeneticEntity


class FailureReason(StrEnum):
    INVALID_STATE = "invalid_state"
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    NOT_FOUND = "not_found"
    INELIGIBLE = "ineligible"


@dataclass(slots=True)
class CommandResult:
    success: bool = True
    reason: FailureReason | None = None
    message: str = ""

    @classmethod
    def ok(cls, message: str = "", **fields: Any) -> Self:
        return cls(success=True, message=message, **fields)

    @classmethod
    def failed(cls, reason: FailureReason, message: str = "") -> Self:
        return cls(success=False, reason=reason, message=message)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.reason is not None:
            payload["reason"] = self.reason.value
        return payload


@dataclass(slots=True)
class HarvestResult(CommandResult):
    unit: CommodityUnit | None = None
    seed_drop: GeneticEntity | None = None


@dataclass(slots=True)
class ProcessingResult(CommandResult):
    unit: CommodityUnit | None = None


@dataclass(slots=True)
class SaleResult(CommandResult):
    customer_id: str | None = None
    drug: str | None = None
    grams: float = 0.0
    revenue: int = 0


@dataclass(slots=True)
class SampleResult(CommandResult):
    converted: bool = False


@dataclass(slots=True)
class PurchaseResult(CommandResult):
    cost: float = 0.0
