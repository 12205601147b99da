"""Agent protocols for the seams between the aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from economy.pricing import Relationship


@runtime_checkable
class HasUniqueID(Protocol):
    """Protocol for agents with unique identifiers."""

    unique_id: str


@runtime_checkable
class BuyerProtocol(HasUniqueID, Protocol):
    """Protocol for agents a dealer can sell to."""

    name: str
    spending_power: float

    def addiction_for(self, drug: str) -> float: ...

    def relationship(self) -> Relationship: ...


@runtime_checkable
class SalesLedger(Protocol):
    """What dealers need from the customer ledger."""

    def dealer_buyers(self, drug: str) -> list[BuyerProtocol]: ...

    def record_dealer_sale(
        self, customer_id: str, drug: str, grams: float, revenue: int, now: float
    ) -> None: ...

