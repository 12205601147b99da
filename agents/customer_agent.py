from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from agents.base_agent import BaseAgent
from agents.logging_utils import create_agent_logger
from config import CONFIG_MODEL, CustomerConfig
from economy.commodities import Drug
from economy.ids import next_id
from economy.pricing import Relationship, Urgency
from economy.rng import clamp
from economy.snapshots import CustomerSnapshot, RequestSnapshot

DRUG_ORDER: tuple[Drug, ...] = (Drug.WEED, Drug.KOKS, Drug.METH)


class CustomerStatus(StrEnum):
    PROSPECT = "prospect"
    ACTIVE = "active"
    LOYAL = "loyal"
    VIP = "vip"


class Personality(StrEnum):
    CASUAL = "casual"
    ADVENTUROUS = "adventurous"
    PARANOID = "paranoid"
    HARDCORE = "hardcore"


def status_for_loyalty(loyalty: float) -> CustomerStatus:
    if loyalty >= 81:
        return CustomerStatus.VIP
    if loyalty >= 41:
        return CustomerStatus.LOYAL
    if loyalty >= 1:
        return CustomerStatus.ACTIVE
    return CustomerStatus.PROSPECT


@dataclass(frozen=True, slots=True)
class CustomerMessage:
    id: str
    timestamp: float
    sender: Literal["customer", "player"]
    kind: str
    text: str
    actions: tuple[str, ...] = ()


@dataclass(slots=True)
class PurchaseRequest:
    """An open order. Scheduled requests carry a deadline, spontaneous ones do not."""

    id: str
    customer_id: str
    drug: Drug
    grams_requested: float
    max_price: int
    urgency: Urgency
    created_at: float
    expires_at: float | None = None
    spontaneous: bool = False

    @property
    def price_per_gram(self) -> float:
        return self.max_price / self.grams_requested if self.grams_requested > 0 else 0.0

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def snapshot(self) -> RequestSnapshot:
        return RequestSnapshot(
            id=self.id,
            drug=str(self.drug),
            grams_requested=self.grams_requested,
            max_price=self.max_price,
            urgency=str(self.urgency),
            created_at=self.created_at,
            expires_at=self.expires_at,
            spontaneous=self.spontaneous,
        )


@dataclass(eq=False)
class Customer(BaseAgent):
    """A buyer in the ledger.

    `status` is derived from loyalty. Prospects stay at loyalty 0 until a
    sample converts them; afterwards loyalty never drops below 1.
    """

    unique_id: str
    name: str
    personality: Personality
    spending_power: float
    satisfaction: float
    loyalty: float = 0.0
    converted: bool = False
    blocked: bool = False
    drug_preferences: dict[Drug, bool] = field(default_factory=dict)
    addiction: dict[Drug, float] = field(default_factory=dict)
    pending_request: PurchaseRequest | None = None
    next_request_at: float | None = None
    last_purchase_at: float | None = None
    last_inactivity_at: float | None = None
    total_purchases: int = 0
    total_spent: int = 0
    preferred_strain: str | None = None
    max_messages: int = 50
    config: CustomerConfig | None = None

    def __post_init__(self) -> None:
        super().__init__(self.unique_id)
        self.config = self.config or CONFIG_MODEL.customers
        self.logger = create_agent_logger(self.unique_id, "Customer")
        self.spending_power = clamp(self.spending_power)
        self.satisfaction = clamp(self.satisfaction)
        self.loyalty = clamp(self.loyalty) if self.converted else 0.0
        for drug in DRUG_ORDER:
            self.drug_preferences.setdefault(drug, drug is Drug.WEED)
            self.addiction[drug] = clamp(self.addiction.get(drug, 0.0))
        self.messages: deque[CustomerMessage] = deque(maxlen=self.max_messages)
        self.request_history: deque[PurchaseRequest] = deque(maxlen=20)

    # --- Derived state ---
    @property
    def status(self) -> CustomerStatus:
        if not self.converted:
            return CustomerStatus.PROSPECT
        return status_for_loyalty(max(1.0, self.loyalty))

    @property
    def is_prospect(self) -> bool:
        return not self.converted

    @property
    def max_addiction(self) -> float:
        return max(self.addiction.values(), default=0.0)

    def addiction_for(self, drug: str) -> float:
        return self.addiction.get(Drug(drug), 0.0)

    def accepts(self, drug: str) -> bool:
        return self.drug_preferences.get(Drug(drug), False)

    def relationship(self) -> Relationship:
        return Relationship(loyalty=self.loyalty, spending_power=self.spending_power)

    def preferred_drug(self) -> Drug:
        """Accepted drug with the highest addiction; weed when nothing else scores."""
        candidates = [drug for drug in DRUG_ORDER if self.accepts(drug)]
        if not candidates:
            return Drug.WEED
        best = candidates[0]
        for drug in candidates[1:]:
            if self.addiction[drug] > self.addiction[best]:
                best = drug
        return best

    # --- Mutations (always clamped) ---
    def convert(self) -> None:
        old = self.status
        self.converted = True
        self.loyalty = max(1.0, self.loyalty)
        self.logger.log_state_change(old, self.status, "sample")

    def set_loyalty(self, value: float, reason: str | None = None) -> None:
        old = self.status
        self.loyalty = max(1.0, clamp(value)) if self.converted else 0.0
        if self.status != old:
            self.logger.log_state_change(old, self.status, reason)

    def adjust_loyalty(self, delta: float, reason: str | None = None) -> None:
        self.set_loyalty(self.loyalty + delta, reason)

    def adjust_satisfaction(self, delta: float) -> None:
        self.satisfaction = clamp(self.satisfaction + delta)

    def set_addiction(self, drug: str, value: float) -> None:
        self.addiction[Drug(drug)] = clamp(value)

    def unlock_drug(self, drug: str, min_addiction: float = 0.0) -> None:
        key = Drug(drug)
        self.drug_preferences[key] = True
        self.addiction[key] = clamp(max(min_addiction, self.addiction[key]))

    def add_message(
        self,
        kind: str,
        text: str,
        now: float,
        *,
        sender: Literal["customer", "player"] = "customer",
        actions: tuple[str, ...] = (),
    ) -> CustomerMessage:
        message = CustomerMessage(
            id=next_id("msg"), timestamp=now, sender=sender, kind=kind, text=text, actions=actions
        )
        self.messages.append(message)
        return message

    def close_request(self) -> PurchaseRequest | None:
        request = self.pending_request
        if request is not None:
            self.request_history.append(request)
            self.pending_request = None
        return request

    def step(self, current_step):
        # Customers are driven by CustomerLedger.tick
        return None

    def snapshot(self) -> CustomerSnapshot:
        return CustomerSnapshot(
            id=self.unique_id,
            name=self.name,
            status=str(self.status),
            personality=str(self.personality),
            loyalty=self.loyalty,
            satisfaction=self.satisfaction,
            spending_power=self.spending_power,
            drug_preferences={str(k): v for k, v in self.drug_preferences.items()},
            addiction={str(k): round(v, 2) for k, v in self.addiction.items()},
            pending_request=self.pending_request.snapshot() if self.pending_request else None,
            next_request_at=self.next_request_at,
        )
