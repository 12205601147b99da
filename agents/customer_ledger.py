"""Customer Ledger: the population of customers and the request protocol.

The ledger owns every `Customer`. Sales are transactions that go through
`Inventory.commit_sale`, so stock and cash change together or not at all, and
only then are relationship effects applied.

Tick order (`CustomerLedger.tick`):
1. drop customers who blocked the player on an earlier tick
2. prospect acquisition
3. per customer: request expiry, scheduled demand, spontaneous demand,
   inactivity penalty
4. churn sweep (satisfaction below the churn threshold)

Scheduled demand takes precedence: a customer with any pending request is
skipped by both generators, and spontaneous demand runs after scheduled
demand, so a request created this tick suppresses it.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from agents.customer import (
    OfferReaction,
    addiction_gain,
    apply_expiry,
    apply_inactivity,
    apply_purchase,
    apply_sample,
    build_request,
    create_prospect,
    maybe_spontaneous_request,
    react_to_offer,
    request_message,
    roll_sample_conversion,
    schedule_next_request,
)
from agents.customer_agent import Customer, CustomerStatus, PurchaseRequest
from agents.logging_utils import create_system_logger
from config import CONFIG_MODEL, CustomerConfig
from economy.commodities import CommodityUnit, Drug
from economy.inventory import Inventory
from economy.pricing import PricingEngine
from economy.results import CommandResult, FailureReason, SaleResult, SampleResult
from economy.rng import RNG, random_between
from economy.snapshots import CustomerSnapshot

# Stages a customer will buy
SELLABLE_STAGES: dict[Drug, tuple[str, ...]] = {
    Drug.WEED: ("dried",),
    Drug.KOKS: ("powder",),
    Drug.METH: ("crystal",),
}


@dataclass(slots=True)
class LedgerTickReport:
    new_prospects: int = 0
    scheduled_requests: int = 0
    spontaneous_requests: int = 0
    expired_requests: int = 0
    inactivity_penalties: int = 0
    churned: int = 0
    blocked_removed: int = 0


class CustomerLedger:
    def __init__(
        self,
        inventory: Inventory,
        pricing: PricingEngine,
        rng: RNG,
        config: CustomerConfig | None = None,
        *,
        territory_multiplier: float = 1.0,
    ) -> None:
        self.config: CustomerConfig = config or CONFIG_MODEL.customers
        self.inventory = inventory
        self.pricing = pricing
        self.rng = rng
        self.territory_multiplier = territory_multiplier
        self._customers: dict[str, Customer] = {}
        self.next_prospect_at: float | None = None
        self.total_customer_revenue = 0
        self.grams_sold: dict[Drug, float] = {drug: 0.0 for drug in Drug}
        self.logger = create_system_logger("CustomerLedger")

    # --- Queries ---
    def __len__(self) -> int:
        return len(self._customers)

    def __iter__(self) -> Iterator[Customer]:
        return iter(tuple(self._customers.values()))

    def get(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)

    def customers(self, status: CustomerStatus | None = None) -> list[Customer]:
        return [c for c in self._customers.values() if status is None or c.status == status]

    def prospect_count(self) -> int:
        return sum(1 for c in self._customers.values() if c.is_prospect)

    def status_counts(self) -> dict[str, int]:
        counts = {str(status): 0 for status in CustomerStatus}
        for customer in self._customers.values():
            counts[str(customer.status)] += 1
        return counts

    def pending_requests(self) -> list[PurchaseRequest]:
        return [c.pending_request for c in self._customers.values() if c.pending_request is not None]

    def snapshots(self) -> list[CustomerSnapshot]:
        return [c.snapshot() for c in self._customers.values()]

    def dealer_buyers(self, drug: str) -> list[Customer]:
        """Converted customers a dealer may sell `drug` to."""
        return [
            c
            for c in self._customers.values()
            if not c.is_prospect and not c.blocked and c.accepts(drug)
        ]

    # --- Population ---
    def add_prospect(self, now: float) -> Customer | None:
        if len(self._customers) >= self.config.max_customers:
            return None
        names = [c.name for c in self._customers.values()]
        prospect = create_prospect(names, now, self.rng, self.config)
        self._customers[prospect.unique_id] = prospect
        self.logger.log_event(
            "prospect_added",
            {"customer_id": prospect.unique_id, "name": prospect.name, "personality": prospect.personality},
            level="DEBUG",
        )
        return prospect

    def add_customer(self, customer: Customer) -> bool:
        """Register an existing customer (restored sessions, scenario setup)."""
        if customer.unique_id in self._customers or len(self._customers) >= self.config.max_customers:
            return False
        self._customers[customer.unique_id] = customer
        return True

    def _remove(self, customer: Customer, reason: str) -> None:
        self._customers.pop(customer.unique_id, None)
        customer.logger.log_state_change(customer.status, "removed", reason)

    def _churn_if_unhappy(self, customer: Customer) -> bool:
        if customer.satisfaction < self.config.churn_satisfaction:
            self._remove(customer, "churn")
            return True
        return False

    def _lookup(self, customer_id: str) -> Customer | None:
        customer = self._customers.get(customer_id)
        if customer is None or customer.blocked:
            return None
        return customer

    # --- Commands ---
    def give_sample(self, customer_id: str, unit_id: str, now: float) -> SampleResult:
        customer = self._lookup(customer_id)
        if customer is None:
            return SampleResult.failed(FailureReason.NOT_FOUND, f"Unknown customer {customer_id}")
        if not customer.is_prospect:
            return SampleResult.failed(FailureReason.INELIGIBLE, "Samples are for prospects only")
        unit = self.inventory.find_unit(unit_id)
        if unit is None:
            return SampleResult.failed(FailureReason.NOT_FOUND, f"Unknown unit {unit_id}")
        if not customer.accepts(unit.drug):
            return SampleResult.failed(FailureReason.INELIGIBLE, f"{customer.name} does not take {unit.drug}")
        if self.inventory.consume_grams(unit_id, self.config.sample_grams) is None:
            return SampleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, "Not enough grams for a sample")

        converted = roll_sample_conversion(unit.quality_score, self.rng, self.config)
        apply_sample(customer, unit, converted, now, self.rng, self.config)
        message = f"{customer.name} became a customer" if converted else f"{customer.name} is still unsure"
        return SampleResult.ok(message, converted=converted)

    def sell(
        self,
        customer_id: str,
        unit_id: str,
        grams: float,
        now: float,
        *,
        price_per_gram: float | None = None,
    ) -> SaleResult:
        """Sell `grams` of a unit to a converted customer.

        The price comes from the pricing engine unless an agreed per-gram price
        is given (request fulfilment).
        """
        customer = self._lookup(customer_id)
        if customer is None:
            return SaleResult.failed(FailureReason.NOT_FOUND, f"Unknown customer {customer_id}")
        if customer.is_prospect:
            return SaleResult.failed(FailureReason.INELIGIBLE, "Prospects only take samples")
        unit = self.inventory.find_unit(unit_id)
        if unit is None:
            return SaleResult.failed(FailureReason.NOT_FOUND, f"Unknown unit {unit_id}")
        if unit.stage not in SELLABLE_STAGES[unit.drug]:
            return SaleResult.failed(FailureReason.INELIGIBLE, f"{unit.stage} {unit.drug} is not sellable")
        if not customer.accepts(unit.drug):
            return SaleResult.failed(FailureReason.INELIGIBLE, f"{customer.name} does not take {unit.drug}")
        if grams <= 0:
            return SaleResult.failed(FailureReason.INVALID_STATE, "grams must be positive")
        if not self.inventory.can_supply(unit_id, grams):
            return SaleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, "Not enough grams")

        revenue = self._revenue(customer, unit, grams, price_per_gram)
        quality_score = unit.quality_score
        drug = unit.drug
        if self.inventory.commit_sale(unit_id, grams, revenue) is None:
            return SaleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, "Sale could not be committed")

        apply_purchase(customer, drug, grams, revenue, quality_score, now, self.rng, self.config)
        self.total_customer_revenue += revenue
        self.grams_sold[drug] += grams
        customer.logger.log_transaction(drug, grams, revenue, self.inventory.cash)
        self._churn_if_unhappy(customer)
        return SaleResult.ok(
            f"Sold {grams:g}g {drug} to {customer.name}",
            customer_id=customer.unique_id,
            drug=str(drug),
            grams=grams,
            revenue=revenue,
        )

    def _revenue(
        self, customer: Customer, unit: CommodityUnit, grams: float, price_per_gram: float | None
    ) -> int:
        if price_per_gram is not None and price_per_gram > 0:
            return math.floor(grams * price_per_gram)
        return self.pricing.price(
            unit.drug,
            grams,
            unit.quality_score,
            customer.relationship(),
            self.territory_multiplier,
            stage=unit.stage,
        )

    def create_request(self, customer_id: str, drug: str, now: float) -> CommandResult:
        customer = self._lookup(customer_id)
        if customer is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown customer {customer_id}")
        if customer.pending_request is not None:
            return CommandResult.failed(FailureReason.INVALID_STATE, "A request is already pending")
        if customer.is_prospect or not customer.accepts(drug):
            return CommandResult.failed(FailureReason.INELIGIBLE, f"{customer.name} is not interested")
        self._open_request(customer, build_request(customer, Drug(drug), now, self.pricing, self.rng), now)
        return CommandResult.ok(f"{customer.name} wants {drug}")

    def _open_request(self, customer: Customer, request: PurchaseRequest, now: float) -> None:
        customer.pending_request = request
        actions = ("accept", "ignore") if request.spontaneous else ("accept",)
        kind = "request" if request.spontaneous else "purchase-request"
        customer.add_message(kind, request_message(request, self.rng), now, actions=actions)

    def fulfill_request(self, customer_id: str, now: float, unit_id: str | None = None) -> SaleResult:
        customer = self._lookup(customer_id)
        if customer is None:
            return SaleResult.failed(FailureReason.NOT_FOUND, f"Unknown customer {customer_id}")
        request = customer.pending_request
        if request is None:
            return SaleResult.failed(FailureReason.INVALID_STATE, "No open request")

        stages = SELLABLE_STAGES[request.drug]
        if unit_id is not None:
            unit = self.inventory.find_unit(unit_id)
            if unit is None or unit.drug != request.drug or unit.stage not in stages:
                return SaleResult.failed(FailureReason.NOT_FOUND, f"No matching unit {unit_id}")
        else:
            unit = self.inventory.best_unit(request.drug, min_grams=request.grams_requested, stages=stages)
        if unit is None or unit.grams + 1e-9 < request.grams_requested:
            return SaleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"Not enough {request.drug} in stock")

        result = self.sell(
            customer_id, unit.id, request.grams_requested, now, price_per_gram=request.price_per_gram
        )
        if not result.success:
            return result
        customer.close_request()
        customer.next_request_at = schedule_next_request(customer, now, self.rng)
        self.logger.info(
            f"Request fulfilled: {customer.name} bought {request.grams_requested}g {request.drug} "
            f"for {result.revenue}"
        )
        return result

    def ignore_request(self, customer_id: str, now: float) -> CommandResult:
        customer = self._lookup(customer_id)
        if customer is None:
            return CommandResult.failed(FailureReason.NOT_FOUND, f"Unknown customer {customer_id}")
        request = customer.pending_request
        if request is None:
            return CommandResult.failed(FailureReason.INVALID_STATE, "No open request")
        if not request.spontaneous:
            return CommandResult.failed(FailureReason.INELIGIBLE, "Scheduled requests run until they expire")
        customer.close_request()
        customer.add_message("ignore", "Busy right now.", now, sender="player")
        return CommandResult.ok(f"Ignored {customer.name}")

    def offer_drug(
        self,
        customer_id: str,
        drug: str,
        grams: float,
        now: float,
        unit_id: str | None = None,
    ) -> SaleResult:
        customer = self._lookup(customer_id)
        if customer is None:
            return SaleResult.failed(FailureReason.NOT_FOUND, f"Unknown customer {customer_id}")
        if customer.is_prospect:
            return SaleResult.failed(FailureReason.INELIGIBLE, "Convert the prospect first")

        key = Drug(drug)
        reaction = react_to_offer(customer, key, now, self.rng, self.config)
        if not reaction.accepted:
            name = customer.name
            if reaction is OfferReaction.BLOCKED:
                self.logger.info(f"{name} blocked the player after an offer of {drug}")
            elif self._churn_if_unhappy(customer):
                return SaleResult.failed(FailureReason.INELIGIBLE, f"{name} rejected {drug} and left")
            return SaleResult.failed(FailureReason.INELIGIBLE, f"{name} turned down {drug} ({reaction})")

        if unit_id is None:
            unit = self.inventory.best_unit(key, min_grams=grams, stages=SELLABLE_STAGES[key])
            if unit is None:
                return SaleResult.failed(FailureReason.INSUFFICIENT_RESOURCE, f"No {drug} in stock")
            unit_id = unit.id
        return self.sell(customer_id, unit_id, grams, now)

    def record_dealer_sale(self, customer_id: str, drug: str, grams: float, revenue: int, now: float) -> None:
        """Book a dealer deal on the buyer's record (stock and cash are already settled)."""
        customer = self._customers.get(customer_id)
        if customer is None:
            return
        customer.total_purchases += 1
        customer.total_spent += int(revenue)
        customer.last_purchase_at = now
        gain = apply_dealer_addiction(customer, Drug(drug), self.rng, self.config)
        customer.logger.debug(f"Dealer deal {grams:g}g {drug} (+{gain:.1f} addiction)")

    # --- Tick ---
    def tick(self, now: float) -> LedgerTickReport:
        report = LedgerTickReport()

        for customer in [c for c in self._customers.values() if c.blocked]:
            self._remove(customer, "blocked")
            report.blocked_removed += 1

        if self._acquire_prospect(now):
            report.new_prospects += 1

        for customer in list(self._customers.values()):
            if customer.is_prospect:
                continue
            if customer.next_request_at is None:
                customer.next_request_at = schedule_next_request(customer, now, self.rng)

            if apply_expiry(customer, now, self.rng, self.config) is not None:
                report.expired_requests += 1

            if self._scheduled_demand(customer, now):
                report.scheduled_requests += 1

            spontaneous = maybe_spontaneous_request(customer, now, self.pricing, self.rng, self.config)
            if spontaneous is not None:
                self._open_request(customer, spontaneous, now)
                report.spontaneous_requests += 1

            if apply_inactivity(customer, now, self.config):
                report.inactivity_penalties += 1

        for customer in list(self._customers.values()):
            if self._churn_if_unhappy(customer):
                report.churned += 1

        if report.new_prospects or report.expired_requests or report.churned or report.blocked_removed:
            self.logger.log_event("ledger_tick", {"now": now, **_report_dict(report)}, level="DEBUG")
        return report

    def _acquire_prospect(self, now: float) -> bool:
        window = self.config.prospect_interval_minutes
        if self.next_prospect_at is None:
            self.next_prospect_at = float(int(now + random_between(window.low, window.high, self.rng)))
        if now < self.next_prospect_at:
            return False
        if self.prospect_count() >= self.config.prospect_limit or len(self) >= self.config.max_customers:
            return False
        self.next_prospect_at = float(int(now + random_between(window.low, window.high, self.rng)))
        return self.add_prospect(now) is not None

    def _scheduled_demand(self, customer: Customer, now: float) -> bool:
        if customer.pending_request is not None or customer.next_request_at is None:
            return False
        if now < customer.next_request_at:
            return False
        if customer.last_purchase_at is not None:
            if now - customer.last_purchase_at < self.config.request_cooldown_minutes:
                return False

        drug = customer.preferred_drug()
        if not customer.accepts(drug):
            customer.next_request_at = schedule_next_request(customer, now, self.rng)
            return False
        self._open_request(customer, build_request(customer, drug, now, self.pricing, self.rng), now)
        return True


def apply_dealer_addiction(customer: Customer, drug: Drug, rng: RNG, config: CustomerConfig) -> float:
    gain = addiction_gain(customer, drug, rng, config)
    customer.set_addiction(drug, customer.addiction_for(drug) + gain)
    return gain


def _report_dict(report: LedgerTickReport) -> dict[str, int]:
    return {
        "new_prospects": report.new_prospects,
        "scheduled_requests": report.scheduled_requests,
        "spontaneous_requests": report.spontaneous_requests,
        "expired_requests": report.expired_requests,
        "inactivity_penalties": report.inactivity_penalties,
        "churned": report.churned,
        "blocked_removed": report.blocked_removed,
    }
