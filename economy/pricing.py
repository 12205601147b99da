"""Pricing engine.

One parametrized formula serves every sale path (customer sales, request
fulfilment, dealer deals, warehouse deals, direct market sales):

    price_per_gram = base_price(drug)
                     × stage_factor(stage)
                     × quality_multiplier(quality_score)
                     × loyalty_multiplier(loyalty)
                     × spending_multiplier(spending_power)
                     × external_multiplier

capped at the drug's optional per-gram ceiling, and the total is floored to an
integer amount. All functions here are deterministic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

from config import CONFIG_MODEL, DrugPricingConfig, PricingConfig

from .rng import clamp


class Urgency(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    DESPERATE = "desperate"


@dataclass(frozen=True, slots=True)
class Relationship:
    """The buyer-side inputs of the price formula (both on a 0-100 scale)."""

    loyalty: float = 0.0
    spending_power: float = 50.0


ANONYMOUS_BUYER = Relationship(loyalty=0.0, spending_power=50.0)


class PricingEngine:
    def __init__(self, config: PricingConfig | None = None) -> None:
        self.config: PricingConfig = config or CONFIG_MODEL.pricing

    def pricing_for(self, drug: str) -> DrugPricingConfig:
        try:
            return self.config.drugs[str(drug)]
        except KeyError:
            msg = f"No pricing configured for drug {drug!r}"
            raise KeyError(msg) from None

    # --- Multipliers ---
    def quality_multiplier(self, drug: str, quality_score: float) -> float:
        p = self.pricing_for(drug)
        return p.quality_floor + clamp(quality_score) / 100.0 * p.quality_span

    def loyalty_multiplier(self, drug: str, loyalty: float) -> float:
        p = self.pricing_for(drug)
        return p.loyalty_floor + clamp(loyalty) / 100.0 * p.loyalty_span

    def spending_multiplier(self, drug: str, spending_power: float) -> float:
        p = self.pricing_for(drug)
        return p.spending_floor + clamp(spending_power) / 100.0 * p.spending_span

    def stage_factor(self, drug: str, stage: str | None) -> float:
        if stage is None:
            return 1.0
        return self.pricing_for(drug).stage_factors.get(stage, 1.0)

    def _capped(self, drug: str, per_gram: float) -> float:
        ceiling = self.pricing_for(drug).price_ceiling
        if ceiling is not None:
            per_gram = min(per_gram, ceiling)
        return max(0.0, per_gram)

    # --- Prices ---
    def price_per_gram(
        self,
        drug: str,
        quality_score: float,
        relationship: Relationship = ANONYMOUS_BUYER,
        external_multiplier: float = 1.0,
        *,
        stage: str | None = None,
    ) -> float:
        if external_multiplier < 0:
            raise ValueError("external_multiplier must be >= 0")
        per_gram = (
            self.pricing_for(drug).base_price
            * self.stage_factor(drug, stage)
            * self.quality_multiplier(drug, quality_score)
            * self.loyalty_multiplier(drug, relationship.loyalty)
            * self.spending_multiplier(drug, relationship.spending_power)
            * external_multiplier
        )
        return self._capped(drug, per_gram)

    def price(
        self,
        drug: str,
        grams: float,
        quality_score: float,
        relationship: Relationship = ANONYMOUS_BUYER,
        external_multiplier: float = 1.0,
        *,
        stage: str | None = None,
    ) -> int:
        if grams <= 0:
            return 0
        per_gram = self.price_per_gram(
            drug, quality_score, relationship, external_multiplier, stage=stage
        )
        return math.floor(grams * per_gram)

    def urgency_multiplier(self, urgency: Urgency | str) -> float:
        return self.config.urgency_multipliers.get(str(urgency), 1.0)

    def max_request_price(
        self,
        drug: str,
        grams: float,
        relationship: Relationship,
        urgency: Urgency | str,
    ) -> int:
        """What a customer is willing to pay for a request, before seeing the product."""
        if grams <= 0:
            return 0
        p = self.pricing_for(drug)
        loyalty_mult = (
            self.config.request_loyalty_floor
            + clamp(relationship.loyalty) / 100.0 * self.config.request_loyalty_span
        )
        per_gram = (
            p.base_price
            * self.urgency_multiplier(urgency)
            * loyalty_mult
            * self.spending_multiplier(drug, relationship.spending_power)
        )
        return math.floor(grams * self._capped(drug, per_gram))


def price(
    drug: str,
    grams: float,
    quality_score: float,
    relationship: Relationship = ANONYMOUS_BUYER,
    external_multiplier: float = 1.0,
    *,
    stage: str | None = None,
    config: PricingConfig | None = None,
) -> int:
    """Module-level shortcut for `PricingEngine(config).price(...)`."""
    return PricingEngine(config).price(
        drug, grams, quality_score, relationship, external_multiplier, stage=stage
    )
