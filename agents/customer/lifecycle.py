"""Customer lifecycle: prospect creation, sample conversion, purchases, inactivity.

This module handles:
- Prospect creation (personality, starting preferences, opening messages)
- Sample conversion (probability grows with sample quality)
- Applying a completed purchase to the customer (loyalty, satisfaction, addiction)
- The inactivity penalty for customers who stopped buying
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from agents.customer_agent import Customer, Personality
from config import CONFIG_MODEL, CustomerConfig
from economy.commodities import Drug
from economy.ids import next_id
from economy.rng import RNG, chance, clamp, pick, random_between, weighted_choice

from .requests import schedule_next_request

if TYPE_CHECKING:
    from economy.commodities import CommodityUnit

CUSTOMER_NAMES: tuple[str, ...] = (
    "Marcus", "Sarah", "Kevin", "Lisa", "Jonas", "Eren", "Mila", "Noah", "Chantal", "Yasmin",
    "Timo", "Ali", "Murat", "Deniz", "Omar", "Sven", "Luca", "Maya", "Sophia", "Emre",
    "Jan", "Paul", "Lea", "Lena", "Aylin", "Nico", "Nadine", "Finn", "Mats", "Karim",
)

PERSONALITY_OPENERS: dict[Personality, str] = {
    Personality.CASUAL: "Just looking for some chill vibes.",
    Personality.ADVENTUROUS: "Always down to try something new.",
    Personality.PARANOID: "Keep it lowkey, yeah?",
    Personality.HARDCORE: "Got anything strong?",
}

SAMPLE_LIKED = (
    "That hits! Let me know when you have more.",
    "Okay wow, that is strong. I need a refill.",
)
SAMPLE_DISLIKED = (
    "Meh, had better.",
    "Not bad, nothing special though.",
)

# Addiction gained per purchase, before the per-drug factor: (base, random span)
ADDICTION_GAIN: dict[Personality, tuple[float, float]] = {
    Personality.HARDCORE: (5.0, 3.0),
    Personality.ADVENTUROUS: (3.0, 2.0),
    Personality.CASUAL: (2.0, 2.0),
    Personality.PARANOID: (2.0, 2.0),
}

ADDICTION_MESSAGES: tuple[tuple[float, str, str], ...] = (
    (80.0, "addiction-desperate", "I NEED more. Like... I really need it. Please."),
    (50.0, "addiction-medium", "That hit the spot. When can I get more?"),
    (20.0, "addiction-light", "Damn that was good. I'll be back for more."),
)


def pick_personality(rng: RNG, config: CustomerConfig | None = None) -> Personality:
    cfg = config or CONFIG_MODEL.customers
    names = list(cfg.personality_weights)
    return Personality(weighted_choice(names, [cfg.personality_weights[n] for n in names], rng))


def initial_preferences(personality: Personality) -> dict[Drug, bool]:
    hardcore = personality is Personality.HARDCORE
    return {Drug.WEED: True, Drug.KOKS: hardcore, Drug.METH: hardcore}


def create_prospect(
    existing_names: Sequence[str],
    now: float,
    rng: RNG,
    config: CustomerConfig | None = None,
) -> Customer:
    cfg = config or CONFIG_MODEL.customers
    personality = pick_personality(rng, cfg)
    available = [name for name in CUSTOMER_NAMES if name not in existing_names]
    unique_id = next_id("customer")
    name = pick(available, rng) if available else f"Customer #{unique_id.rsplit('_', 1)[-1]}"

    customer = Customer(
        unique_id=unique_id,
        name=name,
        personality=personality,
        spending_power=int(random_between(cfg.spending_power_range.low, cfg.spending_power_range.high, rng)),
        satisfaction=int(random_between(cfg.satisfaction_range.low, cfg.satisfaction_range.high, rng)),
        drug_preferences=initial_preferences(personality),
        max_messages=cfg.max_messages,
        config=cfg,
    )
    customer.add_message("sample-request", f"Heard you got good stuff. Can I get a sample? - {name}", now)
    customer.add_message("casual", PERSONALITY_OPENERS[personality], now)
    return customer


def sample_conversion_chance(quality_score: float, config: CustomerConfig | None = None) -> float:
    cfg = config or CONFIG_MODEL.customers
    return cfg.sample_conversion_base + clamp(quality_score) / 100.0 * cfg.sample_conversion_span


def roll_sample_conversion(quality_score: float, rng: RNG, config: CustomerConfig | None = None) -> bool:
    return chance(sample_conversion_chance(quality_score, config), rng)


def apply_sample(
    customer: Customer,
    unit: CommodityUnit,
    converted: bool,
    now: float,
    rng: RNG,
    config: CustomerConfig | None = None,
) -> None:
    """Record a sample; a successful one converts the prospect to active."""
    cfg = config or CONFIG_MODEL.customers
    quality = unit.quality_score
    customer.add_message(
        "sample-request",
        f"Sample sent: {unit.strain_name} ({quality:.0f}% Q).",
        now,
        sender="player",
    )
    customer.add_message("sample-response", pick(SAMPLE_LIKED if converted else SAMPLE_DISLIKED, rng), now)
    if not converted:
        return

    customer.convert()
    customer.satisfaction = clamp(50 + quality / 2)
    if quality > cfg.sample_preference_quality:
        customer.preferred_strain = unit.strain_name
    customer.next_request_at = schedule_next_request(customer, now, rng)


def addiction_gain(customer: Customer, drug: Drug, rng: RNG, config: CustomerConfig | None = None) -> float:
    cfg = config or CONFIG_MODEL.customers
    base, span = ADDICTION_GAIN[customer.personality]
    return (base + rng.random() * span) * cfg.addiction_factors.get(str(drug), 1.0)


def apply_purchase(
    customer: Customer,
    drug: Drug,
    grams: float,
    revenue: int,
    quality_score: float,
    now: float,
    rng: RNG,
    config: CustomerConfig | None = None,
) -> None:
    """Relationship effects of a completed sale to `customer`."""
    cfg = config or CONFIG_MODEL.customers
    if quality_score > cfg.sale_good_quality:
        customer.adjust_satisfaction(cfg.sale_satisfaction_gain)
        reaction = ("praise", "That was premium. You're the plug.")
    elif quality_score < cfg.sale_poor_quality:
        customer.adjust_satisfaction(-cfg.sale_satisfaction_loss)
        reaction = ("complaint", "Quality was weak. Do better.")
    else:
        reaction = ("purchase", "Solid as always. I'm in.")

    customer.adjust_loyalty(cfg.sale_loyalty_gain, reason="purchase")
    old_addiction = customer.addiction_for(drug)
    customer.set_addiction(drug, old_addiction + addiction_gain(customer, drug, rng, cfg))
    customer.total_purchases += 1
    customer.total_spent += int(revenue)
    customer.last_purchase_at = now
    customer.next_request_at = schedule_next_request(customer, now, rng)

    customer.add_message("purchase", f"Sold: {grams:.1f}g {drug} for {revenue}", now, sender="player")
    customer.add_message(*reaction, now)
    new_addiction = customer.addiction_for(drug)
    for threshold, kind, text in ADDICTION_MESSAGES:
        if new_addiction > threshold >= old_addiction:
            customer.add_message(kind, text, now)
            break


def apply_inactivity(customer: Customer, now: float, config: CustomerConfig | None = None) -> bool:
    """Loyalty penalty for converted customers who have not bought for a while.

    The penalty repeats once per inactivity window. Returns True when applied.
    """
    cfg = config or CONFIG_MODEL.customers
    if customer.is_prospect or customer.last_purchase_at is None:
        return False
    if now - customer.last_purchase_at < cfg.inactivity_minutes:
        return False
    if customer.last_inactivity_at is not None and now - customer.last_inactivity_at < cfg.inactivity_minutes:
        return False

    customer.adjust_loyalty(-cfg.inactivity_loyalty_penalty, reason="inactivity")
    customer.last_inactivity_at = now
    customer.add_message("casual", "Yo, where you been? I need a refill!", now)
    return True
