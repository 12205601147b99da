"""Purchase request protocol: scheduling, sizing, spontaneous demand and expiry.

All deadlines are plain game-minute values compared with the clock on each
ledger tick; nothing here schedules callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass

from agents.customer_agent import Customer, PurchaseRequest
from config import CONFIG_MODEL, CustomerConfig
from economy.commodities import Drug
from economy.ids import next_id
from economy.pricing import PricingEngine, Urgency
from economy.rng import RNG, chance, pick, random_between


@dataclass(frozen=True, slots=True)
class RequestShape:
    grams_low: float
    grams_high: float
    expiry_minutes: float


REQUEST_SHAPES: dict[Urgency, RequestShape] = {
    Urgency.DESPERATE: RequestShape(10.0, 50.0, 5.0),
    Urgency.HIGH: RequestShape(5.0, 25.0, 15.0),
    Urgency.MEDIUM: RequestShape(2.0, 12.0, 60.0),
    Urgency.LOW: RequestShape(1.0, 6.0, 180.0),
}

# (minimum max-addiction, per-request chance) for spontaneous demand, highest first
SPONTANEOUS_CHANCES: tuple[tuple[float, float], ...] = ((80.0, 0.3), (50.0, 0.15), (20.0, 0.05))
SPONTANEOUS_BASE_CHANCE = 0.01

# Spontaneous order sizes by addiction: (minimum addiction, grams low, grams span)
SPONTANEOUS_SIZES: tuple[tuple[float, float, float], ...] = ((80.0, 10.0, 30.0), (50.0, 5.0, 15.0))
SPONTANEOUS_DEFAULT_SIZE = (1.0, 10.0)

REQUEST_MESSAGES: dict[Urgency, tuple[str, ...]] = {
    Urgency.LOW: ("Yo, got any {drug}? No rush.", "Thinking about picking up some {drug}."),
    Urgency.MEDIUM: ("Need to grab some {drug} soon. You got?", "Running low on {drug}. Hook me up?"),
    Urgency.HIGH: ("Yo I NEED {drug} asap!", "{drug}. Today. Can you?"),
    Urgency.DESPERATE: ("WHERE ARE YOU I NEED {drug} NOW", "PLEASE I need {drug} right now!!!"),
}

SPONTANEOUS_MESSAGES: tuple[str, ...] = (
    "Feeling like {grams}g {drug} right now. You around?",
    "Need {grams}g {drug} asap. You free?",
    "Can you do {grams}g {drug} today?",
)

EXPIRY_MESSAGES: dict[Urgency, tuple[str, str]] = {
    Urgency.DESPERATE: ("timeout-angry", "Forget it. Found someone else. Don't hit me up."),
    Urgency.HIGH: ("timeout", "Yo where were you? Had to go elsewhere..."),
    Urgency.MEDIUM: ("timeout", "Nvm, got sorted elsewhere."),
    Urgency.LOW: ("timeout", "Nvm, got sorted elsewhere."),
}


def request_interval(customer: Customer) -> tuple[float, float]:
    """Minutes until the next scheduled request; addiction shortens it."""
    addiction = customer.max_addiction
    if addiction > 80:
        return 60.0, 120.0
    if addiction > 50:
        return 3 * 60.0, 6 * 60.0
    if addiction > 20:
        return 6 * 60.0, 12 * 60.0
    match customer.personality:
        case "hardcore":
            return 12 * 60.0, 24 * 60.0
        case "paranoid":
            return 48 * 60.0, 96 * 60.0
        case _:
            return 24 * 60.0, 48 * 60.0


def schedule_next_request(customer: Customer, now: float, rng: RNG) -> float:
    low, high = request_interval(customer)
    return float(int(now + random_between(low, high, rng)))


def urgency_for(customer: Customer, drug: Drug) -> Urgency:
    addiction = customer.addiction_for(drug)
    if addiction > 80:
        return Urgency.DESPERATE
    if addiction > 50:
        return Urgency.HIGH
    if customer.loyalty > 60:
        return Urgency.MEDIUM
    return Urgency.LOW


def build_request(
    customer: Customer,
    drug: Drug,
    now: float,
    pricing: PricingEngine,
    rng: RNG,
) -> PurchaseRequest:
    """A scheduled request with a deadline scaled by urgency."""
    urgency = urgency_for(customer, drug)
    shape = REQUEST_SHAPES[urgency]
    grams = round(random_between(shape.grams_low, shape.grams_high, rng), 1)
    return PurchaseRequest(
        id=next_id("request"),
        customer_id=customer.unique_id,
        drug=drug,
        grams_requested=grams,
        max_price=pricing.max_request_price(drug, grams, customer.relationship(), urgency),
        urgency=urgency,
        created_at=now,
        expires_at=now + shape.expiry_minutes,
    )


def request_message(request: PurchaseRequest, rng: RNG) -> str:
    if request.spontaneous:
        template = pick(SPONTANEOUS_MESSAGES, rng)
    else:
        template = pick(REQUEST_MESSAGES[request.urgency], rng)
    grams = f"{request.grams_requested:g}"
    return template.format(drug=request.drug, grams=grams)


def spontaneous_chance(customer: Customer, config: CustomerConfig | None = None) -> float:
    """Per-tick probability of an informal request."""
    cfg = config or CONFIG_MODEL.customers
    addiction = customer.max_addiction
    base = next((p for threshold, p in SPONTANEOUS_CHANCES if addiction > threshold), SPONTANEOUS_BASE_CHANCE)
    return base / cfg.spontaneous_tick_divisor


def maybe_spontaneous_request(
    customer: Customer,
    now: float,
    pricing: PricingEngine,
    rng: RNG,
    config: CustomerConfig | None = None,
) -> PurchaseRequest | None:
    """Roll for spontaneous demand. The request has no deadline."""
    if customer.is_prospect or customer.pending_request is not None:
        return None
    if not chance(spontaneous_chance(customer, config), rng):
        return None

    drug = customer.preferred_drug()
    addiction = customer.addiction_for(drug)
    low, span = next(
        ((lo, sp) for threshold, lo, sp in SPONTANEOUS_SIZES if addiction > threshold),
        SPONTANEOUS_DEFAULT_SIZE,
    )
    grams = float(int(low + rng.random() * span))
    urgency = urgency_for(customer, drug)
    return PurchaseRequest(
        id=next_id("request"),
        customer_id=customer.unique_id,
        drug=drug,
        grams_requested=grams,
        max_price=pricing.max_request_price(drug, grams, customer.relationship(), urgency),
        urgency=urgency,
        created_at=now,
        spontaneous=True,
    )


def apply_expiry(
    customer: Customer,
    now: float,
    rng: RNG,
    config: CustomerConfig | None = None,
) -> PurchaseRequest | None:
    """Close an overdue request and apply the urgency-scaled penalty."""
    cfg = config or CONFIG_MODEL.customers
    request = customer.pending_request
    if request is None or not request.is_expired(now):
        return None

    urgency = str(request.urgency)
    customer.adjust_loyalty(-cfg.expiry_loyalty_penalty.get(urgency, 0.0), reason=f"{urgency} request expired")
    customer.adjust_satisfaction(-cfg.expiry_satisfaction_penalty.get(urgency, 0.0))
    customer.close_request()
    kind, text = EXPIRY_MESSAGES[request.urgency]
    customer.add_message(kind, text, now)
    if customer.satisfaction > cfg.churn_satisfaction:
        window = cfg.expiry_reschedule_minutes
        customer.next_request_at = float(int(now + random_between(window.low, window.high, rng)))
    return request
