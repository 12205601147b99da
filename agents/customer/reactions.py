"""Personality reactions to a drug the customer does not take yet."""

from __future__ import annotations

from enum import StrEnum

from agents.customer_agent import Customer, Personality
from config import CONFIG_MODEL, CustomerConfig
from economy.commodities import Drug
from economy.rng import RNG, chance


class OfferReaction(StrEnum):
    ALREADY_ACCEPTED = "already_accepted"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"
    REJECTED_SOFT = "rejected_soft"
    REJECTED = "rejected"

    @property
    def accepted(self) -> bool:
        return self in (OfferReaction.ALREADY_ACCEPTED, OfferReaction.ACCEPTED)


REACTION_MESSAGES: dict[OfferReaction, tuple[str, str]] = {
    OfferReaction.BLOCKED: ("drug-rejection-angry", "Are you trying to set me up?? We're done!"),
    OfferReaction.REJECTED_SOFT: ("drug-rejection-soft", "Nah I'm good. Sticking to green for now."),
    OfferReaction.REJECTED: ("drug-rejection", "Yo that's not my thing. Just weed."),
}
ACCEPT_MESSAGES: dict[Personality, str] = {
    Personality.HARDCORE: "Hell yeah! This is what I'm talking about.",
    Personality.ADVENTUROUS: "Alright, let's see what this is about.",
}


def react_to_offer(
    customer: Customer,
    drug: Drug,
    now: float,
    rng: RNG,
    config: CustomerConfig | None = None,
) -> OfferReaction:
    """Apply the personality table to an offer and return the outcome.

    paranoid: blocks the player (the ledger drops the customer next tick)
    hardcore: accepts, preference unlocked
    adventurous: accepts with a fixed chance, otherwise a soft rejection
    anyone else: rejects with a loyalty penalty
    """
    cfg = config or CONFIG_MODEL.customers
    if customer.accepts(drug):
        return OfferReaction.ALREADY_ACCEPTED

    match customer.personality:
        case Personality.PARANOID:
            reaction = OfferReaction.BLOCKED
            customer.blocked = True
            customer.logger.log_state_change(customer.status, "blocked", f"offered {drug}")
        case Personality.HARDCORE:
            reaction = OfferReaction.ACCEPTED
        case Personality.ADVENTUROUS if chance(cfg.adventurous_accept_chance, rng):
            reaction = OfferReaction.ACCEPTED
        case Personality.ADVENTUROUS:
            reaction = OfferReaction.REJECTED_SOFT
            customer.adjust_loyalty(-cfg.soft_rejection_loyalty_penalty, reason="offer rejected")
        case _:
            reaction = OfferReaction.REJECTED
            customer.adjust_loyalty(-cfg.rejection_loyalty_penalty, reason="offer rejected")

    if reaction is OfferReaction.ACCEPTED:
        seeded = cfg.offer_min_addiction.get(str(customer.personality), 0.0)
        customer.unlock_drug(drug, min_addiction=seeded)
        customer.add_message("drug-acceptance", ACCEPT_MESSAGES[customer.personality], now)
    else:
        customer.add_message(*REACTION_MESSAGES[reaction], now)
    return reaction
