"""Customer behavior components.

This package contains the per-customer rules used by the CustomerLedger:
- lifecycle: prospects, sample conversion, purchases, inactivity
- requests: scheduled and spontaneous demand, request sizing, expiry
- reactions: personality table for cross-drug offers
"""

from .lifecycle import (
    addiction_gain,
    apply_inactivity,
    apply_purchase,
    apply_sample,
    create_prospect,
    roll_sample_conversion,
    sample_conversion_chance,
)
from .reactions import OfferReaction, react_to_offer
from .requests import (
    apply_expiry,
    build_request,
    maybe_spontaneous_request,
    request_message,
    schedule_next_request,
    spontaneous_chance,
    urgency_for,
)

__all__ = [
    "OfferReaction",
    "addiction_gain",
    "apply_expiry",
    "apply_inactivity",
    "apply_purchase",
    "apply_sample",
    "build_request",
    "create_prospect",
    "maybe_spontaneous_request",
    "react_to_offer",
    "request_message",
    "roll_sample_conversion",
    "sample_conversion_chance",
    "schedule_next_request",
    "spontaneous_chance",
    "urgency_for",
]
