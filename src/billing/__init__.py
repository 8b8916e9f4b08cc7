"""Persona quota purchases through Stripe, with a simulated fallback."""

from .service import BillingError, fulfil_checkout, handle_webhook, start_checkout
from .stripe_gateway import is_stripe_enabled

__all__ = [
    "BillingError",
    "start_checkout",
    "fulfil_checkout",
    "handle_webhook",
    "is_stripe_enabled",
]
