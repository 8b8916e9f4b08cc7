"""Thin wrapper over the Stripe SDK: enablement check, checkout sessions, webhook events."""

import json
import os

import stripe
import structlog

logger = structlog.get_logger()

_VALID_KEY_PREFIXES = ("sk_test_", "sk_live_")

# Seconds a signed webhook timestamp stays valid
WEBHOOK_TOLERANCE = stripe.Webhook.DEFAULT_TOLERANCE


def get_stripe_secret_key() -> str | None:
    return os.getenv("STRIPE_SECRET_KEY")


def get_webhook_secret() -> str | None:
    return os.getenv("STRIPE_WEBHOOK_SECRET")


def is_stripe_enabled(secret_key: str | None = None) -> bool:
    """Real payments only with a real-looking secret key; anything else means simulation."""
    key = secret_key if secret_key is not None else get_stripe_secret_key()
    return bool(key) and key.startswith(_VALID_KEY_PREFIXES)


def create_checkout_session(
    *,
    user_id: str,
    price_id: str,
    app_url: str,
    quantity: int = 1,
    secret_key: str | None = None,
):
    """Create a one-off payment Checkout Session for persona slots."""
    base = app_url.rstrip("/")
    session = stripe.checkout.Session.create(
        api_key=secret_key or get_stripe_secret_key(),
        mode="payment",
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": quantity}],
        success_url=f"{base}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base}/payment/cancel",
        client_reference_id=user_id,
        metadata={"userId": user_id, "item": "persona_slot"},
    )
    logger.info("billing.checkout_session_created", user_id=user_id, session_id=session.id)
    return session


def construct_event(payload: bytes, signature: str, webhook_secret: str) -> dict:
    """Verify the signature header and decode the event as a plain dict.

    Raises:
        ValueError: payload is not valid JSON.
        stripe.SignatureVerificationError: signature doesn't match.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    stripe.WebhookSignature.verify_header(payload, signature, webhook_secret, WEBHOOK_TOLERANCE)
    event = json.loads(payload)
    if not isinstance(event, dict):
        raise ValueError("Webhook payload is not a JSON object")
    return event
