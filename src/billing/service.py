"""Persona-slot purchases: checkout (real or simulated) and webhook fulfilment."""

from pathlib import Path

import stripe
import structlog

from cli.config_models import BillingConfig
from web.user_store import get_persona_quota, get_user, increment_persona_quota, log_event

from . import stripe_gateway

logger = structlog.get_logger()


class BillingError(Exception):
    """Billing failure carrying the HTTP status the webhook should answer with."""

    def __init__(self, message: str, status_code: int = 500):
        self.status_code = status_code
        super().__init__(message)


def start_checkout(
    user_id: str | None, billing: BillingConfig, db_path: Path | None = None
) -> dict:
    """Begin a persona-slot purchase.

    With Stripe configured this returns a hosted checkout URL; otherwise the
    purchase is simulated by adding the slots immediately.

    Returns:
        {success, message, checkout_url?, session_id?, new_quota?}
    """
    if not user_id:
        return {"success": False, "message": "User not authenticated."}

    if not get_user(user_id, db_path=db_path):
        return {"success": False, "message": "User profile not found."}

    if stripe_gateway.is_stripe_enabled():
        if not billing.app_url:
            logger.error("billing.app_url_missing")
            return {"success": False, "message": "Payment system is not configured (APP_URL missing)."}
        try:
            session = stripe_gateway.create_checkout_session(
                user_id=user_id,
                price_id=billing.price_id,
                app_url=billing.app_url,
            )
        except stripe.StripeError as e:
            logger.error("billing.checkout_failed", user_id=user_id, error=str(e))
            return {"success": False, "message": f"Could not start checkout: {e.user_message or e}"}
        log_event("checkout_started", user_id, {"session_id": session.id}, db_path=db_path)
        return {
            "success": True,
            "message": "Redirecting to checkout.",
            "checkout_url": session.url,
            "session_id": session.id,
        }

    new_quota = increment_persona_quota(
        user_id, billing.personas_per_purchase, billing.free_persona_limit, db_path=db_path
    )
    if new_quota is None:
        return {"success": False, "message": "User profile not found."}
    log_event("checkout_simulated", user_id, {"new_quota": new_quota}, db_path=db_path)
    logger.info("billing.simulated_purchase", user_id=user_id, new_quota=new_quota)
    return {
        "success": True,
        "message": (
            f"Payment successful (Simulated). {billing.personas_per_purchase} persona slot(s) added."
        ),
        "new_quota": new_quota,
    }


def _user_id_from_session(session) -> str | None:
    metadata = session.get("metadata") or {}
    return session.get("client_reference_id") or metadata.get("userId")


def fulfil_checkout(user_id: str, billing: BillingConfig, db_path: Path | None = None) -> int:
    """Add purchased slots to a user's quota. Returns the new quota."""
    if get_persona_quota(user_id, billing.free_persona_limit, db_path=db_path) is None:
        raise BillingError(f"User profile {user_id} not found", status_code=404)
    try:
        new_quota = increment_persona_quota(
            user_id, billing.personas_per_purchase, billing.free_persona_limit, db_path=db_path
        )
    except Exception as e:
        logger.error("billing.quota_update_failed", user_id=user_id, error=str(e))
        raise BillingError(f"Failed to update persona quota: {e}", status_code=500) from e
    if new_quota is None:
        raise BillingError(f"User profile {user_id} not found", status_code=404)
    return new_quota


def handle_webhook(
    payload: bytes,
    signature: str | None,
    billing: BillingConfig,
    db_path: Path | None = None,
) -> dict:
    """Verify and apply a Stripe webhook.

    Raises:
        BillingError: with status 500 (not configured), 400 (bad signature or
            event), 404 (unknown user).
    """
    webhook_secret = stripe_gateway.get_webhook_secret()
    if not stripe_gateway.is_stripe_enabled() or not webhook_secret:
        logger.error("billing.webhook_not_configured")
        raise BillingError("Stripe is not configured.", status_code=500)

    if not signature:
        raise BillingError("Missing stripe-signature header.", status_code=400)

    try:
        event = stripe_gateway.construct_event(payload, signature, webhook_secret)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("billing.webhook_verification_failed", error=str(e))
        raise BillingError(f"Webhook Error: {e}", status_code=400) from e

    event_type = event.get("type")
    logger.info("billing.webhook_verified", event_type=event_type, event_id=event.get("id"))

    if event_type == "checkout.session.completed":
        session = (event.get("data") or {}).get("object") or {}
        user_id = _user_id_from_session(session)
        if not user_id:
            raise BillingError("User ID missing from checkout session.", status_code=400)
        new_quota = fulfil_checkout(user_id, billing, db_path=db_path)
        log_event("checkout_completed", user_id, {"new_quota": new_quota}, db_path=db_path)
        logger.info("billing.quota_granted", user_id=user_id, new_quota=new_quota)
    elif event_type == "payment_intent.succeeded":
        logger.info("billing.payment_intent_succeeded", event_id=event.get("id"))
    else:
        logger.info("billing.webhook_unhandled", event_type=event_type)

    return {"received": True}
