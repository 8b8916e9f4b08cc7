"""Persona quota and slot purchases."""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from billing import BillingError, handle_webhook, is_stripe_enabled, start_checkout
from personas.quota import remaining_slots
from web.auth import get_current_user
from web.deps import get_config, get_quota_for_user
from web.models import CheckoutResponse, QuotaResponse
from web.persona_store import count_personas

logger = structlog.get_logger()

router = APIRouter(prefix="/api/billing", tags=["billing"])


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(user: dict = Depends(get_current_user)):
    billing = get_config().billing
    quota = get_quota_for_user(user["id"])
    count = count_personas(user["id"])
    return QuotaResponse(
        persona_quota=quota,
        persona_count=count,
        remaining=remaining_slots(count, quota),
        price_pounds=billing.price_pounds,
        currency=billing.currency,
        personas_per_purchase=billing.personas_per_purchase,
        stripe_enabled=is_stripe_enabled(),
    )


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(user: dict = Depends(get_current_user)):
    return CheckoutResponse(**start_checkout(user["id"], get_config().billing))


@router.post("/webhook")
async def stripe_webhook(request: Request):
    """Stripe webhook receiver. Public; authenticated by the signature header."""
    payload = await request.body()
    try:
        return handle_webhook(payload, request.headers.get("stripe-signature"), get_config().billing)
    except BillingError as e:
        return JSONResponse(status_code=e.status_code, content={"error": str(e)})
