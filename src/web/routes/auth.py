"""Email/password sign-up, login and email verification."""

import os
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException

from personas.constants import user_avatar_url
from web.auth import (
    create_session_token,
    create_verification_token,
    decode_verification_token,
    get_current_user,
)
from web.deps import build_user_profile, get_config
from web.models import LoginRequest, SignupRequest, TokenResponse, UserProfile, VerifyEmailRequest
from web.passwords import hash_password, verify_password
from web.user_store import (
    UserExistsError,
    create_user_with_password,
    get_user,
    get_user_by_email,
    log_event,
    mark_email_verified,
    touch_last_login,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["auth"])


def send_verification_email(user_id: str, email: str) -> None:
    """Deliver the verification link. No mail transport: the link is logged for the operator."""
    token = create_verification_token(user_id, email)
    base = (get_config().billing.app_url or os.getenv("FRONTEND_ORIGIN", "http://localhost:3000"))
    logger.info(
        "auth.verification_link",
        user_id=user_id,
        link=f"{base.rstrip('/')}/verify-email?token={token}",
    )


@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(body: SignupRequest):
    email = body.email.lower()
    user_id = uuid.uuid4().hex
    try:
        user = create_user_with_password(
            user_id,
            email=email,
            password_hash=hash_password(body.password),
            name=(body.name or email.split("@")[0]).strip(),
            avatar_url=user_avatar_url(user_id),
            persona_quota=get_config().billing.free_persona_limit,
        )
    except UserExistsError:
        raise HTTPException(status_code=409, detail="An account with this email already exists.")

    send_verification_email(user_id, email)
    log_event("signup", user_id)
    return TokenResponse(
        access_token=create_session_token(user),
        user=UserProfile(**build_user_profile(user_id)),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest):
    user = get_user_by_email(body.email)
    if not user or not verify_password(body.password, user.get("password_hash")):
        logger.info("auth.login_failed")
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    touch_last_login(user["id"])
    log_event("login", user["id"])
    return TokenResponse(
        access_token=create_session_token(user),
        user=UserProfile(**build_user_profile(user["id"])),
    )


@router.post("/verify-email")
async def verify_email(body: VerifyEmailRequest):
    claims = decode_verification_token(body.token)
    if not mark_email_verified(claims["sub"]):
        raise HTTPException(status_code=404, detail="User profile not found.")
    logger.info("auth.email_verified", user_id=claims["sub"])
    return {"verified": True}


@router.post("/resend-verification")
async def resend_verification(user: dict = Depends(get_current_user)):
    row = get_user(user["id"])
    if row and row["email_verified"]:
        return {"sent": False, "detail": "Email already verified."}
    if not user.get("email"):
        raise HTTPException(status_code=400, detail="No email address on this account.")
    send_verification_email(user["id"], user["email"])
    return {"sent": True}
