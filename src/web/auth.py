"""JWT issuing and validation for FastAPI."""

import os
from datetime import datetime, timedelta, timezone

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from web.user_store import get_or_create_user

logger = structlog.get_logger()

ALGORITHM = "HS256"
SESSION_TTL = timedelta(days=7)
VERIFY_EMAIL_TTL = timedelta(days=2)
VERIFY_EMAIL_PURPOSE = "verify_email"

security = HTTPBearer()


def _get_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET not configured",
        )
    return secret


def create_session_token(user: dict, ttl: timedelta = SESSION_TTL) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user["id"],
        "email": user.get("email"),
        "name": user.get("name"),
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(claims, _get_jwt_secret(), algorithm=ALGORITHM)


def create_verification_token(user_id: str, email: str) -> str:
    """Short-lived token that can only be used to confirm an email address."""
    claims = {
        "sub": user_id,
        "email": email,
        "purpose": VERIFY_EMAIL_PURPOSE,
        "exp": datetime.now(timezone.utc) + VERIFY_EMAIL_TTL,
    }
    return jwt.encode(claims, _get_jwt_secret(), algorithm=ALGORITHM)


def decode_verification_token(token: str) -> dict:
    """Return claims of a verification token. Raises 400 when invalid, expired or misused."""
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=400, detail="Invalid or expired verification link")
    if payload.get("purpose") != VERIFY_EMAIL_PURPOSE or not payload.get("sub"):
        raise HTTPException(status_code=400, detail="Invalid or expired verification link")
    return payload


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Decode session JWT, extract user info, upsert the user row."""
    token = credentials.credentials
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    user_id = payload.get("sub")
    if not user_id or payload.get("purpose"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing sub",
        )
    row = get_or_create_user(user_id, email=payload.get("email"), name=payload.get("name"))
    return {
        "id": user_id,
        "email": row.get("email") or payload.get("email"),
        "name": row.get("name") or payload.get("name"),
    }
