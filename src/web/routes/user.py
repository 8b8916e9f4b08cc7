"""User profile routes."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from web.auth import get_current_user
from web.deps import build_user_profile, get_secret_key
from web.models import ProfileUpdate, UserProfile
from web.user_store import delete_user, delete_user_secret, log_event, set_user_secret, update_profile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/me", response_model=UserProfile)
async def get_me(user: dict = Depends(get_current_user)):
    return UserProfile(**build_user_profile(user["id"]))


@router.patch("/me", response_model=UserProfile)
async def update_me(body: ProfileUpdate, user: dict = Depends(get_current_user)):
    user_id = user["id"]
    update_profile(
        user_id,
        name=body.name.strip() if body.name is not None else None,
        avatar_url=body.avatar_url,
    )
    if body.gemini_api_key is not None:
        if body.gemini_api_key.strip():
            set_user_secret(user_id, "gemini_api_key", body.gemini_api_key.strip(), get_secret_key())
        else:
            delete_user_secret(user_id, "gemini_api_key")
    logger.info("user.profile_updated", user_id=user_id, fields=sorted(body.model_fields_set))
    return UserProfile(**build_user_profile(user_id))


@router.delete("/me", status_code=204)
async def delete_me(user: dict = Depends(get_current_user)):
    user_id = user["id"]
    log_event("account_deleted", user_id=user_id)
    delete_user(user_id)
    return Response(status_code=204)
