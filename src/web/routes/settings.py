"""LLM settings routes (per-user, keys stored encrypted)."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException

from llm import create_llm_provider
from web.auth import get_current_user
from web.deps import get_llm_settings_for_user, get_secret_key, get_settings_mask_for_user
from web.models import SettingsResponse, SettingsUpdate
from web.user_store import set_user_secret

logger = structlog.get_logger()

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings(user: dict = Depends(get_current_user)):
    """Return per-user settings with bool mask for secrets."""
    return SettingsResponse(**get_settings_mask_for_user(user["id"]))


@router.put("", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdate,
    user: dict = Depends(get_current_user),
):
    """Encrypt and save per-user settings."""
    fernet_key = get_secret_key()
    update_data = body.model_dump(exclude_none=True)

    for key, value in update_data.items():
        set_user_secret(user["id"], key, str(value), fernet_key)

    logger.info("settings.updated", user_id=user["id"], keys=list(update_data.keys()))
    return SettingsResponse(**get_settings_mask_for_user(user["id"]))


@router.post("/test-llm")
async def test_llm_connectivity(user: dict = Depends(get_current_user)):
    """Check the user's own key with a minimal call."""
    settings = get_llm_settings_for_user(user["id"])
    if not settings["own_key"]:
        raise HTTPException(status_code=400, detail="No API key configured")

    try:
        provider = create_llm_provider(
            provider=settings["provider"], api_key=settings["api_key"], model=settings["model"]
        )
        response = await asyncio.to_thread(
            provider.generate,
            [{"role": "user", "content": "ping"}],
            system="Reply with exactly: ok",
            max_tokens=5,
        )
        return {"ok": True, "provider": provider.provider_name, "response": response.strip()}
    except Exception as e:
        logger.warning("settings.test_llm_failed", user_id=user["id"], error=str(e))
        raise HTTPException(status_code=422, detail=str(e))
