"""Dependency injection for FastAPI routes."""

import os
from functools import lru_cache

import structlog
from fastapi import HTTPException

from cli.config import load_config_model
from cli.config_models import PersonaSimConfig
from cli.retry import retry_from_config
from flows import FlowError
from llm import (
    LLMAuthError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    create_llm_provider,
    resolve_env_api_key,
)
from personas.constants import user_avatar_url
from personas.quota import effective_quota
from web.persona_store import count_personas
from web.rate_limit import check_shared_key_rate_limit
from web.user_store import get_persona_quota, get_user, get_user_secrets

logger = structlog.get_logger()

# Keys a user may store in their encrypted settings
SECRET_KEY_FIELDS = ["gemini_api_key", "llm_api_key"]


@lru_cache
def get_config() -> PersonaSimConfig:
    """Load shared config (config.yaml + env)."""
    return load_config_model()


def get_secret_key() -> str:
    """Get Fernet secret key from env."""
    key = os.getenv("SECRET_KEY")
    if not key:
        raise RuntimeError("SECRET_KEY env var required for API key encryption")
    return key


def get_decrypted_secrets_for_user(user_id: str) -> dict:
    return get_user_secrets(user_id, get_secret_key())


def get_llm_settings_for_user(user_id: str) -> dict:
    """Effective provider/model/key for a user and whether the key is their own.

    Resolution: user's stored key, then provider env vars, then config file.
    """
    config = get_config()
    secrets = get_decrypted_secrets_for_user(user_id)
    provider = secrets.get("llm_provider") or config.llm.provider
    model = secrets.get("llm_model") or config.llm.model

    own_key = secrets.get("llm_api_key") or (
        secrets.get("gemini_api_key") if provider in ("gemini", "auto") else None
    )
    if own_key:
        return {"provider": provider, "model": model, "api_key": own_key, "own_key": True}

    shared_key = (
        resolve_env_api_key(provider) if provider != "auto" else None
    ) or config.llm.api_key
    return {"provider": provider, "model": model, "api_key": shared_key, "own_key": False}


def get_flow_provider(user_id: str) -> LLMProvider:
    """LLM provider for a user's flow call. Shared-key users are rate limited."""
    settings = get_llm_settings_for_user(user_id)
    if not settings["own_key"]:
        limits = get_config().rate_limits
        check_shared_key_rate_limit(
            user_id, daily_limit=limits.daily_limit, burst_interval=limits.burst_interval
        )
    if not settings["api_key"] and settings["provider"] != "auto":
        raise HTTPException(
            status_code=503,
            detail="No LLM API key configured. Add your Gemini API key in your profile.",
        )
    return create_llm_provider(
        provider=settings["provider"], api_key=settings["api_key"], model=settings["model"]
    )


def get_flow_retry():
    return retry_from_config(get_config())


def _hint(value: str | None) -> str | None:
    """Return last 4 chars as hint, or None."""
    if not value or len(value) < 4:
        return None
    return f"...{value[-4:]}"


def get_settings_mask_for_user(user_id: str) -> dict:
    """Return settings with bool mask for secrets, per-user."""
    secrets = get_decrypted_secrets_for_user(user_id)
    config = get_config()
    return {
        "llm_provider": secrets.get("llm_provider") or config.llm.provider,
        "llm_model": secrets.get("llm_model") or config.llm.model,
        "llm_api_key_set": bool(secrets.get("llm_api_key")),
        "llm_api_key_hint": _hint(secrets.get("llm_api_key")),
        "gemini_api_key_set": bool(secrets.get("gemini_api_key")),
        "gemini_api_key_hint": _hint(secrets.get("gemini_api_key")),
    }


def llm_http_exception(e: Exception) -> HTTPException:
    """Map flow/provider failures to an HTTP error for the client."""
    if isinstance(e, LLMAuthError):
        return HTTPException(status_code=422, detail=f"LLM authentication failed: {e}")
    if isinstance(e, LLMRateLimitError):
        return HTTPException(
            status_code=429, detail="The AI provider is rate limiting requests. Try again shortly."
        )
    if isinstance(e, (LLMError, FlowError)):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def get_quota_for_user(user_id: str) -> int:
    billing = get_config().billing
    quota = get_persona_quota(user_id, billing.free_persona_limit)
    return effective_quota(quota, billing.free_persona_limit)


def build_user_profile(user_id: str) -> dict:
    """Profile object returned by /api/user/me and the auth endpoints."""
    row = get_user(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="User profile not found.")
    secrets = get_decrypted_secrets_for_user(user_id)
    return {
        "id": row["id"],
        "email": row["email"],
        "name": row["name"] or (row["email"] or "").split("@")[0] or None,
        "avatar_url": row["avatar_url"] or user_avatar_url(row["id"]),
        "created_at": row["created_at"],
        "last_login": row["last_login"],
        "email_verified": bool(row["email_verified"]),
        "persona_quota": effective_quota(row["persona_quota"], get_config().billing.free_persona_limit),
        "persona_count": count_personas(user_id),
        "gemini_api_key_set": bool(secrets.get("gemini_api_key")),
    }
