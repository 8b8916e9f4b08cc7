"""Persona domain rules: quota, chat-derived personas, export."""

from .constants import GENDER_OPTIONS, MBTI_TYPES, ORIGIN_CHAT_DERIVED, ORIGIN_USER_CREATED
from .derived import generate_user_chat_id, should_refresh
from .quota import QuotaExceededError, effective_quota, ensure_can_create

__all__ = [
    "MBTI_TYPES",
    "GENDER_OPTIONS",
    "ORIGIN_USER_CREATED",
    "ORIGIN_CHAT_DERIVED",
    "generate_user_chat_id",
    "should_refresh",
    "QuotaExceededError",
    "effective_quota",
    "ensure_can_create",
]
