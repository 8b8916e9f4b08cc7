"""Persona field vocabularies and default avatar URLs."""

from urllib.parse import quote

MBTI_TYPES = [
    "ISTJ", "ISFJ", "INFJ", "INTJ",
    "ISTP", "ISFP", "INFP", "INTP",
    "ESTP", "ESFP", "ENFP", "ENTP",
    "ESTJ", "ESFJ", "ENFJ", "ENTJ",
]

GENDER_OPTIONS = ["Male", "Female", "Non-binary", "Other", "Prefer not to say"]

ORIGIN_USER_CREATED = "user-created"
ORIGIN_CHAT_DERIVED = "chat-derived"

CATEGORY_MAX_LENGTH = 50


def persona_avatar_url(seed: str) -> str:
    return f"https://picsum.photos/seed/{quote(seed, safe='')}/200/200"


def derived_persona_avatar_url(contact_id: str) -> str:
    return f"https://picsum.photos/seed/{contact_id}_persona/60/60"


def user_avatar_url(user_id: str) -> str:
    return f"https://picsum.photos/seed/{user_id}/100/100"
