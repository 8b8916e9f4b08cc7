"""Chat-derived personas: a persona regenerated from a contact's side of a chat."""

import uuid
from datetime import datetime, timezone

from .constants import ORIGIN_CHAT_DERIVED, derived_persona_avatar_url


def generate_user_chat_id(user_a: str, user_b: str) -> str:
    """Stable chat id for a pair of users, independent of argument order."""
    return "_".join(sorted((user_a, user_b)))


def contact_messages(messages: list[dict], contact_id: str) -> list[dict]:
    return [m for m in messages if m["sender_user_id"] == contact_id]


def should_refresh(total_messages: int, contact_message_count: int, every: int = 5) -> bool:
    """Refresh on every ``every``-th message once the contact has said something."""
    return contact_message_count > 0 and total_messages > 0 and total_messages % every == 0


def format_contact_history(messages: list[dict], contact_name: str) -> str:
    """Transcript of the contact's messages as ``Name: text`` lines."""
    return "\n".join(f"{contact_name}: {m['text']}" for m in messages)


def derived_persona_name(contact_name: str) -> str:
    return f"{contact_name}'s Chat Persona"


def build_derived_persona(
    existing: dict | None,
    description: str,
    contact: dict,
    chat_id: str,
    chat_history: str,
    source_count: int,
) -> dict:
    """New or updated persona record for a contact.

    Updates keep the original id and created_at; everything else is rewritten.
    """
    if existing:
        persona = dict(existing)
    else:
        persona = {
            "id": uuid.uuid4().hex,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "origin_type": ORIGIN_CHAT_DERIVED,
            "derived_from_chat_id": chat_id,
            "derived_representing_user_id": contact["id"],
        }
    persona.update(
        name=derived_persona_name(contact["name"]),
        persona_description=description,
        chat_history=chat_history,
        avatar_url=contact.get("avatar_url") or derived_persona_avatar_url(contact["id"]),
        source_chat_messages_count=source_count,
    )
    return persona
