"""User-to-user chats and the personas derived from them."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from flows import FlowError, create_persona_from_chat
from llm import LLMError
from personas.derived import (
    build_derived_persona,
    contact_messages,
    format_contact_history,
    generate_user_chat_id,
    should_refresh,
)
from personas.quota import QuotaExceededError, ensure_can_create
from web.auth import get_current_user
from web.contact_store import get_contact
from web.conversation_store import (
    clear_user_chat_messages,
    get_user_chat_messages,
    save_user_chat_message,
)
from web.deps import (
    get_config,
    get_flow_provider,
    get_flow_retry,
    get_quota_for_user,
    llm_http_exception,
)
from web.models import Persona, UserChatMessage, UserChatSend, UserChatSendResponse
from web.persona_store import count_personas, get_chat_derived_persona, save_persona
from web.user_store import log_event

logger = structlog.get_logger()

router = APIRouter(prefix="/api/messages", tags=["messages"])


def _require_contact(user_id: str, contact_id: str) -> dict:
    contact = get_contact(user_id, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


async def _derive_persona(
    user_id: str, contact: dict, chat_id: str, messages: list[dict]
) -> dict:
    """Create or regenerate the persona for ``contact`` from their messages.

    Raises QuotaExceededError when a new persona would exceed the quota;
    updates are never quota checked.
    """
    theirs = contact_messages(messages, contact["id"])
    if not theirs:
        raise HTTPException(status_code=400, detail="This contact has not sent any messages yet.")

    existing = get_chat_derived_persona(user_id, chat_id, contact["id"])
    if not existing:
        ensure_can_create(count_personas(user_id), get_quota_for_user(user_id))

    transcript = format_contact_history(theirs, contact["name"])
    provider = get_flow_provider(user_id)
    result = await asyncio.to_thread(
        create_persona_from_chat,
        provider,
        {"chat_history": transcript},
        get_config().llm.max_tokens,
        get_flow_retry(),
    )
    persona = save_persona(
        user_id,
        build_derived_persona(
            existing,
            result.persona_description,
            contact,
            chat_id,
            transcript,
            len(theirs),
        ),
    )
    log_event(
        "derived_persona_updated" if existing else "derived_persona_created",
        user_id,
        {"source_messages": len(theirs)},
    )
    return persona


@router.get("/{contact_id}", response_model=list[UserChatMessage])
async def get_messages(contact_id: str, user: dict = Depends(get_current_user)):
    _require_contact(user["id"], contact_id)
    chat_id = generate_user_chat_id(user["id"], contact_id)
    return [UserChatMessage(**m) for m in get_user_chat_messages(chat_id)]


@router.post("/{contact_id}", response_model=UserChatSendResponse, status_code=201)
async def send_message(
    contact_id: str, body: UserChatSend, user: dict = Depends(get_current_user)
):
    """Post a message; every few messages the contact's persona is refreshed.

    A failed refresh is logged and never fails the send.
    """
    user_id = user["id"]
    contact = _require_contact(user_id, contact_id)
    chat_id = generate_user_chat_id(user_id, contact_id)
    message = save_user_chat_message(chat_id, user_id, body.text)

    messages = get_user_chat_messages(chat_id)
    every = get_config().chat.messages_per_persona_update
    updated = False
    if should_refresh(len(messages), len(contact_messages(messages, contact_id)), every):
        try:
            await _derive_persona(user_id, contact, chat_id, messages)
            updated = True
        except QuotaExceededError as e:
            logger.info("messages.derived_persona_skipped", user_id=user_id, reason=str(e))
        except HTTPException as e:
            logger.warning("messages.derived_persona_failed", user_id=user_id, error=e.detail)
        except (LLMError, FlowError) as e:
            logger.warning("messages.derived_persona_failed", user_id=user_id, error=str(e))

    return UserChatSendResponse(
        message=UserChatMessage(**message), derived_persona_updated=updated
    )


@router.delete("/{contact_id}", status_code=204)
async def clear_messages(contact_id: str, user: dict = Depends(get_current_user)):
    _require_contact(user["id"], contact_id)
    clear_user_chat_messages(generate_user_chat_id(user["id"], contact_id))
    return Response(status_code=204)


@router.get("/{contact_id}/persona", response_model=Persona)
async def get_derived_persona(contact_id: str, user: dict = Depends(get_current_user)):
    _require_contact(user["id"], contact_id)
    persona = get_chat_derived_persona(
        user["id"], generate_user_chat_id(user["id"], contact_id), contact_id
    )
    if not persona:
        raise HTTPException(status_code=404, detail="No persona has been derived from this chat yet.")
    return Persona(**persona)


@router.post("/{contact_id}/persona", response_model=Persona)
async def generate_derived_persona(contact_id: str, user: dict = Depends(get_current_user)):
    """Create or refresh the contact's persona on demand."""
    user_id = user["id"]
    contact = _require_contact(user_id, contact_id)
    chat_id = generate_user_chat_id(user_id, contact_id)
    try:
        persona = await _derive_persona(user_id, contact, chat_id, get_user_chat_messages(chat_id))
        return Persona(**persona)
    except QuotaExceededError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except HTTPException:
        raise
    except (LLMError, FlowError) as e:
        raise llm_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{contact_id}/practice", response_model=Persona)
async def practice_persona(contact_id: str, user: dict = Depends(get_current_user)):
    """The derived persona to rehearse a conversation with, if it is usable."""
    _require_contact(user["id"], contact_id)
    persona = get_chat_derived_persona(
        user["id"], generate_user_chat_id(user["id"], contact_id), contact_id
    )
    if not persona or not (persona.get("persona_description") or "").strip():
        raise HTTPException(
            status_code=409,
            detail="Practice mode needs a persona derived from this chat. Keep chatting or generate one.",
        )
    return Persona(**persona)
