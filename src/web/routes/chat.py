"""Chat with an AI persona."""

import asyncio
import time

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from flows import FlowError, generate_response
from llm import LLMError
from web.auth import get_current_user
from web.conversation_store import clear_chat_messages, get_chat_messages, save_chat_message
from web.deps import get_config, get_flow_provider, get_flow_retry
from web.models import ChatExchange, ChatMessage, ChatSend
from web.persona_store import get_persona
from web.user_store import log_event

logger = structlog.get_logger()

router = APIRouter(prefix="/api/personas", tags=["chat"])

EMPTY_RESPONSE_TEXT = "I couldn't generate a response. Please try again."
ERROR_RESPONSE_TEXT = (
    "I'm sorry, I encountered an error and couldn't respond. Please try again."
)


def _trim_history(messages: list[dict], max_chars: int) -> list[dict]:
    """Keep most recent messages that fit within max_chars."""
    total = 0
    trimmed = []
    for msg in reversed(messages):
        total += len(msg.get("content", ""))
        if total > max_chars:
            break
        trimmed.append(msg)
    trimmed.reverse()
    return trimmed


def _as_history(rows: list[dict], max_chars: int) -> list[dict]:
    return _trim_history(
        [
            {"role": "assistant" if r["sender"] == "ai" else "user", "content": r["text"]}
            for r in rows
        ],
        max_chars,
    )


def _require_persona(user_id: str, persona_id: str) -> dict:
    persona = get_persona(user_id, persona_id)
    if not persona:
        raise HTTPException(status_code=404, detail="Persona not found")
    return persona


@router.get("/{persona_id}/messages", response_model=list[ChatMessage])
async def list_messages(persona_id: str, user: dict = Depends(get_current_user)):
    _require_persona(user["id"], persona_id)
    limit = get_config().chat.history_limit
    return [ChatMessage(**m) for m in get_chat_messages(persona_id, limit=limit)]


@router.post("/{persona_id}/messages", response_model=ChatExchange, status_code=201)
async def send_message(
    persona_id: str, body: ChatSend, user: dict = Depends(get_current_user)
):
    """Save the user's message and the persona's reply.

    Provider failures are answered with a fallback AI message rather than an
    error status, so the conversation stays consistent. Rate limiting still
    surfaces as 429.
    """
    user_id = user["id"]
    persona = _require_persona(user_id, persona_id)
    chat_config = get_config().chat
    context = (body.context or "").strip() or chat_config.default_context

    try:
        provider = get_flow_provider(user_id)
    except LLMError as e:
        logger.warning("chat.provider_unavailable", persona_id=persona_id, error=str(e))
        provider = None
    history = _as_history(
        get_chat_messages(persona_id, limit=chat_config.history_limit),
        chat_config.max_history_chars,
    )
    user_message = save_chat_message(persona_id, "user", body.text, context=context)

    start = time.monotonic()
    reply = ERROR_RESPONSE_TEXT
    if provider is not None:
        try:
            result = await asyncio.to_thread(
                generate_response,
                provider,
                {
                    "persona": persona.get("persona_description")
                    or f"A persona named {persona['name']}",
                    "input": body.text,
                    "context": context,
                    "history": history,
                },
                get_config().llm.max_tokens,
                get_flow_retry(),
            )
            reply = result.response.strip() or EMPTY_RESPONSE_TEXT
        except (LLMError, FlowError) as e:
            logger.warning("chat.generate_failed", persona_id=persona_id, error=str(e))

    ai_message = save_chat_message(persona_id, "ai", reply, context=context)
    log_event(
        "persona_chat",
        user_id,
        {"latency_ms": int((time.monotonic() - start) * 1000)},
    )
    return ChatExchange(user_message=ChatMessage(**user_message), ai_message=ChatMessage(**ai_message))


@router.delete("/{persona_id}/messages", status_code=204)
async def clear_messages(persona_id: str, user: dict = Depends(get_current_user)):
    _require_persona(user["id"], persona_id)
    removed = clear_chat_messages(persona_id)
    logger.info("chat.cleared", persona_id=persona_id, removed=removed)
    return Response(status_code=204)
