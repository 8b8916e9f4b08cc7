"""Persona dashboard routes: create, list, detail, insights, Q&A, develop, export."""

import asyncio
import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from analysis import (
    analyze_sentiment,
    compute_interaction_stats,
    compute_linguistic_features,
    sentiment_by_speaker,
)
from flows import (
    FlowError,
    analyze_persona_insights,
    ask_about_persona,
    create_persona_from_chat,
    develop_persona_personality,
)
from llm import LLMError
from personas.constants import ORIGIN_USER_CREATED, persona_avatar_url
from personas.export import PersonaExporter
from personas.quota import QuotaExceededError, ensure_can_create
from web.auth import get_current_user
from web.conversation_store import get_chat_messages
from web.deps import (
    get_config,
    get_flow_provider,
    get_flow_retry,
    get_quota_for_user,
    llm_http_exception,
)
from web.models import (
    AskRequest,
    AskResponse,
    DevelopRequest,
    Persona,
    PersonaCreate,
    PersonaUpdate,
)
from web.persona_store import (
    count_personas,
    delete_persona,
    get_persona,
    list_personas,
    save_persona,
)
from web.user_store import log_event

logger = structlog.get_logger()

router = APIRouter(prefix="/api/personas", tags=["personas"])


def _get_owned_persona(user_id: str, persona_id: str) -> dict:
    persona = get_persona(user_id, persona_id)
    if not persona:
        raise HTTPException(status_code=404, detail="Persona not found")
    return persona


@router.get("", response_model=list[Persona])
async def list_user_personas(
    q: str | None = Query(None, max_length=100),
    user: dict = Depends(get_current_user),
):
    return [Persona(**p) for p in list_personas(user["id"], search=q)]


@router.post("", response_model=Persona, status_code=201)
async def create_persona(body: PersonaCreate, user: dict = Depends(get_current_user)):
    user_id = user["id"]
    config = get_config()
    try:
        ensure_can_create(count_personas(user_id), get_quota_for_user(user_id))
        provider = get_flow_provider(user_id)
        result = await asyncio.to_thread(
            create_persona_from_chat,
            provider,
            {"chat_history": body.chat_history},
            config.llm.max_tokens,
            get_flow_retry(),
        )
        name = body.name.strip()
        persona = save_persona(
            user_id,
            {
                "name": name,
                "persona_description": result.persona_description,
                "chat_history": body.chat_history,
                "category": (body.category or "").strip() or None,
                "origin_type": ORIGIN_USER_CREATED,
                "mbti": body.mbti,
                "age": body.age,
                "gender": body.gender,
                "avatar_url": persona_avatar_url(f"{name}{int(time.time() * 1000)}"),
            },
        )
        log_event("persona_created", user_id, {"origin": ORIGIN_USER_CREATED})
        return Persona(**persona)
    except QuotaExceededError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except HTTPException:
        raise
    except (LLMError, FlowError) as e:
        raise llm_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{persona_id}", response_model=Persona)
async def get_persona_detail(persona_id: str, user: dict = Depends(get_current_user)):
    return Persona(**_get_owned_persona(user["id"], persona_id))


@router.patch("/{persona_id}", response_model=Persona)
async def update_persona(
    persona_id: str, body: PersonaUpdate, user: dict = Depends(get_current_user)
):
    persona = _get_owned_persona(user["id"], persona_id)
    changes = body.model_dump(exclude_unset=True)
    if "category" in changes:
        changes["category"] = (changes["category"] or "").strip() or None
    persona.update(changes)
    return Persona(**save_persona(user["id"], persona))


@router.delete("/{persona_id}", status_code=204)
async def remove_persona(persona_id: str, user: dict = Depends(get_current_user)):
    if not delete_persona(user["id"], persona_id):
        raise HTTPException(status_code=404, detail="Persona not found")
    log_event("persona_deleted", user["id"])
    return Response(status_code=204)


def _local_stats(persona: dict) -> dict:
    text = persona.get("chat_history") or ""
    lines = [line for line in text.splitlines() if line.strip()]
    return {
        "linguistic_features": compute_linguistic_features(text),
        "sentiment": analyze_sentiment(text),
        "sentiment_by_speaker": sentiment_by_speaker(lines),
        "interaction_stats": compute_interaction_stats(
            get_chat_messages(persona["id"], limit=None)
        ),
    }


@router.post("/{persona_id}/insights", response_model=Persona)
async def analyze_insights(persona_id: str, user: dict = Depends(get_current_user)):
    """Run the insights flow and store it with locally computed statistics."""
    user_id = user["id"]
    persona = _get_owned_persona(user_id, persona_id)
    if not persona.get("chat_history", "").strip():
        raise HTTPException(status_code=400, detail="Persona has no chat history to analyze")
    try:
        provider = get_flow_provider(user_id)
        result = await asyncio.to_thread(
            analyze_persona_insights,
            provider,
            {
                "chat_history": persona["chat_history"],
                "mbti_type": persona.get("mbti"),
                "age": persona.get("age"),
                "gender": persona.get("gender"),
            },
            get_config().llm.max_tokens,
            get_flow_retry(),
        )
    except HTTPException:
        raise
    except (LLMError, FlowError) as e:
        raise llm_http_exception(e)

    persona["personality_insights"] = {
        "summary": result.personality_insights,
        "analyzed_at": datetime.now(timezone.utc).isoformat(),
        **_local_stats(persona),
    }
    logger.info("personas.insights_updated", user_id=user_id, persona_id=persona_id)
    return Persona(**save_persona(user_id, persona))


@router.post("/{persona_id}/ask", response_model=AskResponse)
async def ask_persona(persona_id: str, body: AskRequest, user: dict = Depends(get_current_user)):
    persona = _get_owned_persona(user["id"], persona_id)
    description = persona.get("persona_description") or ""
    try:
        # Blank descriptions are answered locally; don't spend shared-key quota on them
        provider = get_flow_provider(user["id"]) if description.strip() else None
        result = await asyncio.to_thread(
            ask_about_persona,
            provider,
            {"persona_description": description, "question": body.question},
            1024,
            get_flow_retry(),
        )
        return AskResponse(answer=result.answer)
    except HTTPException:
        raise
    except (LLMError, FlowError) as e:
        raise llm_http_exception(e)


@router.post("/{persona_id}/develop", response_model=Persona)
async def develop_persona(
    persona_id: str, body: DevelopRequest, user: dict = Depends(get_current_user)
):
    user_id = user["id"]
    persona = _get_owned_persona(user_id, persona_id)
    if not persona.get("persona_description", "").strip():
        raise HTTPException(status_code=400, detail="Persona has no description to develop")
    try:
        provider = get_flow_provider(user_id)
        result = await asyncio.to_thread(
            develop_persona_personality,
            provider,
            {
                "current_persona_description": persona["persona_description"],
                "development_prompts": body.development_prompts,
                "name": persona.get("name"),
                "mbti_type": persona.get("mbti"),
                "age": persona.get("age"),
                "gender": persona.get("gender"),
            },
            get_config().llm.max_tokens,
            get_flow_retry(),
        )
    except HTTPException:
        raise
    except (LLMError, FlowError) as e:
        raise llm_http_exception(e)

    persona["persona_description"] = result.new_persona_description
    log_event("persona_developed", user_id)
    return Persona(**save_persona(user_id, persona))


@router.get("/{persona_id}/export")
async def export_persona(persona_id: str, user: dict = Depends(get_current_user)):
    data = PersonaExporter(user["id"]).export_persona(persona_id)
    if not data:
        raise HTTPException(status_code=404, detail="Persona not found")
    return data
