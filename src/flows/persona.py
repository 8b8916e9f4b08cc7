"""The five persona prompt flows."""

from typing import Callable

import structlog

from llm import LLMProvider

from . import prompts
from .base import run_flow, validate_input
from .models import (
    AnalyzeInsightsInput,
    AnalyzeInsightsOutput,
    AskAboutPersonaInput,
    AskAboutPersonaOutput,
    CreatePersonaInput,
    CreatePersonaOutput,
    DevelopPersonaInput,
    DevelopPersonaOutput,
    GenerateResponseInput,
    GenerateResponseOutput,
)

logger = structlog.get_logger()

MISSING_DESCRIPTION_ANSWER = (
    "The persona description is missing or empty, so I cannot answer questions about it."
)


def _known(value) -> str:
    return "Not specified" if value in (None, "") else str(value)


def create_persona_from_chat(
    provider: LLMProvider,
    data: CreatePersonaInput | dict,
    max_tokens: int = 2048,
    retrying: Callable | None = None,
) -> CreatePersonaOutput:
    """Summarize a chat transcript into a persona description."""
    inp = validate_input("create_persona_from_chat", CreatePersonaInput, data)
    return run_flow(
        "create_persona_from_chat",
        provider,
        prompts.CREATE_PERSONA.format(chat_history=inp.chat_history),
        CreatePersonaOutput,
        system=prompts.CREATE_PERSONA_SYSTEM,
        max_tokens=max_tokens,
        required=("persona_description",),
        retrying=retrying,
    )


def analyze_persona_insights(
    provider: LLMProvider,
    data: AnalyzeInsightsInput | dict,
    max_tokens: int = 2048,
    retrying: Callable | None = None,
) -> AnalyzeInsightsOutput:
    inp = validate_input("analyze_persona_insights", AnalyzeInsightsInput, data)
    prompt = prompts.ANALYZE_INSIGHTS.format(
        chat_history=inp.chat_history,
        mbti_type=_known(inp.mbti_type),
        age=_known(inp.age),
        gender=_known(inp.gender),
    )
    return run_flow(
        "analyze_persona_insights",
        provider,
        prompt,
        AnalyzeInsightsOutput,
        system=prompts.ANALYZE_INSIGHTS_SYSTEM,
        max_tokens=max_tokens,
        required=("personality_insights",),
        retrying=retrying,
    )


def ask_about_persona(
    provider: LLMProvider,
    data: AskAboutPersonaInput | dict,
    max_tokens: int = 1024,
    retrying: Callable | None = None,
) -> AskAboutPersonaOutput:
    """Answer a question about a persona from its description alone.

    A blank description short-circuits with a fixed answer and no LLM call.
    """
    inp = validate_input("ask_about_persona", AskAboutPersonaInput, data)
    if not inp.persona_description.strip():
        logger.info("flow.ask_about_persona.empty_description")
        return AskAboutPersonaOutput(answer=MISSING_DESCRIPTION_ANSWER)
    return run_flow(
        "ask_about_persona",
        provider,
        prompts.ASK_ABOUT_PERSONA.format(
            persona_description=inp.persona_description, question=inp.question
        ),
        AskAboutPersonaOutput,
        system=prompts.ASK_ABOUT_PERSONA_SYSTEM,
        max_tokens=max_tokens,
        required=("answer",),
        retrying=retrying,
    )


def develop_persona_personality(
    provider: LLMProvider,
    data: DevelopPersonaInput | dict,
    max_tokens: int = 2048,
    retrying: Callable | None = None,
) -> DevelopPersonaOutput:
    inp = validate_input("develop_persona_personality", DevelopPersonaInput, data)
    prompt = prompts.DEVELOP_PERSONA.format(
        current_persona_description=inp.current_persona_description,
        development_prompts=inp.development_prompts,
        name=_known(inp.name),
        mbti_type=_known(inp.mbti_type),
        age=_known(inp.age),
        gender=_known(inp.gender),
    )
    return run_flow(
        "develop_persona_personality",
        provider,
        prompt,
        DevelopPersonaOutput,
        system=prompts.DEVELOP_PERSONA_SYSTEM,
        max_tokens=max_tokens,
        required=("new_persona_description",),
        retrying=retrying,
    )


def generate_response(
    provider: LLMProvider,
    data: GenerateResponseInput | dict,
    max_tokens: int = 1024,
    retrying: Callable | None = None,
) -> GenerateResponseOutput:
    """Reply in character as the persona.

    An empty ``response`` is returned as-is; callers decide on the fallback text.
    """
    inp = validate_input("generate_response", GenerateResponseInput, data)
    return run_flow(
        "generate_response",
        provider,
        prompts.GENERATE_RESPONSE.format(input=inp.input),
        GenerateResponseOutput,
        system=prompts.GENERATE_RESPONSE_SYSTEM.format(persona=inp.persona, context=inp.context),
        history=inp.history,
        max_tokens=max_tokens,
        retrying=retrying,
    )
