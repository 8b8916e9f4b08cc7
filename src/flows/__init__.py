"""LLM prompt flows that turn chat transcripts into personas and replies."""

from .base import FlowError, parse_json_object
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
from .persona import (
    MISSING_DESCRIPTION_ANSWER,
    analyze_persona_insights,
    ask_about_persona,
    create_persona_from_chat,
    develop_persona_personality,
    generate_response,
)

__all__ = [
    "FlowError",
    "parse_json_object",
    "MISSING_DESCRIPTION_ANSWER",
    "create_persona_from_chat",
    "analyze_persona_insights",
    "ask_about_persona",
    "develop_persona_personality",
    "generate_response",
    "CreatePersonaInput",
    "CreatePersonaOutput",
    "AnalyzeInsightsInput",
    "AnalyzeInsightsOutput",
    "AskAboutPersonaInput",
    "AskAboutPersonaOutput",
    "DevelopPersonaInput",
    "DevelopPersonaOutput",
    "GenerateResponseInput",
    "GenerateResponseOutput",
]
