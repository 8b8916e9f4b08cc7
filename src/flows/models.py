"""Input/output schemas for the persona prompt flows."""

from typing import Optional

from pydantic import BaseModel, Field


class CreatePersonaInput(BaseModel):
    chat_history: str = Field(..., min_length=1)


class CreatePersonaOutput(BaseModel):
    persona_description: str


class AnalyzeInsightsInput(BaseModel):
    chat_history: str = Field(..., min_length=1)
    mbti_type: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None


class AnalyzeInsightsOutput(BaseModel):
    personality_insights: str


class AskAboutPersonaInput(BaseModel):
    # Blank descriptions are answered without an LLM call, so no min_length here
    persona_description: str = ""
    question: str = Field(..., min_length=1)


class AskAboutPersonaOutput(BaseModel):
    answer: str


class DevelopPersonaInput(BaseModel):
    current_persona_description: str = Field(..., min_length=1)
    development_prompts: str = Field(..., min_length=1)
    name: Optional[str] = None
    mbti_type: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None


class DevelopPersonaOutput(BaseModel):
    new_persona_description: str


class GenerateResponseInput(BaseModel):
    persona: str = Field(..., min_length=1, description="Persona description to role-play")
    input: str = Field(..., min_length=1, description="Latest user message")
    context: str = "General conversation"
    history: list[dict] = Field(default_factory=list)


class GenerateResponseOutput(BaseModel):
    response: str
