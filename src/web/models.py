"""Pydantic request/response schemas for the web API."""

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, TypeAdapter, field_validator

from personas.constants import CATEGORY_MAX_LENGTH, GENDER_OPTIONS, MBTI_TYPES

_HTTP_URL = TypeAdapter(HttpUrl)


def _check_mbti(v: Optional[str]) -> Optional[str]:
    if v in (None, ""):
        return None
    v = v.upper()
    if v not in MBTI_TYPES:
        raise ValueError(f"Invalid MBTI type: {v}")
    return v


def _check_gender(v: Optional[str]) -> Optional[str]:
    if v in (None, ""):
        return None
    if v not in GENDER_OPTIONS:
        raise ValueError(f"Gender must be one of {GENDER_OPTIONS}")
    return v


# --- Auth ---


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: Optional[str] = Field(None, min_length=2, max_length=50)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: "UserProfile"


# --- Profile ---


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    last_login: Optional[str] = None
    email_verified: bool = False
    persona_quota: int
    persona_count: int = 0
    gemini_api_key_set: bool = False


class ProfileUpdate(BaseModel):
    """Edit-profile form. Empty avatar_url resets to the default avatar."""

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar_url: Optional[str] = None
    gemini_api_key: Optional[str] = None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return v
        _HTTP_URL.validate_python(v)
        return v


# --- Settings ---


class SettingsUpdate(BaseModel):
    llm_provider: Optional[Literal["auto", "gemini", "claude", "openai"]] = None
    llm_model: Optional[str] = None
    llm_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None


class SettingsResponse(BaseModel):
    """Settings with bool mask for secrets (never raw keys)."""

    llm_provider: Optional[str] = None
    llm_model: Optional[str] = None
    llm_api_key_set: bool = False
    llm_api_key_hint: Optional[str] = None
    gemini_api_key_set: bool = False
    gemini_api_key_hint: Optional[str] = None


# --- Personas ---


class PersonaCreate(BaseModel):
    """Create-persona form."""

    name: str = Field(..., min_length=2, max_length=50)
    chat_history: str = Field(..., min_length=50)
    category: Optional[str] = Field(None, max_length=CATEGORY_MAX_LENGTH)
    mbti: Optional[str] = None
    age: Optional[int] = Field(None, ge=1, le=120)
    gender: Optional[str] = None

    @field_validator("mbti")
    @classmethod
    def validate_mbti(cls, v: Optional[str]) -> Optional[str]:
        return _check_mbti(v)

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v: Optional[str]) -> Optional[str]:
        return _check_gender(v)


class PersonaUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    category: Optional[str] = Field(None, max_length=CATEGORY_MAX_LENGTH)
    mbti: Optional[str] = None
    age: Optional[int] = Field(None, ge=1, le=120)
    gender: Optional[str] = None

    @field_validator("mbti")
    @classmethod
    def validate_mbti(cls, v: Optional[str]) -> Optional[str]:
        return _check_mbti(v)

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v: Optional[str]) -> Optional[str]:
        return _check_gender(v)


class Persona(BaseModel):
    id: str
    name: str
    persona_description: str = ""
    created_at: str
    avatar_url: Optional[str] = None
    category: Optional[str] = None
    origin_type: Literal["user-created", "chat-derived"] = "user-created"
    chat_history: str = ""
    mbti: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    personality_insights: Optional[dict] = None
    derived_from_chat_id: Optional[str] = None
    derived_representing_user_id: Optional[str] = None
    source_chat_messages_count: Optional[int] = None


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)


class AskResponse(BaseModel):
    answer: str


class DevelopRequest(BaseModel):
    development_prompts: str = Field(..., min_length=1, max_length=5000)


# --- Chat ---


class ChatMessage(BaseModel):
    id: str
    sender: Literal["user", "ai"]
    text: str
    timestamp: str
    context: Optional[str] = None


class ChatSend(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    context: Optional[str] = Field(None, max_length=500)


class ChatExchange(BaseModel):
    user_message: ChatMessage
    ai_message: ChatMessage


class UserChatMessage(BaseModel):
    id: str
    sender_user_id: str
    text: str
    timestamp: str


class UserChatSend(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class UserChatSendResponse(BaseModel):
    message: UserChatMessage
    derived_persona_updated: bool = False


# --- Contacts ---


class ContactAdd(BaseModel):
    email: EmailStr


class Contact(BaseModel):
    id: str
    name: str
    avatar_url: Optional[str] = None
    added_at: str


# --- Billing ---


class QuotaResponse(BaseModel):
    persona_quota: int
    persona_count: int
    remaining: int
    price_pounds: float
    currency: str
    personas_per_purchase: int
    stripe_enabled: bool


class CheckoutResponse(BaseModel):
    success: bool
    message: str
    checkout_url: Optional[str] = None
    session_id: Optional[str] = None
    new_quota: Optional[int] = None


TokenResponse.model_rebuild()
