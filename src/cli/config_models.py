"""Pydantic configuration models for PersonaSim."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"auto", "claude", "openai", "gemini"}

_DEFAULT_HOME = Path(os.environ.get("PERSONASIM_HOME", "~/personasim"))


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "gemini"
    model: Optional[str] = None  # None = provider default
    api_key: Optional[str] = None
    max_tokens: int = 2048
    temperature: Optional[float] = None

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v


class PathsConfig(BaseModel):
    """File paths configuration."""

    data_dir: Path = _DEFAULT_HOME
    db_file: Path = _DEFAULT_HOME / "personasim.db"
    log_file: Path = _DEFAULT_HOME / "personasim.log"

    @model_validator(mode="after")
    def expand_paths(self):
        self.data_dir = self.data_dir.expanduser()
        self.db_file = self.db_file.expanduser()
        self.log_file = self.log_file.expanduser()
        return self


class BillingConfig(BaseModel):
    """Persona quota and Stripe checkout settings."""

    free_persona_limit: int = 2
    personas_per_purchase: int = 1
    price_pounds: float = 2.0
    currency: str = "gbp"
    price_id: str = "price_YOUR_STRIPE_PRICE_ID_FOR_PERSONA_SLOT"
    app_url: Optional[str] = None

    @field_validator("free_persona_limit", "personas_per_purchase")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Quota values must be >= 0, got {v}")
        return v

    @model_validator(mode="after")
    def env_overrides(self):
        """STRIPE_PRICE_ID_PERSONA_SLOT / APP_URL win over the file."""
        self.price_id = os.getenv("STRIPE_PRICE_ID_PERSONA_SLOT") or self.price_id
        self.app_url = os.getenv("APP_URL") or self.app_url
        return self


class ChatConfig(BaseModel):
    """Persona chat and chat-derived persona behaviour."""

    history_limit: int = 50
    messages_per_persona_update: int = 5
    default_context: str = "General conversation"
    max_history_chars: int = 24_000

    @field_validator("messages_per_persona_update", "history_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be >= 1, got {v}")
        return v


class SharedKeyLimitConfig(BaseModel):
    """Limits for users running on the server's shared LLM key."""

    daily_limit: int = 30
    burst_interval: float = 10.0


class RetryConfig(BaseModel):
    """Retry/backoff configuration for rate-limited LLM calls."""

    max_attempts: int = 3
    min_wait: float = 2.0
    max_wait: float = 30.0


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class PersonaSimConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    billing: BillingConfig = Field(default_factory=BillingConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    rate_limits: SharedKeyLimitConfig = Field(default_factory=SharedKeyLimitConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in the API key."""
        key = self.llm.api_key
        if key and key.startswith("${") and key.endswith("}"):
            self.llm.api_key = os.getenv(key[2:-1], "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "PersonaSimConfig":
        if "paths" in data:
            for key in ("data_dir", "db_file", "log_file"):
                if isinstance(data["paths"].get(key), str):
                    data["paths"][key] = Path(data["paths"][key])
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
