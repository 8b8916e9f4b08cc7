"""Multi-provider LLM abstraction layer."""

from .base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError
from .factory import create_llm_provider, resolve_env_api_key

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "resolve_env_api_key",
    "LLMError",
    "LLMRateLimitError",
    "LLMAuthError",
]
