"""Base LLM provider abstraction."""

from abc import ABC, abstractmethod


class LLMError(Exception):
    """Base LLM error."""


class LLMRateLimitError(LLMError):
    """Rate limit hit."""


class LLMAuthError(LLMError):
    """Authentication failure."""


class LLMProvider(ABC):
    """Abstract LLM provider interface."""

    provider_name: str = "base"

    @abstractmethod
    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        json_mode: bool = False,
        temperature: float | None = None,
    ) -> str:
        """Generate a response from messages.

        Args:
            messages: List of {"role": "user"|"assistant", "content": ...} dicts
            system: Optional system prompt
            max_tokens: Max response tokens
            json_mode: Ask the model for a bare JSON object where the API supports it
            temperature: Sampling temperature (None = provider default)

        Returns:
            Generated text (may be empty)
        """
        ...
