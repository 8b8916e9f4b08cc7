"""Claude (Anthropic) LLM provider."""

from ..base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider.

    The Messages API has no JSON response mode; json_mode is handled by the
    prompt and the caller's fence-stripping parser.
    """

    provider_name = "claude"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.model = model or "claude-sonnet-4-20250514"

        if client:
            self.client = client
            return

        from anthropic import Anthropic

        self.client = Anthropic(api_key=api_key)

    def _handle_error(self, e: Exception):
        from anthropic import APIError, AuthenticationError, RateLimitError

        if isinstance(e, AuthenticationError):
            raise LLMAuthError(f"Claude auth failed: {e}") from e
        if isinstance(e, RateLimitError):
            raise LLMRateLimitError(f"Claude rate limit: {e}") from e
        if isinstance(e, APIError):
            raise LLMError(f"Claude API error: {e}") from e
        raise LLMError(f"Claude error: {e}") from e

    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        json_mode: bool = False,
        temperature: float | None = None,
    ) -> str:
        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = self.client.messages.create(**kwargs)
        except Exception as e:
            self._handle_error(e)
        return "".join(block.text for block in response.content if block.type == "text")
