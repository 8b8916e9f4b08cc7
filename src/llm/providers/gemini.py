"""Google Gemini LLM provider using google-genai SDK."""

from ..base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError

DEFAULT_MODEL = "gemini-2.0-flash"


def _handle_gemini_error(e: Exception):
    err_str = str(e).lower()
    if "api key" in err_str or "authentication" in err_str or "permission" in err_str:
        raise LLMAuthError(f"Gemini auth failed: {e}") from e
    if ("resource" in err_str and "exhausted" in err_str) or "rate" in err_str or "429" in err_str:
        raise LLMRateLimitError(f"Gemini rate limit: {e}") from e
    raise LLMError(f"Gemini API error: {e}") from e


class GeminiProvider(LLMProvider):
    """Google Gemini provider (google-genai SDK)."""

    provider_name = "gemini"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.model_name = model or DEFAULT_MODEL

        if client:
            self.client = client
            return

        if not api_key:
            raise LLMAuthError(
                "Gemini API key missing. Set GEMINI_API_KEY or add your key in Settings."
            )

        from google import genai

        self.client = genai.Client(api_key=api_key)

    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        json_mode: bool = False,
        temperature: float | None = None,
    ) -> str:
        from google.genai import types

        contents = [
            types.Content(
                role="model" if msg["role"] == "assistant" else "user",
                parts=[types.Part.from_text(text=msg["content"])],
            )
            for msg in messages
        ]
        config_kwargs = {"max_output_tokens": max_tokens}
        if system:
            config_kwargs["system_instruction"] = system
        if json_mode:
            config_kwargs["response_mime_type"] = "application/json"
        if temperature is not None:
            config_kwargs["temperature"] = temperature

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=types.GenerateContentConfig(**config_kwargs),
            )
            return response.text or ""
        except Exception as e:
            _handle_gemini_error(e)
