"""LLM provider factory with auto-detection."""

import os

from .base import LLMError, LLMProvider

# First env var that is set wins
_PROVIDER_ENV_KEYS = {
    "gemini": ["GEMINI_API_KEY", "GOOGLE_GENAI_API_KEY", "GOOGLE_API_KEY"],
    "claude": ["ANTHROPIC_API_KEY"],
    "openai": ["OPENAI_API_KEY"],
}

_AUTO_DETECT_ORDER = ["gemini", "claude", "openai"]


def resolve_env_api_key(provider: str) -> str | None:
    """Return the first configured env key for a provider."""
    for env_var in _PROVIDER_ENV_KEYS.get(provider, []):
        val = os.getenv(env_var)
        if val:
            return val
    return None


def create_llm_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
) -> LLMProvider:
    """Create an LLM provider instance.

    Args:
        provider: "gemini", "claude", "openai", "auto", or None (auto-detect)
        api_key: Explicit API key (overrides env var)
        model: Model name (None = provider default)
        client: Pre-built SDK client for testing/DI

    Returns:
        LLMProvider instance
    """
    resolved = provider or "auto"

    if resolved == "auto":
        resolved = _auto_detect_provider(api_key)

    if not api_key and not client:
        api_key = resolve_env_api_key(resolved)

    if resolved == "gemini":
        from .providers.gemini import GeminiProvider

        return GeminiProvider(api_key=api_key, model=model, client=client)
    elif resolved == "claude":
        from .providers.claude import ClaudeProvider

        return ClaudeProvider(api_key=api_key, model=model, client=client)
    elif resolved == "openai":
        from .providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model, client=client)
    else:
        raise LLMError(f"Unknown provider: {resolved}. Use: gemini, claude, openai")


def _detect_provider_from_key(api_key: str) -> str | None:
    """Infer provider from API key prefix."""
    if api_key.startswith("sk-ant-"):
        return "claude"
    if api_key.startswith("sk-"):
        return "openai"
    if api_key.startswith("AI"):
        return "gemini"
    return None


def _auto_detect_provider(api_key: str | None = None) -> str:
    """Detect provider from explicit key prefix, then env vars."""
    if api_key:
        inferred = _detect_provider_from_key(api_key)
        if inferred:
            return inferred

    for name in _AUTO_DETECT_ORDER:
        if resolve_env_api_key(name):
            return name
    raise LLMError(
        "No LLM API key found. Set one of: GEMINI_API_KEY, GOOGLE_API_KEY, "
        "ANTHROPIC_API_KEY, OPENAI_API_KEY"
    )
