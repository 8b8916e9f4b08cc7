"""Shared plumbing for prompt flows: validate, render, call, parse."""

import json
from typing import Callable, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from cli.retry import llm_retry
from llm import LLMProvider
from observability import metrics

logger = structlog.get_logger()

OutT = TypeVar("OutT", bound=BaseModel)


class FlowError(Exception):
    """A flow produced no usable output or got invalid input."""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[-1]
        if cleaned.endswith("```"):
            cleaned = cleaned[: cleaned.rfind("```")]
    return cleaned.strip()


def parse_json_object(text: str) -> dict:
    """Parse an LLM reply into a dict, tolerating code fences and leading prose."""
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise FlowError("LLM returned an empty response")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Fall back to the outermost {...} span
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise FlowError("LLM response was not JSON")
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise FlowError(f"LLM response was not JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise FlowError("LLM response was not a JSON object")
    return parsed


def validate_input(name: str, model: Type[BaseModel], data) -> BaseModel:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise FlowError(f"Invalid input for {name}: {e.errors()[0]['msg']}") from e


def run_flow(
    name: str,
    provider: LLMProvider,
    prompt: str,
    output_model: Type[OutT],
    system: str | None = None,
    history: list[dict] | None = None,
    max_tokens: int = 2048,
    required: tuple[str, ...] = (),
    retrying: Callable | None = None,
) -> OutT:
    """Call the provider with a rendered prompt and validate the JSON reply.

    Args:
        name: Flow name, used for metrics and log events.
        provider: LLM provider to call.
        prompt: Rendered user prompt.
        output_model: Pydantic model the JSON reply must satisfy.
        system: Optional system prompt.
        history: Prior turns placed before the prompt.
        max_tokens: Max response tokens.
        required: Output fields that must be non-blank.
        retrying: tenacity decorator; defaults to llm_retry().

    Raises:
        FlowError: reply missing, not JSON, or failing validation.
        LLMError: provider failure after retries.
    """
    messages = [*(history or []), {"role": "user", "content": prompt}]
    call = (retrying or llm_retry())(provider.generate)

    metrics.counter(f"flow.{name}.calls")
    with metrics.timer(f"flow.{name}"):
        try:
            raw = call(messages, system=system, max_tokens=max_tokens, json_mode=True)
            data = parse_json_object(raw)
            result = output_model.model_validate(data)
        except ValidationError as e:
            metrics.counter(f"flow.{name}.failures")
            logger.warning("flow.invalid_output", flow=name, error=str(e))
            raise FlowError(f"{name} returned an unexpected shape") from e
        except Exception as e:
            metrics.counter(f"flow.{name}.failures")
            logger.warning("flow.failed", flow=name, error=str(e))
            raise

    for field in required:
        if not str(getattr(result, field, "") or "").strip():
            metrics.counter(f"flow.{name}.failures")
            raise FlowError(f"{name} returned no {field}")

    logger.info("flow.completed", flow=name, provider=provider.provider_name)
    return result
