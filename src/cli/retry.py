"""Retry utilities with exponential backoff for LLM calls."""

import logging

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from llm import LLMRateLimitError

logger = structlog.stdlib.get_logger(__name__)


def llm_retry(
    max_attempts: int = 3,
    min_wait: float = 2.0,
    max_wait: float = 30.0,
    exceptions: tuple = (LLMRateLimitError,),
):
    """Retry decorator for LLM API calls.

    Only rate-limit errors are retried by default; auth and validation errors
    surface immediately.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def retry_from_config(config):
    """Build an llm_retry decorator from a PersonaSimConfig (or its retry section)."""
    retry_config = getattr(config, "retry", config)
    return llm_retry(
        max_attempts=retry_config.max_attempts,
        min_wait=retry_config.min_wait,
        max_wait=retry_config.max_wait,
    )
