"""Per-user rate limiting for users on the server's shared LLM key.

In-memory sliding window; resets on deploy.
"""

import time
from collections import defaultdict

from fastapi import HTTPException

DAILY_LIMIT = 30
WINDOW_SECONDS = 86400  # 24h
BURST_INTERVAL = 10.0

LIMIT_DETAIL = "Shared AI quota reached. Add your own Gemini API key in your profile for unlimited use."

# user_id -> list of timestamps
_request_log: dict[str, list[float]] = defaultdict(list)


def _prune(user_id: str, now: float) -> list[float]:
    """Remove timestamps older than the window."""
    cutoff = now - WINDOW_SECONDS
    log = [t for t in _request_log[user_id] if t > cutoff]
    _request_log[user_id] = log
    return log


def check_shared_key_rate_limit(
    user_id: str, daily_limit: int = DAILY_LIMIT, burst_interval: float = BURST_INTERVAL
) -> None:
    """Raise 429 if a shared-key user exceeds the burst or daily limit, else record the call."""
    now = time.time()
    log = _prune(user_id, now)

    if log and (now - log[-1]) < burst_interval:
        retry_after = int(burst_interval - (now - log[-1])) + 1
        raise HTTPException(
            status_code=429, detail=LIMIT_DETAIL, headers={"Retry-After": str(retry_after)}
        )

    if len(log) >= daily_limit:
        retry_after = int(log[0] + WINDOW_SECONDS - now) + 1
        raise HTTPException(
            status_code=429, detail=LIMIT_DETAIL, headers={"Retry-After": str(retry_after)}
        )

    _request_log[user_id].append(now)


def reset_rate_limits() -> None:
    """Clear all rate limit state. Used in tests."""
    _request_log.clear()
