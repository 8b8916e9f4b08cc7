"""In-process metrics for LLM flow calls, logged as a summary on shutdown."""

import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """Counters and timers keyed by dotted names (e.g. ``flow.ask_about_persona.calls``)."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Record wall-clock duration of the wrapped block, even when it raises."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._timers.setdefault(name, []).append(time.monotonic() - start)

    def summary(self) -> dict[str, Any]:
        timers = {}
        for name, durations in self._timers.items():
            timers[name] = {
                "count": len(durations),
                "avg": round(sum(durations) / len(durations), 4),
                "max": round(max(durations), 4),
            }
        return {"counters": dict(self._counters), "timers": timers}

    def reset(self):
        self._counters.clear()
        self._timers.clear()


metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog."""
    logger.info("run_summary", **metrics.summary())
