"""Tests for in-process metrics."""

import pytest

from observability import Metrics, log_run_summary, metrics


def test_counters():
    m = Metrics()
    m.counter("flow.calls")
    m.counter("flow.calls", 2)
    assert m.get("flow.calls") == 3
    assert m.get("missing") == 0


def test_timer_records_on_error():
    m = Metrics()
    with pytest.raises(RuntimeError):
        with m.timer("flow.duration"):
            raise RuntimeError("boom")
    with m.timer("flow.duration"):
        pass

    timers = m.summary()["timers"]
    assert timers["flow.duration"]["count"] == 2
    assert timers["flow.duration"]["max"] >= timers["flow.duration"]["avg"]


def test_reset():
    m = Metrics()
    m.counter("a")
    with m.timer("b"):
        pass
    m.reset()
    assert m.summary() == {"counters": {}, "timers": {}}


def test_log_run_summary():
    metrics.counter("flow.develop_persona.calls")
    log_run_summary()
