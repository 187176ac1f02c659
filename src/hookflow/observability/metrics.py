"""Metrics recording — counters and histograms for hook dispatch."""

from __future__ import annotations

from typing import Any

from opentelemetry import metrics

# Lazily-created instruments
_meter: Any = None
_hook_run_counter: Any = None
_hook_timeout_counter: Any = None
_hook_duration_histogram: Any = None
_dispatch_counter: Any = None
_dispatch_duration_histogram: Any = None


def _ensure_instruments() -> None:
    """Create meter and instruments on first use."""
    global _meter, _hook_run_counter, _hook_timeout_counter, _hook_duration_histogram
    global _dispatch_counter, _dispatch_duration_histogram

    if _meter is not None:
        return

    _meter = metrics.get_meter("hookflow")
    _hook_run_counter = _meter.create_counter(
        "hookflow.hook_runs",
        description="Hook handler invocations",
    )
    _hook_timeout_counter = _meter.create_counter(
        "hookflow.hook_timeouts",
        description="Hook handlers that missed their deadline",
    )
    _hook_duration_histogram = _meter.create_histogram(
        "hookflow.hook_duration",
        description="Hook handler wall-clock duration",
        unit="ms",
    )
    _dispatch_counter = _meter.create_counter(
        "hookflow.dispatches",
        description="Hook dispatches executed",
    )
    _dispatch_duration_histogram = _meter.create_histogram(
        "hookflow.dispatch_duration",
        description="Total duration of a hook dispatch",
        unit="ms",
    )


def record_hook_execution(
    event: str,
    duration_ms: float,
    *,
    success: bool = True,
    timed_out: bool = False,
) -> None:
    """Record one handler invocation."""
    _ensure_instruments()
    attrs = {"event": event, "success": str(success).lower()}
    _hook_run_counter.add(1, attrs)
    _hook_duration_histogram.record(duration_ms, attrs)
    if timed_out:
        _hook_timeout_counter.add(1, {"event": event})


def record_dispatch(
    event: str,
    duration_ms: float,
    *,
    handlers: int = 0,
    success: bool = True,
    stopped_early: bool = False,
) -> None:
    """Record a completed dispatch."""
    _ensure_instruments()
    attrs = {
        "event": event,
        "success": str(success).lower(),
        "stopped_early": str(stopped_early).lower(),
    }
    _dispatch_counter.add(1, attrs)
    _dispatch_duration_histogram.record(duration_ms, {"event": event, "handlers": handlers})


def reset_instruments() -> None:
    """Reset module-level instruments — useful for test isolation."""
    global _meter, _hook_run_counter, _hook_timeout_counter, _hook_duration_histogram
    global _dispatch_counter, _dispatch_duration_histogram
    _meter = None
    _hook_run_counter = None
    _hook_timeout_counter = None
    _hook_duration_histogram = None
    _dispatch_counter = None
    _dispatch_duration_histogram = None
