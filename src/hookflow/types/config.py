"""Configuration types for hookflow."""

from __future__ import annotations

from dataclasses import dataclass, field

from hookflow.observability.exporters import ObservabilityConfig
from hookflow.types.hooks import HookExecutionOptions

DEFAULT_EVENT_TOPIC = "hooks.executed"


@dataclass(frozen=True, slots=True)
class HooksConfig:
    """Executor defaults, applied when ``execute`` is called without options."""

    parallel: bool = False
    continue_on_error: bool = True
    timeout_ms: float | None = None
    emit_events: bool = True  # Publish a summary on the event bus after each dispatch
    event_topic: str = DEFAULT_EVENT_TOPIC
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def execution_options(self) -> HookExecutionOptions:
        return HookExecutionOptions(
            parallel=self.parallel,
            continue_on_error=self.continue_on_error,
            timeout_ms=self.timeout_ms,
        )
