"""OpenTelemetry-based observability for hookflow."""

from hookflow.observability.exporters import ObservabilityConfig, configure_exporters, shutdown
from hookflow.observability.metrics import (
    record_dispatch,
    record_hook_execution,
    reset_instruments,
)
from hookflow.observability.tracing import get_tracer, span

__all__ = [
    "ObservabilityConfig",
    "configure_exporters",
    "get_tracer",
    "record_dispatch",
    "record_hook_execution",
    "reset_instruments",
    "shutdown",
    "span",
]
