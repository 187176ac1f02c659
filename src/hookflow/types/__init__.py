"""Type definitions for hookflow."""

from hookflow.types.config import HooksConfig
from hookflow.types.hooks import (
    AggregatedHookResult,
    HookDefinition,
    HookEvent,
    HookExecutionOptions,
    HookExecutionRecord,
    HookHandler,
    HookPriority,
    HookResult,
    HookStats,
)
from hookflow.types.payloads import (
    AgentInfo,
    CommandInfo,
    ErrorInfo,
    FileOperationInfo,
    MemoryInfo,
    SessionInfo,
    TaskInfo,
    ToolInfo,
)

__all__ = [
    "AgentInfo",
    "AggregatedHookResult",
    "CommandInfo",
    "ErrorInfo",
    "FileOperationInfo",
    "HookDefinition",
    "HookEvent",
    "HookExecutionOptions",
    "HookExecutionRecord",
    "HookHandler",
    "HookPriority",
    "HookResult",
    "HookStats",
    "HooksConfig",
    "MemoryInfo",
    "SessionInfo",
    "TaskInfo",
    "ToolInfo",
]
