"""hookflow — lifecycle hook registry and dispatcher for tool-orchestration hosts.

Usage:
    import hookflow

    registry = hookflow.create_hook_registry()
    executor = hookflow.create_hook_executor(registry, event_bus)

    async def log_tool(ctx):
        print("Before tool use:", ctx.tool_name)
        return hookflow.HookResult(success=True)

    hook_id = registry.register(
        hookflow.HookEvent.PRE_TOOL_USE, log_tool, hookflow.HookPriority.HIGH,
    )
    result = await executor.execute(
        hookflow.HookEvent.PRE_TOOL_USE,
        hookflow.build_hook_context(
            hookflow.HookEvent.PRE_TOOL_USE,
            tool=hookflow.ToolInfo(name="Read", parameters={"path": "file.py"}),
        ),
    )
    registry.unregister(hook_id)
"""

from hookflow.bus import EventBus, InMemoryEventBus
from hookflow.core.config import load_hooks_config
from hookflow.hooks.errors import (
    HandlerFailure,
    HandlerTimeout,
    HookContractError,
    HookError,
    InvalidRegistrationError,
    UnknownHookEventError,
)
from hookflow.hooks.events import HookContext, build_hook_context
from hookflow.hooks.executor import HookExecutor, create_hook_executor
from hookflow.hooks.registry import HookRegistry, create_hook_registry
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

__version__ = "0.1.0"

__all__ = [
    # Core API
    "HookExecutor",
    "HookRegistry",
    "create_hook_executor",
    "create_hook_registry",
    # Hook types
    "AggregatedHookResult",
    "HookContext",
    "HookDefinition",
    "HookEvent",
    "HookExecutionOptions",
    "HookExecutionRecord",
    "HookHandler",
    "HookPriority",
    "HookResult",
    "HookStats",
    "build_hook_context",
    # Context payloads
    "AgentInfo",
    "CommandInfo",
    "ErrorInfo",
    "FileOperationInfo",
    "MemoryInfo",
    "SessionInfo",
    "TaskInfo",
    "ToolInfo",
    # Configuration
    "HooksConfig",
    "load_hooks_config",
    # Event bus
    "EventBus",
    "InMemoryEventBus",
    # Errors
    "HandlerFailure",
    "HandlerTimeout",
    "HookContractError",
    "HookError",
    "InvalidRegistrationError",
    "UnknownHookEventError",
]
