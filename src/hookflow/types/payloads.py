"""Payload types carried by a HookContext.

These are supplied by the subsystems that fire events (tool engine, command
runner, file layer, session/agent/task managers, memory store, error
reporter). The hook core forwards them untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """A tool invocation."""

    name: str
    parameters: dict[str, Any] = field(default_factory=dict)
    result: Any = None  # Set for post_tool_use
    duration_ms: float | None = None


@dataclass(frozen=True, slots=True)
class CommandInfo:
    """A shell command run by the platform."""

    command: str
    cwd: str | None = None
    exit_code: int | None = None
    output: str | None = None


@dataclass(frozen=True, slots=True)
class FileOperationInfo:
    """A file operation ("read", "write", "edit", "delete", ...)."""

    operation: str
    path: str
    content: str | None = None


@dataclass(frozen=True, slots=True)
class SessionInfo:
    """Metadata about a session."""

    session_id: str
    started_at: datetime | None = None
    ended_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class AgentInfo:
    """A sub-agent being spawned."""

    agent_id: str
    agent_type: str
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TaskInfo:
    """A unit of work tracked by the task manager."""

    task_id: str
    description: str = ""
    status: str | None = None
    result: Any = None


@dataclass(frozen=True, slots=True)
class MemoryInfo:
    """A memory store or retrieve operation."""

    key: str
    namespace: str = "default"
    value: Any = None


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """An error reported to the platform."""

    message: str
    error_type: str = ""
    context: str | None = None
    recoverable: bool = True

    @classmethod
    def from_exception(
        cls, exc: BaseException, *, context: str | None = None, recoverable: bool = True,
    ) -> ErrorInfo:
        return cls(
            message=str(exc),
            error_type=type(exc).__name__,
            context=context,
            recoverable=recoverable,
        )
