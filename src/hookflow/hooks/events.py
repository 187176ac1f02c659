"""Hook context builder for event data."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from hookflow.types.hooks import HookEvent, coerce_event
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


@dataclass(slots=True)
class HookContext:
    """Context passed to hooks when they fire.

    Only the payload matching the event's domain is normally set. ``data`` is
    shared by every handler of one dispatch, so earlier handlers can leave
    values for later ones. Never reuse a context across concurrent dispatches.
    """

    event: HookEvent
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tool: ToolInfo | None = None
    command: CommandInfo | None = None
    file_operation: FileOperationInfo | None = None
    session: SessionInfo | None = None
    agent: AgentInfo | None = None
    task: TaskInfo | None = None
    memory: MemoryInfo | None = None
    error: ErrorInfo | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def tool_name(self) -> str | None:
        return self.tool.name if self.tool is not None else None


def build_hook_context(
    event: HookEvent | str,
    *,
    tool: ToolInfo | None = None,
    command: CommandInfo | None = None,
    file_operation: FileOperationInfo | None = None,
    session: SessionInfo | None = None,
    agent: AgentInfo | None = None,
    task: TaskInfo | None = None,
    memory: MemoryInfo | None = None,
    error: ErrorInfo | BaseException | None = None,
    data: Mapping[str, Any] | None = None,
    timestamp: datetime | None = None,
) -> HookContext:
    """Build a HookContext for a given event."""
    if isinstance(error, BaseException):
        error = ErrorInfo.from_exception(error)
    return HookContext(
        event=coerce_event(event),
        timestamp=timestamp or datetime.now(timezone.utc),
        tool=tool,
        command=command,
        file_operation=file_operation,
        session=session,
        agent=agent,
        task=task,
        memory=memory,
        error=error,
        data=dict(data) if data else {},
    )
