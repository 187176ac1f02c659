"""Hook types for the hookflow event system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

from hookflow.hooks.errors import InvalidRegistrationError, UnknownHookEventError

if TYPE_CHECKING:
    from hookflow.hooks.events import HookContext


class HookEvent(Enum):
    """Lifecycle points that can trigger hooks."""

    PRE_TOOL_USE = "pre_tool_use"
    POST_TOOL_USE = "post_tool_use"
    PRE_COMMAND = "pre_command"
    POST_COMMAND = "post_command"
    PRE_FILE_OPERATION = "pre_file_operation"
    POST_FILE_OPERATION = "post_file_operation"
    SESSION_START = "session_start"
    SESSION_END = "session_end"
    PRE_AGENT_SPAWN = "pre_agent_spawn"
    POST_AGENT_SPAWN = "post_agent_spawn"
    TASK_START = "task_start"
    TASK_COMPLETE = "task_complete"
    MEMORY_STORE = "memory_store"
    MEMORY_RETRIEVE = "memory_retrieve"
    ERROR = "error"


class HookPriority(IntEnum):
    """Named priority levels. Lower rank runs first."""

    HIGHEST = 0
    HIGH = 25
    NORMAL = 50
    LOW = 75
    LOWEST = 100


def coerce_event(event: HookEvent | str) -> HookEvent:
    """Resolve a HookEvent member or its string value."""
    if isinstance(event, HookEvent):
        return event
    try:
        return HookEvent(event)
    except ValueError:
        raise UnknownHookEventError(event) from None


def coerce_priority(priority: HookPriority | str | int) -> HookPriority:
    """Resolve a HookPriority member, its name, or its numeric rank."""
    if isinstance(priority, HookPriority):
        return priority
    if isinstance(priority, str):
        try:
            return HookPriority[priority.upper()]
        except KeyError:
            raise InvalidRegistrationError(f"Unknown hook priority: {priority!r}") from None
    if isinstance(priority, int) and not isinstance(priority, bool):
        try:
            return HookPriority(priority)
        except ValueError:
            raise InvalidRegistrationError(f"Unknown hook priority rank: {priority}") from None
    raise InvalidRegistrationError(f"Invalid hook priority: {priority!r}")


@dataclass(frozen=True, slots=True)
class HookResult:
    """Outcome reported by a single hook handler.

    ``stop`` asks the executor not to run any later handlers in the same
    dispatch, independently of ``success``.
    """

    success: bool
    error: str | None = None
    data: Any = None
    stop: bool = False

    @classmethod
    def ok(cls, data: Any = None, *, stop: bool = False) -> HookResult:
        return cls(success=True, data=data, stop=stop)

    @classmethod
    def fail(cls, error: str, *, stop: bool = False) -> HookResult:
        return cls(success=False, error=error, stop=stop)


HookHandler = Callable[["HookContext"], Union[Awaitable[HookResult], HookResult]]


@dataclass(frozen=True, slots=True)
class HookDefinition:
    """A registered handler. Identity is ``id``, never the handler object."""

    id: str
    event: HookEvent
    priority: HookPriority
    handler: HookHandler
    enabled: bool = True
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sequence: int = 0
    name: str | None = None
    description: str = ""
    matcher: str | None = None  # Tool name glob, only for tool-carrying contexts
    timeout_ms: float | None = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (int(self.priority), self.sequence)


@dataclass(slots=True)
class HookStats:
    """Running counters for one hook id."""

    hook_id: str
    invocations: int = 0
    successes: int = 0
    failures: int = 0
    timeouts: int = 0
    total_duration_ms: float = 0.0
    last_run_at: datetime | None = None

    @property
    def average_duration_ms(self) -> float:
        if self.invocations == 0:
            return 0.0
        return self.total_duration_ms / self.invocations


@dataclass(frozen=True, slots=True)
class HookExecutionOptions:
    """Per-dispatch execution policy."""

    parallel: bool = False
    continue_on_error: bool = True
    timeout_ms: float | None = None
    only_ids: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if isinstance(self.only_ids, str):
            object.__setattr__(self, "only_ids", frozenset({self.only_ids}))
        elif self.only_ids is not None and not isinstance(self.only_ids, frozenset):
            object.__setattr__(self, "only_ids", frozenset(self.only_ids))


@dataclass(frozen=True, slots=True)
class HookExecutionRecord:
    """One handler's entry in an aggregated result."""

    id: str
    result: HookResult
    duration_ms: float
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class AggregatedHookResult:
    """Combined outcome of one dispatch."""

    event: HookEvent
    results: tuple[HookExecutionRecord, ...] = ()
    overall_success: bool = True
    stopped_early: bool = False
    total_duration_ms: float = 0.0
    stopped_by: str | None = None

    @property
    def failed(self) -> list[HookExecutionRecord]:
        return [r for r in self.results if not r.result.success]

    def result_for(self, hook_id: str) -> HookResult | None:
        for record in self.results:
            if record.id == hook_id:
                return record.result
        return None
