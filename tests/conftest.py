"""Test fixtures: registries, executors, buses and scripted hook handlers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from hookflow.bus import InMemoryEventBus
from hookflow.hooks.events import HookContext
from hookflow.hooks.executor import HookExecutor
from hookflow.hooks.registry import HookRegistry
from hookflow.types.hooks import HookResult


@dataclass
class CallLog:
    """Records when scripted handlers start and finish.

    Timestamps come from the running loop's monotonic clock so tests can
    assert overlap (or its absence) between handlers.
    """

    starts: dict[str, float] = field(default_factory=dict)
    ends: dict[str, float] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)

    def start(self, name: str) -> None:
        self.starts[name] = asyncio.get_running_loop().time()
        self.order.append(name)

    def end(self, name: str) -> None:
        self.ends[name] = asyncio.get_running_loop().time()

    def overlaps(self, a: str, b: str) -> bool:
        return self.starts[a] < self.ends[b] and self.starts[b] < self.ends[a]


HandlerFactory = Callable[..., Callable[[HookContext], Any]]


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def make_handler(call_log: CallLog) -> HandlerFactory:
    """Build an async handler that logs its run, optionally sleeps, then returns or raises.

    Usage:
        handler = make_handler("a", delay=0.05, result=HookResult(success=True, stop=True))
    """

    def factory(
        name: str,
        *,
        delay: float = 0.0,
        result: HookResult | None = None,
        raises: BaseException | None = None,
        writes: dict[str, Any] | None = None,
    ) -> Callable[[HookContext], Any]:
        async def handler(ctx: HookContext) -> HookResult:
            call_log.start(name)
            try:
                if writes:
                    ctx.data.update(writes)
                if delay:
                    await asyncio.sleep(delay)
                if raises is not None:
                    raise raises
                return result or HookResult(success=True, data=name)
            finally:
                call_log.end(name)

        handler.__name__ = name
        return handler

    return factory


@pytest.fixture
def registry() -> HookRegistry:
    return HookRegistry()


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def executor(registry: HookRegistry) -> HookExecutor:
    return HookExecutor(registry)


@pytest.fixture
def bus_executor(registry: HookRegistry, bus: InMemoryEventBus) -> HookExecutor:
    return HookExecutor(registry, bus)
