"""Tests for hookflow.bus and the executor's post-dispatch notification."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from hookflow.bus import EventBus, InMemoryEventBus
from hookflow.hooks.events import build_hook_context
from hookflow.hooks.executor import HookExecutor
from hookflow.types.config import HooksConfig
from hookflow.types.hooks import AggregatedHookResult, HookEvent, HookResult


class RecordingBus:
    """Synchronous bus that just remembers what it was given."""

    def __init__(self) -> None:
        self.published: list[tuple[str, Any]] = []

    def emit(self, topic: str, payload: Any) -> None:
        self.published.append((topic, payload))


class BrokenBus:
    def emit(self, topic: str, payload: Any) -> None:
        raise ConnectionError("bus down")


class FailingAsyncBus:
    async def emit(self, topic: str, payload: Any) -> None:
        raise ConnectionError("bus down")


class SlowBus:
    def __init__(self) -> None:
        self.done = False

    async def emit(self, topic: str, payload: Any) -> None:
        await asyncio.sleep(0.2)
        self.done = True


async def ok(ctx):
    return HookResult(success=True)


class TestInMemoryEventBus:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryEventBus(), EventBus)
        assert isinstance(RecordingBus(), EventBus)

    @pytest.mark.asyncio
    async def test_pattern_subscription(self, bus):
        received = []
        bus.subscribe("hooks.*", lambda topic, payload: received.append((topic, payload)))
        await bus.emit("hooks.executed", 1)
        await bus.emit("other.topic", 2)
        assert received == [("hooks.executed", 1)]

    @pytest.mark.asyncio
    async def test_async_subscriber(self, bus):
        received = []

        async def subscriber(topic, payload):
            await asyncio.sleep(0)
            received.append(payload)

        bus.subscribe("*", subscriber)
        await bus.emit("a", "x")
        assert received == ["x"]

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_isolated(self, bus, caplog):
        received = []

        def broken(topic, payload):
            raise RuntimeError("subscriber bug")

        bus.subscribe("*", broken)
        bus.subscribe("*", lambda topic, payload: received.append(payload))
        await bus.emit("a", 1)
        assert received == [1]
        assert "Subscriber error" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus):
        received = []
        callback = lambda topic, payload: received.append(payload)  # noqa: E731
        bus.subscribe("*", callback)
        bus.unsubscribe(callback)
        await bus.emit("a", 1)
        assert received == []

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        bus = InMemoryEventBus(maxlen=2)
        for i in range(5):
            await bus.emit("t", i)
        assert bus.history("t") == [3, 4]
        assert bus.topics() == ["t"]
        bus.clear()
        assert bus.history("t") == []


class TestExecutorPublishing:
    @pytest.mark.asyncio
    async def test_publishes_summary(self, registry, bus, bus_executor):
        registry.register(HookEvent.PRE_TOOL_USE, ok)
        result = await bus_executor.execute(
            HookEvent.PRE_TOOL_USE, build_hook_context(HookEvent.PRE_TOOL_USE),
        )
        await asyncio.sleep(0.01)
        history = bus.history("hooks.executed")
        assert len(history) == 1
        assert history[0]["event"] is HookEvent.PRE_TOOL_USE
        assert history[0]["result"] is result
        assert isinstance(history[0]["result"], AggregatedHookResult)

    @pytest.mark.asyncio
    async def test_publishes_even_without_handlers(self, bus, bus_executor):
        await bus_executor.execute(HookEvent.SESSION_START)
        await asyncio.sleep(0.01)
        assert len(bus.history("hooks.executed")) == 1

    @pytest.mark.asyncio
    async def test_sync_bus(self, registry):
        bus = RecordingBus()
        executor = HookExecutor(registry, bus)
        await executor.execute(HookEvent.TASK_COMPLETE)
        assert [topic for topic, _ in bus.published] == ["hooks.executed"]

    @pytest.mark.asyncio
    async def test_custom_topic(self, registry):
        bus = RecordingBus()
        executor = HookExecutor(registry, bus, config=HooksConfig(event_topic="platform.hooks"))
        await executor.execute(HookEvent.TASK_COMPLETE)
        assert bus.published[0][0] == "platform.hooks"

    @pytest.mark.asyncio
    async def test_emit_events_disabled(self, registry):
        bus = RecordingBus()
        executor = HookExecutor(registry, bus, config=HooksConfig(emit_events=False))
        await executor.execute(HookEvent.TASK_COMPLETE)
        assert bus.published == []

    @pytest.mark.asyncio
    async def test_broken_bus_does_not_fail_dispatch(self, registry, caplog):
        registry.register(HookEvent.ERROR, ok)
        executor = HookExecutor(registry, BrokenBus())
        result = await executor.execute(HookEvent.ERROR)
        assert result.overall_success is True
        assert "rejected" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_async_bus_is_logged(self, registry, caplog):
        executor = HookExecutor(registry, FailingAsyncBus())
        result = await executor.execute(HookEvent.ERROR)
        await asyncio.sleep(0.01)
        assert result.overall_success is True
        assert "publish failed" in caplog.text

    @pytest.mark.asyncio
    async def test_slow_bus_does_not_block(self, registry):
        bus = SlowBus()
        executor = HookExecutor(registry, bus)
        loop = asyncio.get_running_loop()
        started = loop.time()
        await executor.execute(HookEvent.MEMORY_STORE)
        assert loop.time() - started < 0.1
        assert bus.done is False
        await asyncio.sleep(0.25)
        assert bus.done is True
