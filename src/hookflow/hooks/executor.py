"""Hook execution engine."""

from __future__ import annotations

import asyncio
import dataclasses
import fnmatch
import functools
import inspect
import itertools
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any

from hookflow.bus import EventBus
from hookflow.hooks.errors import HandlerFailure, HandlerTimeout, HookContractError
from hookflow.hooks.events import HookContext
from hookflow.hooks.registry import HookRegistry
from hookflow.observability.exporters import configure_exporters
from hookflow.observability.metrics import record_dispatch, record_hook_execution
from hookflow.observability.tracing import span
from hookflow.types.config import HooksConfig
from hookflow.types.hooks import (
    AggregatedHookResult,
    HookDefinition,
    HookEvent,
    HookExecutionOptions,
    HookExecutionRecord,
    HookResult,
    HookStats,
    coerce_event,
)

logger = logging.getLogger(__name__)


class HookExecutor:
    """Runs the hooks registered for an event and aggregates their outcomes.

    Handlers run one at a time in ``(priority, registration)`` order unless
    ``parallel`` is set, in which case handlers sharing a priority rank run
    concurrently and ranks are separated by a barrier. Handler exceptions and
    timeouts are turned into failed results; ``execute`` only raises for
    caller mistakes such as an unknown event.
    """

    def __init__(
        self,
        registry: HookRegistry,
        event_bus: EventBus | None = None,
        *,
        config: HooksConfig | None = None,
    ) -> None:
        self._registry = registry
        self._event_bus = event_bus
        self._config = config or HooksConfig()
        self._stats: dict[str, HookStats] = {}
        self._stats_lock = threading.Lock()
        # Timed-out handlers and bus publishes still in flight
        self._background: set[asyncio.Future[Any]] = set()

    @property
    def registry(self) -> HookRegistry:
        return self._registry

    @property
    def config(self) -> HooksConfig:
        return self._config

    async def fire(
        self, ctx: HookContext, options: HookExecutionOptions | None = None,
    ) -> AggregatedHookResult:
        """Execute the hooks for ``ctx.event``."""
        return await self.execute(ctx.event, ctx, options)

    async def execute(
        self,
        event: HookEvent | str,
        context: HookContext | None = None,
        options: HookExecutionOptions | None = None,
    ) -> AggregatedHookResult:
        """Run every enabled hook for ``event`` and return the aggregated result."""
        resolved = coerce_event(event)
        if context is None:
            context = HookContext(event=resolved)
        elif coerce_event(context.event) is not resolved:
            raise HookContractError(
                f"Context is for {context.event.value}, cannot execute {resolved.value}"
            )
        opts = options or self._config.execution_options()

        definitions = self._select(resolved, context, opts)
        start = time.perf_counter()
        with span("hooks.execute", attributes={
            "hook.event": resolved.value,
            "hook.count": len(definitions),
            "hook.parallel": opts.parallel,
        }) as s:
            if opts.parallel:
                records, stopped_by = await self._run_parallel(definitions, context, opts)
            else:
                records, stopped_by = await self._run_sequential(definitions, context, opts)

            aggregated = AggregatedHookResult(
                event=resolved,
                results=tuple(records),
                overall_success=all(r.result.success for r in records),
                stopped_early=stopped_by is not None,
                total_duration_ms=(time.perf_counter() - start) * 1000,
                stopped_by=stopped_by,
            )
            s.set_attribute("hook.success", aggregated.overall_success)
            s.set_attribute("hook.stopped_early", aggregated.stopped_early)

        record_dispatch(
            resolved.value,
            aggregated.total_duration_ms,
            handlers=len(records),
            success=aggregated.overall_success,
            stopped_early=aggregated.stopped_early,
        )
        if stopped_by is not None:
            logger.debug(
                "Dispatch of %s stopped by %s after %d of %d hooks",
                resolved.value, stopped_by, len(records), len(definitions),
            )
        self._publish(aggregated)
        return aggregated

    # -- selection --------------------------------------------------------

    def _select(
        self, event: HookEvent, ctx: HookContext, opts: HookExecutionOptions,
    ) -> list[HookDefinition]:
        definitions = self._registry.list(event, enabled_only=True)
        if opts.only_ids is not None:
            definitions = [d for d in definitions if d.id in opts.only_ids]
        return [d for d in definitions if self._matches(d, ctx)]

    @staticmethod
    def _matches(definition: HookDefinition, ctx: HookContext) -> bool:
        """Check the tool-name matcher, if the hook has one."""
        if definition.matcher is None:
            return True
        tool_name = ctx.tool_name
        if not tool_name:
            return False
        return fnmatch.fnmatch(tool_name, definition.matcher)

    # -- ordering ---------------------------------------------------------

    @staticmethod
    def _halts(record: HookExecutionRecord, opts: HookExecutionOptions) -> bool:
        if record.result.stop:
            return True
        return not record.result.success and not opts.continue_on_error

    async def _run_sequential(
        self,
        definitions: list[HookDefinition],
        ctx: HookContext,
        opts: HookExecutionOptions,
    ) -> tuple[list[HookExecutionRecord], str | None]:
        records: list[HookExecutionRecord] = []
        for definition in definitions:
            record = await self._run_one(definition, ctx, opts)
            records.append(record)
            if self._halts(record, opts):
                return records, record.id
        return records, None

    async def _run_parallel(
        self,
        definitions: list[HookDefinition],
        ctx: HookContext,
        opts: HookExecutionOptions,
    ) -> tuple[list[HookExecutionRecord], str | None]:
        records: list[HookExecutionRecord] = []
        stopped_by: str | None = None
        for _, group in itertools.groupby(definitions, key=lambda d: int(d.priority)):
            tasks = [asyncio.ensure_future(self._run_one(d, ctx, opts)) for d in group]
            try:
                # Records are appended in completion order
                for next_done in asyncio.as_completed(tasks):
                    record = await next_done
                    records.append(record)
                    if stopped_by is None and self._halts(record, opts):
                        stopped_by = record.id
            except asyncio.CancelledError:
                for task in tasks:
                    task.cancel()
                raise
            if stopped_by is not None:
                break
        return records, stopped_by

    # -- single handler ---------------------------------------------------

    async def _run_one(
        self,
        definition: HookDefinition,
        ctx: HookContext,
        opts: HookExecutionOptions,
    ) -> HookExecutionRecord:
        timeout_ms = opts.timeout_ms if opts.timeout_ms is not None else definition.timeout_ms
        timed_out = False
        start = time.perf_counter()
        try:
            if timeout_ms is None:
                result = await self._invoke(definition, ctx)
            else:
                result = await self._invoke_with_deadline(definition, ctx, timeout_ms)
        except HandlerTimeout as exc:
            timed_out = True
            logger.warning("%s", exc)
            result = HookResult(success=False, error=str(exc))
        except HandlerFailure as exc:
            logger.warning("Hook %s failed: %s", definition.id, exc)
            result = HookResult(success=False, error=str(exc))
        except asyncio.CancelledError as exc:
            # Only a cancellation of the dispatch itself propagates
            if self._being_cancelled():
                raise
            failure = HandlerFailure(definition.id, f"CancelledError: {exc}")
            logger.warning("Hook %s was cancelled: %s", definition.id, failure)
            result = HookResult(success=False, error=str(failure))
        except Exception as exc:
            failure = HandlerFailure(definition.id, f"{type(exc).__name__}: {exc}")
            logger.warning("Hook %s raised %s", definition.id, failure)
            result = HookResult(success=False, error=str(failure))
        duration_ms = (time.perf_counter() - start) * 1000

        self._record_stats(definition.id, result, duration_ms, timed_out)
        record_hook_execution(
            definition.event.value, duration_ms, success=result.success, timed_out=timed_out,
        )
        return HookExecutionRecord(
            id=definition.id, result=result, duration_ms=duration_ms, timed_out=timed_out,
        )

    @staticmethod
    def _being_cancelled() -> bool:
        task = asyncio.current_task()
        return task is not None and task.cancelling() > 0

    @staticmethod
    async def _invoke(definition: HookDefinition, ctx: HookContext) -> HookResult:
        outcome = definition.handler(ctx)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if not isinstance(outcome, HookResult):
            raise HandlerFailure(
                definition.id,
                f"Hook returned {type(outcome).__name__}, expected HookResult",
            )
        return outcome

    async def _invoke_with_deadline(
        self, definition: HookDefinition, ctx: HookContext, timeout_ms: float,
    ) -> HookResult:
        """Await the handler until the deadline.

        A late handler is not cancelled: it keeps running detached, and
        whatever it eventually returns is dropped.
        """
        task = asyncio.ensure_future(self._invoke(definition, ctx))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            if task.cancelled():
                raise HandlerFailure(definition.id, "CancelledError: handler task was cancelled")
            return task.result()
        self._keep_alive(task, functools.partial(self._on_abandoned_done, definition.id))
        raise HandlerTimeout(definition.id, timeout_ms)

    def _keep_alive(self, fut: asyncio.Future[Any], callback: Any) -> None:
        self._background.add(fut)
        fut.add_done_callback(self._background.discard)
        fut.add_done_callback(callback)

    @staticmethod
    def _on_abandoned_done(hook_id: str, task: asyncio.Future[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Timed-out hook %s later failed: %s", hook_id, exc)
        else:
            logger.debug("Timed-out hook %s finished late, result discarded", hook_id)

    # -- stats ------------------------------------------------------------

    def _record_stats(
        self, hook_id: str, result: HookResult, duration_ms: float, timed_out: bool,
    ) -> None:
        now = datetime.now(timezone.utc)
        with self._stats_lock:
            stats = self._stats.get(hook_id)
            if stats is None:
                stats = self._stats[hook_id] = HookStats(hook_id=hook_id)
            stats.invocations += 1
            if result.success:
                stats.successes += 1
            else:
                stats.failures += 1
            if timed_out:
                stats.timeouts += 1
            stats.total_duration_ms += duration_ms
            stats.last_run_at = now

    def get_stats(self, hook_id: str) -> HookStats | None:
        """Copy of the counters for one hook, or None if it never ran."""
        with self._stats_lock:
            stats = self._stats.get(hook_id)
            return dataclasses.replace(stats) if stats is not None else None

    def all_stats(self) -> dict[str, HookStats]:
        with self._stats_lock:
            return {k: dataclasses.replace(v) for k, v in self._stats.items()}

    def reset_stats(self, hook_id: str | None = None) -> None:
        with self._stats_lock:
            if hook_id is None:
                self._stats.clear()
            else:
                self._stats.pop(hook_id, None)

    # -- event bus --------------------------------------------------------

    def _publish(self, aggregated: AggregatedHookResult) -> None:
        """Tell the bus a dispatch happened. Never blocks or raises."""
        if self._event_bus is None or not self._config.emit_events:
            return
        topic = self._config.event_topic
        payload = {"event": aggregated.event, "result": aggregated}
        try:
            outcome = self._event_bus.emit(topic, payload)
        except Exception:
            logger.exception("Event bus rejected %s notification", topic)
            return
        if inspect.isawaitable(outcome):
            self._keep_alive(asyncio.ensure_future(outcome), self._on_publish_done)

    @staticmethod
    def _on_publish_done(fut: asyncio.Future[Any]) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            logger.error("Event bus publish failed", exc_info=exc)


def create_hook_executor(
    registry: HookRegistry,
    event_bus: EventBus | None = None,
    config: HooksConfig | None = None,
) -> HookExecutor:
    """Create an executor bound to ``registry`` and, optionally, an event bus.

    If ``config.observability`` is enabled, the OTel exporters are set up here.
    """
    if config is not None and config.observability.enabled:
        configure_exporters(config.observability)
    return HookExecutor(registry, event_bus, config=config)
