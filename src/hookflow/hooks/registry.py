"""HookRegistry — authoritative store of hook definitions."""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
import uuid

from hookflow.hooks.errors import InvalidRegistrationError, UnknownHookEventError
from hookflow.types.hooks import (
    HookDefinition,
    HookEvent,
    HookHandler,
    HookPriority,
    coerce_event,
    coerce_priority,
)

logger = logging.getLogger(__name__)


class HookRegistry:
    """Registers hook handlers keyed by event and priority.

    Definitions are ordered by ``(priority rank, registration sequence)`` so
    that handlers sharing a priority run in the order they were registered.
    Every read returns a fresh list; later mutations never leak into a
    snapshot an executor is already iterating.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, HookDefinition] = {}
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    def register(
        self,
        event: HookEvent | str,
        handler: HookHandler,
        priority: HookPriority | str | int = HookPriority.NORMAL,
        *,
        name: str | None = None,
        description: str = "",
        matcher: str | None = None,
        timeout_ms: float | None = None,
        enabled: bool = True,
    ) -> str:
        """Register a handler for an event. Returns the new hook id."""
        if handler is None or not callable(handler):
            raise InvalidRegistrationError(f"Hook handler must be callable, got {handler!r}")
        try:
            resolved_event = coerce_event(event)
        except UnknownHookEventError as exc:
            raise InvalidRegistrationError(str(exc)) from exc
        resolved_priority = coerce_priority(priority)
        if timeout_ms is not None and timeout_ms <= 0:
            raise InvalidRegistrationError(f"timeout_ms must be positive, got {timeout_ms}")

        hook_id = f"hook-{uuid.uuid4().hex[:16]}"
        with self._lock:
            definition = HookDefinition(
                id=hook_id,
                event=resolved_event,
                priority=resolved_priority,
                handler=handler,
                enabled=enabled,
                sequence=next(self._sequence),
                name=name or getattr(handler, "__name__", None),
                description=description,
                matcher=matcher,
                timeout_ms=timeout_ms,
            )
            self._definitions[hook_id] = definition

        logger.debug(
            "Registered hook %s (%s) for %s at %s",
            hook_id, definition.name, resolved_event.value, resolved_priority.name,
        )
        return hook_id

    def unregister(self, hook_id: str) -> bool:
        """Remove a hook. Unknown ids are ignored."""
        with self._lock:
            removed = self._definitions.pop(hook_id, None)
        if removed is not None:
            logger.debug("Unregistered hook %s", hook_id)
        return removed is not None

    def enable(self, hook_id: str) -> bool:
        return self._set_enabled(hook_id, True)

    def disable(self, hook_id: str) -> bool:
        return self._set_enabled(hook_id, False)

    def _set_enabled(self, hook_id: str, enabled: bool) -> bool:
        with self._lock:
            definition = self._definitions.get(hook_id)
            if definition is None:
                return False
            if definition.enabled != enabled:
                self._definitions[hook_id] = dataclasses.replace(definition, enabled=enabled)
        logger.debug("Hook %s %s", hook_id, "enabled" if enabled else "disabled")
        return True

    def list(
        self, event: HookEvent | str | None = None, *, enabled_only: bool = False,
    ) -> list[HookDefinition]:
        """Snapshot of definitions for one event (or all), in execution order."""
        resolved = coerce_event(event) if event is not None else None
        with self._lock:
            definitions = [
                d for d in self._definitions.values()
                if (resolved is None or d.event is resolved)
                and (d.enabled or not enabled_only)
            ]
        definitions.sort(key=lambda d: d.sort_key)
        return definitions

    def get(self, hook_id: str) -> HookDefinition | None:
        with self._lock:
            return self._definitions.get(hook_id)

    def has(self, hook_id: str) -> bool:
        with self._lock:
            return hook_id in self._definitions

    def count(self, event: HookEvent | str | None = None) -> int:
        return len(self.list(event))

    def events(self) -> set[HookEvent]:
        """Events with at least one registered definition."""
        with self._lock:
            return {d.event for d in self._definitions.values()}

    def clear(self, event: HookEvent | str | None = None) -> int:
        """Remove all definitions (or those of one event). Returns how many were removed."""
        resolved = coerce_event(event) if event is not None else None
        with self._lock:
            doomed = [
                hook_id for hook_id, d in self._definitions.items()
                if resolved is None or d.event is resolved
            ]
            for hook_id in doomed:
                del self._definitions[hook_id]
        if doomed:
            logger.debug("Cleared %d hooks", len(doomed))
        return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._definitions)

    def __contains__(self, hook_id: object) -> bool:
        with self._lock:
            return hook_id in self._definitions


def create_hook_registry() -> HookRegistry:
    """Create an empty registry. There is no process-wide default instance."""
    return HookRegistry()
