"""Hook error types."""

from __future__ import annotations

from typing import Any


class HookError(Exception):
    """Base class for hookflow errors."""


class InvalidRegistrationError(HookError, ValueError):
    """Raised when ``register`` is given a malformed handler, event or option."""


class UnknownHookEventError(HookError, ValueError):
    """Raised when an event tag does not name a known HookEvent."""

    def __init__(self, event: Any) -> None:
        super().__init__(f"Unknown hook event: {event!r}")
        self.event = event


class HookContractError(HookError):
    """Raised when ``execute`` is called in a way that breaks its contract."""


class HandlerFailure(HookError):
    """A handler raised or misbehaved. Contained by the executor, never raised to callers."""

    def __init__(self, hook_id: str, message: str) -> None:
        super().__init__(message)
        self.hook_id = hook_id


class HandlerTimeout(HandlerFailure):
    """A handler did not finish before its deadline."""

    def __init__(self, hook_id: str, timeout_ms: float) -> None:
        super().__init__(hook_id, f"Hook {hook_id} timed out after {timeout_ms:g}ms")
        self.timeout_ms = timeout_ms
