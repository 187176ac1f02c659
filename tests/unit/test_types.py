"""Tests for hookflow.types module."""

from dataclasses import FrozenInstanceError

import pytest

import hookflow
from hookflow.hooks.errors import (
    HandlerFailure,
    HandlerTimeout,
    InvalidRegistrationError,
    UnknownHookEventError,
)
from hookflow.types.hooks import (
    AggregatedHookResult,
    HookEvent,
    HookExecutionOptions,
    HookExecutionRecord,
    HookPriority,
    HookResult,
    HookStats,
    coerce_event,
    coerce_priority,
)
from hookflow.types.payloads import ErrorInfo, MemoryInfo, SessionInfo, ToolInfo


class TestHookEvent:
    def test_values(self):
        assert HookEvent.PRE_TOOL_USE.value == "pre_tool_use"
        assert HookEvent.ERROR.value == "error"
        assert len(HookEvent) == 15

    def test_coerce(self):
        assert coerce_event("memory_store") is HookEvent.MEMORY_STORE
        assert coerce_event(HookEvent.TASK_START) is HookEvent.TASK_START

    def test_coerce_unknown(self):
        with pytest.raises(UnknownHookEventError) as exc_info:
            coerce_event("pre_lunch")
        assert exc_info.value.event == "pre_lunch"


class TestHookPriority:
    def test_lower_rank_runs_first(self):
        ranks = [p.value for p in (
            HookPriority.HIGHEST, HookPriority.HIGH, HookPriority.NORMAL,
            HookPriority.LOW, HookPriority.LOWEST,
        )]
        assert ranks == sorted(ranks)

    def test_coerce_by_name_and_rank(self):
        assert coerce_priority("High") is HookPriority.HIGH
        assert coerce_priority(100) is HookPriority.LOWEST

    def test_coerce_invalid(self):
        with pytest.raises(InvalidRegistrationError):
            coerce_priority("soon")


class TestHookResult:
    def test_defaults(self):
        r = HookResult(success=True)
        assert r.error is None
        assert r.data is None
        assert r.stop is False

    def test_helpers(self):
        assert HookResult.ok({"a": 1}) == HookResult(success=True, data={"a": 1})
        assert HookResult.fail("bad", stop=True) == HookResult(success=False, error="bad", stop=True)

    def test_frozen(self):
        r = HookResult(success=True)
        with pytest.raises(FrozenInstanceError):
            r.success = False


class TestAggregatedHookResult:
    def test_helpers(self):
        ok = HookExecutionRecord(id="hook-a", result=HookResult(success=True), duration_ms=1.0)
        bad = HookExecutionRecord(id="hook-b", result=HookResult(success=False), duration_ms=2.0)
        agg = AggregatedHookResult(event=HookEvent.PRE_TOOL_USE, results=(ok, bad), overall_success=False)
        assert agg.failed == [bad]
        assert agg.result_for("hook-a") is ok.result
        assert agg.result_for("hook-missing") is None


class TestHookStats:
    def test_average_when_never_run(self):
        assert HookStats(hook_id="hook-a").average_duration_ms == 0.0

    def test_average(self):
        stats = HookStats(hook_id="hook-a", invocations=4, total_duration_ms=10.0)
        assert stats.average_duration_ms == 2.5


class TestExecutionOptions:
    def test_only_ids_frozen(self):
        opts = HookExecutionOptions(only_ids={"hook-a"})
        assert opts.only_ids == frozenset({"hook-a"})

    def test_single_id_string(self):
        opts = HookExecutionOptions(only_ids="hook-abc")
        assert opts.only_ids == frozenset({"hook-abc"})

    def test_negative_timeout(self):
        with pytest.raises(ValueError):
            HookExecutionOptions(timeout_ms=-1)


class TestPayloads:
    def test_tool_info(self):
        info = ToolInfo(name="Read", parameters={"path": "file.py"})
        assert info.result is None

    def test_memory_info_default_namespace(self):
        assert MemoryInfo(key="k").namespace == "default"

    def test_session_metadata_independent(self):
        a = SessionInfo(session_id="a")
        b = SessionInfo(session_id="b")
        a.metadata["x"] = 1
        assert b.metadata == {}

    def test_error_info_from_exception(self):
        info = ErrorInfo.from_exception(OSError("gone"), context="write", recoverable=False)
        assert info.message == "gone"
        assert info.error_type == "OSError"
        assert info.context == "write"
        assert info.recoverable is False


class TestErrors:
    def test_timeout_is_a_handler_failure(self):
        exc = HandlerTimeout("hook-a", 50)
        assert isinstance(exc, HandlerFailure)
        assert exc.hook_id == "hook-a"
        assert exc.timeout_ms == 50
        assert "timed out after 50ms" in str(exc)


class TestPublicApi:
    def test_exports(self):
        for name in hookflow.__all__:
            assert hasattr(hookflow, name), name

    def test_version(self):
        assert hookflow.__version__
