"""Tests for TaskHandle — one tracked initialization unit."""

from __future__ import annotations

import asyncio

import pytest

from asyncinit.core.composite import RawCause
from asyncinit.core.errors import TaskFailure
from asyncinit.execution.task import Rejected, TaskHandle, TaskStatus
from tests._support.tasks import fail_after, run_callbacks, succeed_after


def _handle(task, settled, **kwargs) -> TaskHandle:
    return TaskHandle(
        task,
        loop=asyncio.get_running_loop(),
        on_settled=settled.append,
        **kwargs,
    )


# ── Immediate outcomes ───────────────────────────────────────────────────


class TestImmediateOutcomes:
    @pytest.mark.asyncio
    async def test_plain_value_succeeds(self):
        settled: list[TaskHandle] = []
        handle = _handle("ready", settled)
        handle.start()
        await run_callbacks()
        assert settled == [handle]
        assert handle.status is TaskStatus.SUCCEEDED
        assert handle.cause is None
        assert handle.error is None

    @pytest.mark.asyncio
    async def test_settlement_is_never_synchronous(self):
        settled: list[TaskHandle] = []
        handle = _handle(None, settled)
        handle.start()
        assert handle.status is TaskStatus.PENDING
        assert settled == []
        await run_callbacks()
        assert handle.done

    @pytest.mark.asyncio
    async def test_exception_instance_fails(self):
        settled: list[TaskHandle] = []
        exc = ValueError("bad config")
        handle = _handle(exc, settled, label="setup (app.py:1)")
        handle.start()
        await run_callbacks()
        assert handle.status is TaskStatus.FAILED
        assert handle.cause.exception is exc
        assert isinstance(handle.error, TaskFailure)
        assert handle.error.__cause__ is exc
        assert handle.error.context.label == "setup (app.py:1)"
        assert handle.error.context.task_id == handle.task_id

    @pytest.mark.asyncio
    async def test_rejected_without_reason_synthesizes_cause(self):
        settled: list[TaskHandle] = []
        handle = _handle(Rejected(), settled)
        handle.start()
        await run_callbacks()
        assert handle.status is TaskStatus.FAILED
        assert handle.cause.message == "Module initializer error caught"

    @pytest.mark.asyncio
    async def test_rejected_with_raw_reason(self):
        settled: list[TaskHandle] = []
        handle = _handle(Rejected("cache cold"), settled)
        handle.start()
        await run_callbacks()
        assert handle.cause == RawCause("cache cold")
        assert str(handle.error) == "Initialization task failed: cache cold"


# ── Awaitables ───────────────────────────────────────────────────────────


class TestAwaitables:
    @pytest.mark.asyncio
    async def test_coroutine_success(self):
        settled: list[TaskHandle] = []
        handle = _handle(succeed_after(0.01), settled)
        handle.start()
        await asyncio.sleep(0.03)
        assert handle.status is TaskStatus.SUCCEEDED
        assert handle.elapsed >= 0.01

    @pytest.mark.asyncio
    async def test_coroutine_failure_keeps_traceback(self):
        settled: list[TaskHandle] = []
        handle = _handle(fail_after(0.01, "boom"), settled)
        handle.start()
        await asyncio.sleep(0.03)
        assert handle.status is TaskStatus.FAILED
        assert handle.cause.message == "boom"
        assert "RuntimeError: boom" in handle.cause.trace

    @pytest.mark.asyncio
    async def test_already_failed_future(self):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        future.set_exception(KeyError("missing"))
        settled: list[TaskHandle] = []
        handle = _handle(future, settled)
        handle.start()
        await run_callbacks()
        assert handle.status is TaskStatus.FAILED
        assert isinstance(handle.cause.exception, KeyError)

    @pytest.mark.asyncio
    async def test_externally_cancelled_task_fails(self):
        task = asyncio.ensure_future(succeed_after(10))
        settled: list[TaskHandle] = []
        handle = _handle(task, settled)
        handle.start()
        task.cancel()
        await run_callbacks()
        assert handle.status is TaskStatus.FAILED
        assert isinstance(handle.cause.exception, asyncio.CancelledError)

    @pytest.mark.asyncio
    async def test_future_from_another_loop_fails_the_task(self):
        other_loop = asyncio.new_event_loop()
        try:
            foreign = other_loop.create_future()
            settled: list[TaskHandle] = []
            handle = _handle(foreign, settled, debug=True, heartbeat_interval=0.01)
            handle.start()
            await asyncio.sleep(0.03)
        finally:
            other_loop.close()
        assert settled == [handle]
        assert handle.status is TaskStatus.FAILED
        assert isinstance(handle.cause.exception, ValueError)
        assert not handle.heartbeat_armed
        ticks = handle.heartbeat_count
        await asyncio.sleep(0.03)
        assert handle.heartbeat_count == ticks

    @pytest.mark.asyncio
    async def test_settles_exactly_once(self):
        settled: list[TaskHandle] = []
        handle = _handle(None, settled)
        handle.start()
        await run_callbacks()
        handle._settle(TaskStatus.FAILED, ValueError("late"))
        assert settled == [handle]
        assert handle.status is TaskStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_start_twice(self):
        handle = _handle(None, [])
        handle.start()
        with pytest.raises(RuntimeError):
            handle.start()
        await run_callbacks()


# ── Heartbeat ────────────────────────────────────────────────────────────


class TestHeartbeat:
    @pytest.mark.asyncio
    async def test_no_heartbeat_without_debug(self):
        handle = _handle(succeed_after(0.05), [], heartbeat_interval=0.01)
        handle.start()
        assert not handle.heartbeat_armed
        await asyncio.sleep(0.08)
        assert handle.heartbeat_count == 0

    @pytest.mark.asyncio
    async def test_ticks_while_pending(self):
        handle = _handle(succeed_after(0.1), [], debug=True, heartbeat_interval=0.01)
        handle.start()
        assert handle.heartbeat_armed
        await asyncio.sleep(0.05)
        assert handle.heartbeat_count >= 2
        assert not handle.done

    @pytest.mark.asyncio
    async def test_no_tick_after_success(self):
        handle = _handle(succeed_after(0.035), [], debug=True, heartbeat_interval=0.01)
        handle.start()
        await asyncio.sleep(0.06)
        assert handle.done
        assert not handle.heartbeat_armed
        ticks = handle.heartbeat_count
        await asyncio.sleep(0.05)
        assert handle.heartbeat_count == ticks

    @pytest.mark.asyncio
    async def test_no_tick_after_failure(self):
        handle = _handle(fail_after(0.035, "boom"), [], debug=True, heartbeat_interval=0.01)
        handle.start()
        await asyncio.sleep(0.06)
        assert handle.status is TaskStatus.FAILED
        assert not handle.heartbeat_armed
        ticks = handle.heartbeat_count
        await asyncio.sleep(0.05)
        assert handle.heartbeat_count == ticks

    @pytest.mark.asyncio
    async def test_elapsed_is_frozen_after_settlement(self):
        handle = _handle(None, [], debug=True)
        handle.start()
        await run_callbacks()
        elapsed = handle.elapsed
        await asyncio.sleep(0.02)
        assert handle.elapsed == elapsed
