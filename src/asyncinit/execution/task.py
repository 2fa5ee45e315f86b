"""Task Wrapper — one tracked initialization unit.

WHY
───
The coordinator only needs to know *that* a registered operation finished
and *how*. ``TaskHandle`` adapts whatever the setup routine handed to
``register`` (a coroutine, a task, a future, or an immediate outcome) into
exactly one settlement callback, and keeps a heartbeat going while the work
is outstanding so a stuck initializer is visible in the logs.

ARCHITECTURE
────────────
::

    TaskHandle(task, loop=..., on_settled=...)
      ├── .start()             ─ schedule the work, arm the heartbeat
      ├── ._tick()             ─ heartbeat, rearms itself while pending
      └── ._settle(...)        ─ disarm, normalize cause, call on_settled once

    register(task) input           → outcome
    ────────────────────           ─────────────────────────────
    awaitable                      → its result / exception / cancellation
    BaseException instance         → immediate failure
    Rejected(reason)               → immediate failure with any reason
    anything else                  → immediate success

Immediate outcomes settle on the next loop iteration, never inside
``start()`` itself.

Example::

    handle = TaskHandle(load_models(), loop=loop, on_settled=print, debug=True)
    handle.start()
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from asyncinit.core.composite import FailureCause, normalize_cause
from asyncinit.core.errors import ErrorContext, TaskFailure
from asyncinit.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 1.0


class TaskStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Rejected:
    """An already-failed task whose reason need not be an exception.

    ``Rejected()`` with no reason fails with a generic ``TaskFailure``.
    """

    reason: Any = None


class TaskHandle:
    """Tracks one registered initialization operation to completion.

    Parameters
    ----------
    task : Any
        The work to track, see the module docstring for accepted shapes.
    loop : asyncio.AbstractEventLoop
        Loop the work runs on and the settlement callback fires on.
    on_settled : Callable[[TaskHandle], None]
        Called exactly once, after ``status`` left ``PENDING``.
    label : str | None
        Caller label, only used in log events.
    debug : bool
        Emit lifecycle events and heartbeats.
    heartbeat_interval : float
        Seconds between heartbeats when ``debug`` is on.
    """

    def __init__(
        self,
        task: Any,
        *,
        loop: asyncio.AbstractEventLoop,
        on_settled: Callable[[TaskHandle], None],
        label: str | None = None,
        debug: bool = False,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    ) -> None:
        self.task_id = uuid.uuid4().hex[:12]
        self.label = label
        self.debug = debug
        self.heartbeat_interval = heartbeat_interval
        self.status = TaskStatus.PENDING
        self.cause: FailureCause | None = None
        self.error: TaskFailure | None = None
        self.heartbeat_count = 0

        self._task = task
        self._loop = loop
        self._on_settled = on_settled
        self._future: asyncio.Future[Any] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._started_at: float | None = None
        self._finished_at: float | None = None

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def done(self) -> bool:
        return self.status is not TaskStatus.PENDING

    @property
    def elapsed(self) -> float:
        """Seconds since ``start()``, frozen at settlement."""
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._loop.time()
        return end - self._started_at

    @property
    def heartbeat_armed(self) -> bool:
        return self._timer is not None

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Schedule the wrapped work and arm the heartbeat."""
        if self._started_at is not None:
            raise RuntimeError(f"Task {self.task_id} already started")
        self._started_at = self._loop.time()
        if self.debug:
            logger.info("init.task.started", task_id=self.task_id, label=self.label)
        self._arm()

        task, self._task = self._task, None
        if inspect.isawaitable(task):
            try:
                self._future = asyncio.ensure_future(task, loop=self._loop)
            except Exception as exc:
                # e.g. a future bound to another loop
                if inspect.iscoroutine(task):
                    task.close()
                self._loop.call_soon(self._settle, TaskStatus.FAILED, exc)
                return
            self._future.add_done_callback(self._on_done)
        elif isinstance(task, Rejected):
            self._loop.call_soon(self._settle, TaskStatus.FAILED, task.reason)
        elif isinstance(task, BaseException):
            self._loop.call_soon(self._settle, TaskStatus.FAILED, task)
        else:
            self._loop.call_soon(self._settle, TaskStatus.SUCCEEDED, None)

    def _on_done(self, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            self._settle(
                TaskStatus.FAILED,
                asyncio.CancelledError("initialization task was cancelled"),
            )
            return
        exc = future.exception()
        if exc is not None:
            self._settle(TaskStatus.FAILED, exc)
        else:
            self._settle(TaskStatus.SUCCEEDED, None)

    def _settle(self, status: TaskStatus, reason: Any) -> None:
        if self.done:
            return
        self._disarm()
        self._finished_at = self._loop.time()
        self.status = status

        if status is TaskStatus.FAILED:
            self.cause = normalize_cause(reason)
            self.error = TaskFailure(
                f"Initialization task failed: {self.cause.message or '???'}",
                cause=self.cause.exception,
                context=ErrorContext(label=self.label, task_id=self.task_id),
            )

        if self.debug:
            logger.info(
                f"init.task.{status.value}",
                task_id=self.task_id,
                label=self.label,
                elapsed=round(self.elapsed, 6),
            )
        self._on_settled(self)

    # ── Heartbeat ────────────────────────────────────────────────────

    def _arm(self) -> None:
        if self.debug:
            self._timer = self._loop.call_later(self.heartbeat_interval, self._tick)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self) -> None:
        self._timer = None
        if self.done:
            return
        self.heartbeat_count += 1
        logger.info(
            "init.task.heartbeat",
            task_id=self.task_id,
            label=self.label,
            elapsed=round(self.elapsed, 6),
        )
        self._arm()

    def __repr__(self) -> str:
        return f"TaskHandle({self.task_id!r}, label={self.label!r}, status={self.status.value})"
