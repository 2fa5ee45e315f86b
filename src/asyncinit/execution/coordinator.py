"""Coordinator — the asynchronous initialization barrier.

WHY
───
A module often needs several independent things ready before it can serve
(connections, caches, models).  They should start together at import or
startup time, and every consumer should be able to block until all of them
are done, or learn about every failure at once.  ``Coordinator`` tracks the
in-flight tasks, parks consumers as one-shot waiter futures, and fans the
outcome out to all of them at the single moment it becomes decidable.

ARCHITECTURE
────────────
::

    Coordinator(loop=loop, debug=False)
      ├── .register(task, label)   ─ wrap + start a TaskHandle
      ├── .wait(label)             ─ Future: done now, or parked waiter
      ├── .close_registration()    ─ seal, idempotent
      └── .state / .stats()        ─ diagnostics

    States
    ──────
    OPEN ──seal──▶ SEALED_RUNNING ──last success──▶ SETTLED_OK
      │                  │
      └──first failure───┴──────────▶ SEALED_FAILED

    A failure is terminal for settlement: tasks still pending keep
    running and are counted, but a later success never fulfils waiters.

All state changes happen in callbacks on one event loop, so there are no
locks.  Waiter order is not guaranteed, only that every parked waiter is
settled exactly once.

Related modules:
    task.py       — TaskHandle, one tracked unit with heartbeat
    bootstrap.py  — session entry point that owns one Coordinator

Example::

    coordinator = Coordinator(loop=asyncio.get_running_loop())
    coordinator.register(open_pool())
    coordinator.register(warm_cache())
    coordinator.close_registration()
    await coordinator.wait()
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from enum import Enum
from typing import Any

from asyncinit.core.composite import EMPTY, CompositeError, append, render
from asyncinit.core.errors import (
    AggregatedInitializationError,
    AsyncInitError,
    ErrorCategory,
    ErrorContext,
    LateRegistrationError,
)
from asyncinit.core.logging import get_logger
from asyncinit.execution.task import DEFAULT_HEARTBEAT_INTERVAL, TaskHandle, TaskStatus

logger = get_logger(__name__)


class CoordinatorState(str, Enum):
    OPEN = "open"
    SEALED_RUNNING = "sealed_running"
    SEALED_FAILED = "sealed_failed"
    SETTLED_OK = "settled_ok"


class Coordinator:
    """Owns the in-flight tasks and parked waiters of one session.

    Parameters
    ----------
    loop : asyncio.AbstractEventLoop
        Loop every task and waiter future belongs to.
    debug : bool
        Heartbeat and lifecycle logging for every registered task.
    heartbeat_interval : float
        Seconds between heartbeats when ``debug`` is on.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        debug: bool = False,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    ) -> None:
        self.session_id = uuid.uuid4().hex[:12]
        self.debug = debug
        self.heartbeat_interval = heartbeat_interval
        self.succeeded_count = 0
        self.failed_count = 0

        self._loop = loop
        self._pending: set[TaskHandle] = set()
        self._waiters: set[asyncio.Future[None]] = set()
        self._registration_closed = False
        self._composite: CompositeError = EMPTY

    # ── Registration ─────────────────────────────────────────────────

    def register(self, task: Any, label: str | None = None) -> TaskHandle:
        """Start tracking ``task``.

        Raises:
            LateRegistrationError: If registration was already closed.
        """
        if self._registration_closed:
            if inspect.iscoroutine(task):
                task.close()
            raise LateRegistrationError().with_context(
                label=label, session_id=self.session_id
            )

        handle = TaskHandle(
            task,
            loop=self._loop,
            on_settled=self._on_settled,
            label=label,
            debug=self.debug,
            heartbeat_interval=self.heartbeat_interval,
        )
        self._pending.add(handle)
        logger.debug(
            "init.coordinator.registered",
            session_id=self.session_id,
            task_id=handle.task_id,
            label=label,
            pending=len(self._pending),
        )
        handle.start()
        return handle

    def close_registration(self) -> None:
        """Seal the coordinator against further registration."""
        if self._registration_closed:
            return
        self._registration_closed = True
        logger.debug(
            "init.coordinator.sealed",
            session_id=self.session_id,
            pending=len(self._pending),
        )

    # ── Waiting ──────────────────────────────────────────────────────

    def wait(self, label: str | None = None) -> asyncio.Future[None]:
        """Return a future that settles with the session's outcome.

        The future is already done when the outcome is known: failed with
        the aggregated error as it stands now, or resolved when nothing is
        pending.  Otherwise it is parked until settlement.
        """
        future: asyncio.Future[None] = self._loop.create_future()
        if self._composite:
            future.set_exception(self._render(label))
        elif not self._pending:
            future.set_result(None)
        else:
            self._waiters.add(future)
            future.add_done_callback(self._waiters.discard)
            if self.debug:
                logger.info(
                    "init.coordinator.waiting",
                    session_id=self.session_id,
                    label=label,
                    pending=len(self._pending),
                )
        return future

    # ── Settlement ───────────────────────────────────────────────────

    def _on_settled(self, handle: TaskHandle) -> None:
        self._pending.discard(handle)

        if handle.status is TaskStatus.SUCCEEDED:
            self.succeeded_count += 1
            if not self._composite and not self._pending:
                self._drain(failed=False)
            return

        if handle.cause is None:
            raise AsyncInitError(
                f"Task {handle.task_id} failed without a cause",
                category=ErrorCategory.INTERNAL,
            )
        self.failed_count += 1
        self._composite = append(self._composite, handle.cause)
        logger.warning(
            "init.coordinator.task_failed",
            session_id=self.session_id,
            task_id=handle.task_id,
            label=handle.label,
            error=handle.cause.message,
            failures=len(self._composite),
        )
        self._drain(failed=True)

    def _drain(self, *, failed: bool) -> None:
        waiters = list(self._waiters)
        self._waiters.clear()
        for future in waiters:
            # cancelled by its consumer
            if future.done():
                continue
            if failed:
                future.set_exception(self._render())
            else:
                future.set_result(None)
        if waiters:
            logger.debug(
                "init.coordinator.drained",
                session_id=self.session_id,
                waiters=len(waiters),
                failed=failed,
            )

    def _render(self, label: str | None = None) -> AggregatedInitializationError:
        return render(
            self._composite,
            context=ErrorContext(label=label, session_id=self.session_id),
        )

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def registration_closed(self) -> bool:
        return self._registration_closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    @property
    def error(self) -> AggregatedInitializationError | None:
        """The aggregated error as of now, or ``None`` if nothing failed."""
        return self._render() if self._composite else None

    @property
    def state(self) -> CoordinatorState:
        if self._composite:
            return CoordinatorState.SEALED_FAILED
        if not self._registration_closed:
            return CoordinatorState.OPEN
        if self._pending:
            return CoordinatorState.SEALED_RUNNING
        return CoordinatorState.SETTLED_OK

    def stats(self) -> dict[str, Any]:
        """Snapshot for logging and diagnostics."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "registration_closed": self._registration_closed,
            "pending": len(self._pending),
            "waiters": len(self._waiters),
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
            "errors": len(self._composite),
        }
