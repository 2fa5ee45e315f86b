"""Session bootstrap — the entry point an embedding module calls once.

::

    def _setup(register):
        register(open_pool())
        register(load_models())

    wait = bootstrap(_setup)                   # at startup
    ...
    await wait()                               # in any consumer

``bootstrap`` runs the setup routine synchronously, seals registration as
soon as it returns (or raises), and hands back the ``wait`` callable.  Each
call builds its own ``Coordinator``; there is no process-wide instance.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from asyncinit.core.caller import caller_label
from asyncinit.core.errors import ConfigError, ErrorContext, SetupFailure
from asyncinit.core.logging import get_logger
from asyncinit.core.settings import AsyncInitSettings, get_settings
from asyncinit.execution.coordinator import Coordinator

logger = get_logger(__name__)

RegisterFunction = Callable[[Any], None]
SetupRoutine = Callable[[RegisterFunction], Any]


class WaitFunction:
    """Zero-argument callable returned by :func:`bootstrap`.

    Calling it returns an ``asyncio.Future`` that resolves once every
    registered task succeeded, or fails with the aggregated error.  If the
    setup routine itself raised, every call fails with ``SetupFailure``.
    """

    def __init__(
        self,
        coordinator: Coordinator,
        *,
        debug: bool = False,
        setup_error: Exception | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.debug = debug
        self.setup_error = setup_error

    def __call__(self) -> asyncio.Future[None]:
        label = caller_label() if self.debug else None
        if self.setup_error is None:
            return self.coordinator.wait(label)

        future: asyncio.Future[None] = self.coordinator.loop.create_future()
        future.set_exception(
            SetupFailure(
                cause=self.setup_error,
                context=ErrorContext(label=label, session_id=self.coordinator.session_id),
            )
        )
        return future


def bootstrap(
    setup: SetupRoutine,
    defer_failure: bool | None = None,
    debug: bool | None = None,
    *,
    settings: AsyncInitSettings | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> WaitFunction:
    """Run ``setup(register)`` and return the session's ``wait`` callable.

    Args:
        setup: Called once, synchronously, with the ``register`` function.
            It may also hand ``register`` to work it starts, as long as that
            work registers before ``setup`` returns.
        defer_failure: If ``setup`` raises, ``False`` re-raises it here and
            ``True`` defers it to the first ``wait()``.  ``None`` uses
            settings.
        debug: Heartbeat and lifecycle logging.  ``None`` uses settings.
        settings: Overrides the cached environment settings.
        loop: Loop to run tasks on; defaults to the running loop.

    Raises:
        ConfigError: No loop given and none is running.
        Exception: Whatever ``setup`` raised, unless failure is deferred.
    """
    settings = settings or get_settings()
    if defer_failure is None:
        defer_failure = settings.defer_failure
    if debug is None:
        debug = settings.debug

    if loop is None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise ConfigError(
                "bootstrap() needs a running event loop or an explicit loop=",
                cause=exc,
            ) from exc

    coordinator = Coordinator(
        loop=loop,
        debug=debug,
        heartbeat_interval=settings.heartbeat_interval,
    )
    wait = WaitFunction(coordinator, debug=debug)

    def register(task: Any) -> None:
        label = caller_label() if debug else None
        coordinator.register(task, label=label)

    try:
        setup(register)
    except Exception as exc:
        logger.error(
            "init.session.setup_failed",
            session_id=coordinator.session_id,
            error=str(exc),
            deferred=defer_failure,
        )
        wait = WaitFunction(coordinator, debug=debug, setup_error=exc)
        coordinator.register(exc)
        if not defer_failure:
            raise
    finally:
        coordinator.close_registration()

    return wait
