"""
asyncinit - asynchronous initialization barrier for Python modules.

A module launches its independent startup tasks through ``bootstrap`` and
every consumer awaits the returned ``wait()`` before relying on them::

    from asyncinit import bootstrap

    def _setup(register):
        register(connect_db())
        register(load_models())

    wait = bootstrap(_setup)

    async def handler():
        await wait()
        ...
"""

__version__ = "0.1.0"

from asyncinit.core.composite import render
from asyncinit.core.errors import (
    AggregatedInitializationError,
    AsyncInitError,
    ConfigError,
    LateRegistrationError,
    SetupFailure,
    TaskFailure,
)
from asyncinit.core.logging import configure_logging, get_logger
from asyncinit.core.settings import AsyncInitSettings, get_settings
from asyncinit.execution.bootstrap import WaitFunction, bootstrap
from asyncinit.execution.coordinator import Coordinator, CoordinatorState
from asyncinit.execution.task import Rejected, TaskHandle, TaskStatus

__all__ = [
    "bootstrap",
    "WaitFunction",
    "Coordinator",
    "CoordinatorState",
    "TaskHandle",
    "TaskStatus",
    "Rejected",
    "render",
    "AsyncInitError",
    "LateRegistrationError",
    "TaskFailure",
    "AggregatedInitializationError",
    "SetupFailure",
    "ConfigError",
    "AsyncInitSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
]
