"""Execution: task wrapper, coordinator and session bootstrap."""

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
]
