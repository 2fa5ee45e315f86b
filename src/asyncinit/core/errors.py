"""
Structured error types for asyncinit.

Every failure the initialization barrier can report is an ``AsyncInitError``
subclass carrying a category, structured context and an optional chained
cause. Nothing in this package retries: all of these errors are terminal for
the task or session that raised them, and the embedding module decides
whether to rebuild the whole session.

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                      AsyncInitError                        │
        │          (category, context, cause, to_dict)               │
        ├───────────────────────────────────────────────────────────┤
        │                                                            │
        │  LateRegistrationError   TaskFailure     SetupFailure      │
        │  (REGISTRATION)          (TASK)          (SETUP)           │
        │                                                            │
        │  AggregatedInitializationError           ConfigError       │
        │  (AGGREGATE, causes, details)            (CONFIG)          │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> err = LateRegistrationError()
    >>> err.category
    <ErrorCategory.REGISTRATION: 'REGISTRATION'>
    >>> err.with_context(label="setup_db (db.py:12)").to_dict()["context"]
    {'label': 'setup_db (db.py:12)'}

Guardrails:
    ❌ DON'T: Catch LateRegistrationError and retry the registration
    ✅ DO: Register every task from inside the setup routine

    ❌ DON'T: Swallow the cause of a failed task
    ✅ DO: Pass it as cause= so the chain survives in tracebacks
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from asyncinit.core.composite import FailureCause


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    REGISTRATION = "REGISTRATION"  # register() after sealing
    TASK = "TASK"                  # one wrapped operation failed
    AGGREGATE = "AGGREGATE"        # composite of task failures
    SETUP = "SETUP"                # setup routine raised synchronously
    CONFIG = "CONFIG"              # invalid settings, no event loop
    INTERNAL = "INTERNAL"          # bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    ``label`` is the caller label of the task or wait call involved, when
    diagnostics were enabled. Anything else goes into ``metadata``.
    """

    label: str | None = None
    task_id: str | None = None
    session_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["label", "task_id", "session_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AsyncInitError(Exception):
    """
    Base exception for all asyncinit errors.

    All instances carry:
    - **category:** ErrorCategory for classification
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception, also set as ``__cause__``

    Subclasses set ``default_category`` and, where the message is fixed,
    ``default_message``.
    """

    default_category: ErrorCategory = ErrorCategory.UNKNOWN
    default_message: str = "Async initialization error"
    retryable: bool = False

    def __init__(
        self,
        message: str | None = None,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AsyncInitError:
        """
        Add context to this error (fluent API).

        Usage:
            raise LateRegistrationError().with_context(label="init_cache")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# REGISTRATION / TASK ERRORS
# =============================================================================


class LateRegistrationError(AsyncInitError):
    """register() was called after the session sealed its coordinator."""

    default_category = ErrorCategory.REGISTRATION
    default_message = "Late initialization registration"


class TaskFailure(AsyncInitError):
    """
    One wrapped initialization operation failed.

    Also stands in as the cause when a task failed without supplying one.
    """

    default_category = ErrorCategory.TASK
    default_message = "Module initializer error caught"


class AggregatedInitializationError(AsyncInitError):
    """
    Composite of every task failure observed so far.

    ``str(err)`` is the one-line summary; ``details`` holds every cause's
    message and trace, numbered in arrival order.
    """

    default_category = ErrorCategory.AGGREGATE
    default_message = "Module initialization error"

    def __init__(
        self,
        message: str | None = None,
        *,
        causes: tuple[FailureCause, ...] = (),
        details: str | None = None,
        context: ErrorContext | None = None,
    ):
        first = causes[0].exception if causes else None
        super().__init__(message, context=context, cause=first)
        self.causes = causes
        self.details = details if details is not None else self.message

    @property
    def count(self) -> int:
        """Number of underlying causes."""
        return len(self.causes)

    @property
    def exceptions(self) -> list[BaseException]:
        """Underlying exceptions, skipping causes that were raw values."""
        return [c.exception for c in self.causes if c.exception is not None]

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["count"] = self.count
        result["causes"] = [c.message for c in self.causes]
        return result


class SetupFailure(AsyncInitError):
    """The setup routine raised before it finished registering tasks."""

    default_category = ErrorCategory.SETUP
    default_message = "Unable to setup async module initialization"


class ConfigError(AsyncInitError):
    """Invalid configuration, including bootstrapping without an event loop."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, AsyncInitError):
        return error.category
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AsyncInitError",
    "LateRegistrationError",
    "TaskFailure",
    "AggregatedInitializationError",
    "SetupFailure",
    "ConfigError",
    "categorize_error",
]
