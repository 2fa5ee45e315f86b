"""
Composite error builder for accumulated initialization failures.

Failures are normalized once, at the point where a task's outcome is first
observed, into a ``FailureCause``. Causes accumulate in a ``CompositeError``
that only ever grows, and ``render`` turns the composite into the
``AggregatedInitializationError`` handed to waiters.

Architecture:
    ::

        ┌──────────────────────────┬──────────────────────────────────┐
        │      FailureCause        │         CompositeError           │
        ├──────────────────────────┼──────────────────────────────────┤
        │ TracedCause              │ EmptyComposite                   │
        │  • exception             │   │ append(c)                    │
        │  • message               │   ▼                              │
        │  • trace (or None)       │ SingleComposite(c1)              │
        │ RawCause                 │   │ append(c)                    │
        │  • value                 │   ▼                              │
        │                          │ ManyComposite((c1, c2, ...))     │
        └──────────────────────────┴──────────────────────────────────┘

Examples:
    >>> composite = append(EMPTY, normalize_cause(ValueError("db down")))
    >>> composite = append(composite, normalize_cause("cache cold"))
    >>> str(render(composite, "Module initialization error"))
    'Module initialization error (2 errors: db down, cache cold)'
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any, Union

from asyncinit.core.errors import (
    AggregatedInitializationError,
    ErrorContext,
    TaskFailure,
)

DEFAULT_HEADLINE = "Module initialization error"
UNKNOWN_HEADLINE = "Unknown error"
NO_MESSAGE_SUMMARY = "???"
NO_MESSAGE_DETAIL = "<no error message>"
NO_TRACE = "<no stack trace>"


# =============================================================================
# FAILURE CAUSES
# =============================================================================


@dataclass(frozen=True, slots=True)
class TracedCause:
    """A failure that was an exception, with its traceback if it was raised."""

    exception: BaseException
    message: str | None
    trace: str | None

    @classmethod
    def from_exception(cls, exc: BaseException) -> TracedCause:
        message = str(exc) or type(exc).__name__
        trace = None
        if exc.__traceback__ is not None:
            trace = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ).rstrip()
        return cls(exception=exc, message=message, trace=trace)


@dataclass(frozen=True, slots=True)
class RawCause:
    """A failure reason that was not an exception."""

    value: Any

    @property
    def exception(self) -> None:
        return None

    @property
    def message(self) -> str | None:
        if isinstance(self.value, str) and self.value:
            return self.value
        return None

    @property
    def trace(self) -> None:
        return None


FailureCause = Union[TracedCause, RawCause]


def normalize_cause(value: Any) -> FailureCause:
    """Normalize whatever a task failed with into a ``FailureCause``.

    ``None`` means the task failed without a reason; a generic
    ``TaskFailure`` is synthesized so the composite is never empty after a
    failure.
    """
    if isinstance(value, (TracedCause, RawCause)):
        return value
    if value is None:
        return TracedCause.from_exception(TaskFailure())
    if isinstance(value, BaseException):
        return TracedCause.from_exception(value)
    return RawCause(value)


# =============================================================================
# COMPOSITE
# =============================================================================


@dataclass(frozen=True, slots=True)
class EmptyComposite:
    """No failure recorded yet."""

    @property
    def causes(self) -> tuple[FailureCause, ...]:
        return ()

    def __len__(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class SingleComposite:
    """Exactly one failure recorded."""

    cause: FailureCause

    @property
    def causes(self) -> tuple[FailureCause, ...]:
        return (self.cause,)

    def __len__(self) -> int:
        return 1


@dataclass(frozen=True, slots=True)
class ManyComposite:
    """Two or more failures, in arrival order."""

    causes: tuple[FailureCause, ...]

    def __len__(self) -> int:
        return len(self.causes)


CompositeError = Union[EmptyComposite, SingleComposite, ManyComposite]

EMPTY = EmptyComposite()


def append(current: CompositeError, cause: FailureCause) -> CompositeError:
    """Return a new composite with ``cause`` added after every existing one."""
    match current:
        case EmptyComposite():
            return SingleComposite(cause)
        case SingleComposite(cause=first):
            return ManyComposite((first, cause))
        case ManyComposite(causes=causes):
            return ManyComposite((*causes, cause))
    raise TypeError(f"Not a composite error: {current!r}")


def render(
    composite: CompositeError,
    headline: str = DEFAULT_HEADLINE,
    context: ErrorContext | None = None,
) -> AggregatedInitializationError:
    """Render a composite into a reportable error.

    The message lists every cause's message in order, prefixed by the count.
    ``details`` repeats the message, then each cause numbered ``#1..#N``
    with its trace, or a placeholder where there is none.
    """
    if not (isinstance(headline, str) and headline):
        headline = UNKNOWN_HEADLINE

    causes = composite.causes or (normalize_cause(None),)
    count = len(causes)
    summary = ", ".join(c.message or NO_MESSAGE_SUMMARY for c in causes)
    message = f"{headline} ({count} error{'s' if count > 1 else ''}: {summary})"

    lines = [message]
    for i, cause in enumerate(causes, start=1):
        if cause.trace:
            lines.append(f"  #{i}: {cause.trace}")
        else:
            lines.append(f"  #{i} Error: {cause.message or NO_MESSAGE_DETAIL}")
            lines.append(f"    {NO_TRACE}")

    return AggregatedInitializationError(
        message,
        causes=causes,
        details="\n".join(lines),
        context=context,
    )


__all__ = [
    "TracedCause",
    "RawCause",
    "FailureCause",
    "normalize_cause",
    "EmptyComposite",
    "SingleComposite",
    "ManyComposite",
    "CompositeError",
    "EMPTY",
    "append",
    "render",
]
