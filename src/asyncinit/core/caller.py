"""Caller labels for diagnostics.

A label names the call site of a ``register`` or ``wait`` call, e.g.
``"load_models (app.py:40)"``. Labels only appear in log events; nothing
else reads them.
"""

from __future__ import annotations

import sys
from pathlib import Path

UNKNOWN_CALLER = "unknown"


def caller_label(depth: int = 1) -> str:
    """Describe the frame ``depth`` levels above the function calling this.

    ``depth=1`` names whoever called the function that asked for the label.
    Returns ``"unknown"`` when the stack is not that deep.
    """
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return UNKNOWN_CALLER
    code = frame.f_code
    return f"{code.co_name} ({Path(code.co_filename).name}:{frame.f_lineno})"
