"""Small awaitables used as initialization tasks in tests."""

from __future__ import annotations

import asyncio


async def succeed_after(delay: float, value: object = None) -> object:
    await asyncio.sleep(delay)
    return value


async def fail_after(delay: float, message: str) -> None:
    await asyncio.sleep(delay)
    raise RuntimeError(message)


async def run_callbacks(rounds: int = 5) -> None:
    """Let pending call_soon and done callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
