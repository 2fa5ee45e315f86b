#!/usr/bin/env python3
"""Initialization Session — gating consumers on async startup work.

================================================================================
WHY AN INITIALIZATION BARRIER?
================================================================================

A module often needs several independent startup tasks (open a pool, load
a model, warm a cache) before its public functions are safe to call.
Awaiting them in sequence is slow, and awaiting none of them lets early
callers race ahead::

    bootstrap(setup)        register(open_pool())  ─┐
                            register(load_model()) ─┼─► wait() resolves
                            register(warm_cache()) ─┘   when all succeed

Any consumer calls ``await wait()`` first.  If any task fails, every
waiter gets the same aggregated report, listing each failure in order.


================================================================================
EXAMPLE USAGE
================================================================================

Run this example:
    python examples/01_basic_session.py

Expected output:
    Two sessions: one where all tasks succeed and consumers proceed, and
    one where two tasks fail and consumers receive an
    AggregatedInitializationError with both causes.

See Also:
    - ``asyncinit selftest`` for a randomized stress run
    - ``src/asyncinit/execution/coordinator.py`` for the state machine
"""

import asyncio

from asyncinit import AggregatedInitializationError, bootstrap


async def open_pool() -> None:
    await asyncio.sleep(0.2)


async def load_model() -> None:
    await asyncio.sleep(0.4)


async def warm_cache() -> None:
    await asyncio.sleep(0.1)
    raise RuntimeError("cache backend unreachable")


async def load_templates() -> None:
    await asyncio.sleep(0.3)
    raise FileNotFoundError("templates/ is missing")


async def consumer(name: str, wait) -> None:
    try:
        await wait()
    except AggregatedInitializationError as exc:
        print(f"  {name}: refused -> {exc}")
    else:
        print(f"  {name}: ready")


async def main() -> None:
    print("=" * 60)
    print("Session 1: all tasks succeed")
    print("=" * 60)

    def setup_ok(register) -> None:
        register(open_pool())
        register(load_model())

    wait = bootstrap(setup_ok)
    await asyncio.gather(*(consumer(f"consumer-{i}", wait) for i in range(3)))

    print()
    print("=" * 60)
    print("Session 2: two tasks fail")
    print("=" * 60)

    def setup_failing(register) -> None:
        register(open_pool())
        register(warm_cache())
        register(load_templates())

    wait = bootstrap(setup_failing)
    await asyncio.gather(*(consumer(f"consumer-{i}", wait) for i in range(3)))

    # Later consumers see the error immediately; it now lists both causes.
    await asyncio.sleep(0.3)
    try:
        await wait()
    except AggregatedInitializationError as exc:
        print()
        print(exc.details)


if __name__ == "__main__":
    asyncio.run(main())
