"""
CLI: ``asyncinit selftest`` — stress the barrier with two demo modules.

Each round starts, after a staggered delay, one consumer of an ``ok``
module whose initialization succeeds and one consumer of a ``fail`` module
whose initialization raises.  Every ``ok`` consumer must pass and every
``fail`` consumer must see the aggregated initialization error.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field

import typer
from rich.console import Console

from asyncinit.core.errors import AggregatedInitializationError
from asyncinit.core.settings import get_settings
from asyncinit.execution.bootstrap import WaitFunction, bootstrap

console = Console()
err_console = Console(stderr=True)

SYNTHETIC_ERROR = "Synthetic error for negative use case"


@dataclass
class SelftestResult:
    total: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


async def _sleep_ms(rng: random.Random, low: int, spread: int, scale: float) -> None:
    await asyncio.sleep((low + rng.random() * spread) * scale / 1000)


def _ok_module(rng: random.Random, scale: float, debug: bool) -> WaitFunction:
    def setup(register):
        register(None)
        register(_sleep_ms(rng, 250, 500, scale))

    return bootstrap(setup, debug=debug)


def _fail_module(rng: random.Random, scale: float, debug: bool) -> WaitFunction:
    async def broken() -> None:
        await _sleep_ms(rng, 100, 250, scale)
        raise RuntimeError(SYNTHETIC_ERROR)

    def setup(register):
        register(_sleep_ms(rng, 50, 100, scale))
        register(broken())

    return bootstrap(setup, debug=debug)


async def run_selftest(
    rounds: int = 100,
    step_ms: int = 20,
    time_scale: float = 1.0,
    seed: int | None = None,
    debug: bool = False,
) -> SelftestResult:
    """Run the stress scenario and collect unexpected outcomes."""
    rng = random.Random(seed)
    ok_wait = _ok_module(rng, time_scale, debug)
    fail_wait = _fail_module(rng, time_scale, debug)
    result = SelftestResult()

    async def positive(delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await ok_wait()
            await _sleep_ms(rng, 100, 250, time_scale)
        except Exception as exc:
            result.failures.append(f"ok module failed: {exc}")

    async def negative(delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await fail_wait()
        except AggregatedInitializationError as exc:
            if SYNTHETIC_ERROR not in str(exc):
                result.failures.append(f"fail module reported wrong error: {exc}")
            return
        result.failures.append("Unexpected success in negative test case")

    consumers = []
    for i in range(rounds):
        delay = i * step_ms * time_scale / 1000
        consumers.append(positive(delay))
        consumers.append(negative(delay))
    result.total = len(consumers)
    await asyncio.gather(*consumers)
    return result


def selftest(
    rounds: int = typer.Option(100, "--rounds", "-n", min=1, help="Consumer pairs to start."),
    step_ms: int = typer.Option(20, "--step", help="Delay between rounds in milliseconds."),
    time_scale: float = typer.Option(1.0, "--time-scale", min=0.0, help="Multiply every delay."),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the random delays."),  # noqa: UP007
    debug: bool | None = typer.Option(None, "--debug/--no-debug", help="Heartbeat logging."),  # noqa: UP007
) -> None:
    """Stress the barrier with succeeding and failing modules."""
    if debug is None:
        debug = get_settings().debug
    result = asyncio.run(run_selftest(rounds, step_ms, time_scale, seed, debug))
    if not result.ok:
        for failure in result.failures:
            err_console.print(f"[red]✗[/red] {failure}")
        err_console.print(f"[red]{len(result.failures)} of {result.total} tests failed[/red]")
        raise typer.Exit(1)
    console.print(f"[green]all {result.total} tests ok[/green]")
