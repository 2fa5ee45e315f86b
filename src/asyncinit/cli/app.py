"""
Root Typer application for the asyncinit CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from asyncinit.core.logging import configure_logging
from asyncinit.core.settings import get_settings

app = Typer(
    name="asyncinit",
    help="asyncinit — asynchronous initialization barrier.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from asyncinit import __version__

        typer.echo(f"asyncinit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override ASYNC_INIT_LOG_LEVEL."),
) -> None:
    """asyncinit CLI — exercise the initialization barrier."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_json,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from asyncinit.cli.selftest import selftest  # noqa: E402

app.command("selftest")(selftest)
