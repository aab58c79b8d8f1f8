"""
Root Typer application for the eggtimer CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from eggtimer.cli.serve import serve
from eggtimer.cli.utils import console, err_console
from eggtimer.core.duration import format_duration, parse_duration
from eggtimer.core.errors import InvalidDurationError

app = Typer(
    name="eggtimer",
    help="eggtimer -- named countdown timers with drift-safe completion.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from eggtimer import __version__

        typer.echo(f"eggtimer {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """eggtimer CLI -- run the timer service and inspect duration specs."""


app.command("serve")(serve)


@app.command("parse-duration")
def parse_duration_command(
    spec: str = typer.Argument(..., help='Duration spec, e.g. "2h30m", "45s" or "1500"'),
) -> None:
    """Print the millisecond value of a duration spec."""
    # bare digits are a millisecond count, as in the JSON API
    value: int | str = int(spec) if spec.isdigit() else spec
    try:
        ms = parse_duration(value)
    except InvalidDurationError as e:
        err_console.print(f"[bold red]Error[/bold red] (INVALID_DURATION): {e.message}")
        raise typer.Exit(code=1) from e
    console.print(f"{ms} ms ({format_duration(ms)})")
