"""prowmetrics CLI — Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import typer
from rich.console import Console

from prowmetrics import __version__

TAGLINE = "Find the Prometheus archive behind a Prow job run."

console = Console()

# ── Version callback ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print("prowmetrics", style="bold cyan")
        console.print(f"  {TAGLINE}", style="dim")
        console.print(f"  v{__version__}\n", style="bold")
        raise typer.Exit()


# ── Main app ──────────────────────────────────────────────────────────────

app = typer.Typer(
    name="prowmetrics",
    help=TAGLINE,
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show prowmetrics version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """prowmetrics -- resolve Prow job reports to metrics/prometheus.tar."""
    if verbose:
        import logging

        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from prowmetrics.cli.config_cmd import config_app  # noqa: E402
from prowmetrics.cli.init_cmd import init  # noqa: E402
from prowmetrics.cli.resolve import resolve  # noqa: E402
from prowmetrics.cli.serve import serve  # noqa: E402

app.command(name="init", help="Initialize a .prowmetrics/ project directory.")(init)
app.command(name="resolve", help="Resolve a Prow report URL to its Prometheus archive.")(resolve)
app.command(name="serve", help="Serve a listing fixture locally for dry runs.")(serve)
app.add_typer(config_app, name="config", help="View prowmetrics configuration.")
