"""prowmetrics config — View prowmetrics configuration.

Subcommands: show.
"""

from __future__ import annotations

import os
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prowmetrics.config import (
    ENV_OVERRIDES,
    ENV_TIMEOUT_KEY,
    ProwMetricsConfig,
    ProwMetricsConfigError,
    find_project_dir,
)

console = Console()

config_app = typer.Typer(
    name="config",
    help="View prowmetrics configuration.",
    no_args_is_help=True,
)


def _source(env_key: str, config_path: Path) -> str:
    """Describe where a setting's effective value comes from."""
    if os.environ.get(env_key):
        return f"env: {env_key}"
    return "config" if config_path.is_file() else "-"


@config_app.command(name="show")
def config_show(
    dir: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="Path to .prowmetrics/ directory.",
    ),
) -> None:
    """Show the resolved prowmetrics configuration.

    Merges config.yaml with PROWMETRICS_* environment variables.  Missing
    required prefixes are shown as NOT SET.
    """
    project_dir = dir or find_project_dir()
    config_path = project_dir / "config.yaml"

    try:
        if config_path.is_file():
            config = ProwMetricsConfig.from_file(config_path)
        else:
            config = ProwMetricsConfig(project_dir=project_dir)
        config.apply_env()
    except ProwMetricsConfigError as exc:
        console.print(Panel(f"[red]{exc}[/red]", title="[red]Config Error[/red]", border_style="red"))
        raise typer.Exit(code=2)

    table = Table(title="prowmetrics Configuration", border_style="cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    table.add_row("Project Dir", str(project_dir), "resolved")
    table.add_row("Config File", str(config_path), "exists" if config_path.is_file() else "missing")
    table.add_row("", "", "")
    for key, label in (
        ("viewer_prefix", "Viewer Prefix"),
        ("listing_prefix", "Listing Prefix"),
        ("storage_prefix", "Storage Prefix"),
    ):
        value = getattr(config, key)
        table.add_row(label, value or "[red]NOT SET[/red]", _source(ENV_OVERRIDES[key], config_path))
    table.add_row("Timeout", f"{config.timeout:g}s", _source(ENV_TIMEOUT_KEY, config_path))

    console.print()
    console.print(table)
    console.print()
