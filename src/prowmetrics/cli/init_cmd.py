"""prowmetrics init — Initialize a .prowmetrics/ project directory.

Writes a config.yaml holding the host prefixes the resolver needs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from prowmetrics.config import PROJECT_DIR_NAME
from prowmetrics.models import DEFAULT_FETCH_TIMEOUT, OPENSHIFT_CI_PREFIXES

console = Console()

_SAMPLE_CONFIG = f"""\
# prowmetrics configuration
# Environment variables PROWMETRICS_VIEWER_PREFIX, PROWMETRICS_LISTING_PREFIX,
# PROWMETRICS_STORAGE_PREFIX and PROWMETRICS_TIMEOUT take priority.

# Prow job viewer (the report URL you paste starts with this)
viewer_prefix: {OPENSHIFT_CI_PREFIXES["viewer_prefix"]}

# gcsweb listing host that mirrors the job's bucket under /gcs
listing_prefix: {OPENSHIFT_CI_PREFIXES["listing_prefix"]}

# Public object storage host serving the archive itself
storage_prefix: {OPENSHIFT_CI_PREFIXES["storage_prefix"]}

# Per-request timeout (seconds)
timeout: {DEFAULT_FETCH_TIMEOUT}
"""


def init(
    dir: Optional[Path] = typer.Option(
        None,
        "--dir",
        "-d",
        help="Parent directory for .prowmetrics/ (default: current directory).",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing config.yaml.",
    ),
) -> None:
    """Create .prowmetrics/config.yaml with the OpenShift CI host prefixes.

    Edit the file afterwards to point at another Prow deployment.
    """
    project_dir = (dir or Path.cwd()) / PROJECT_DIR_NAME
    config_path = write_sample_config(project_dir, force=force)
    if config_path is None:
        console.print(
            f"[yellow]{project_dir / 'config.yaml'} already exists.[/yellow] Use --force to overwrite."
        )
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"Wrote [bold]{config_path}[/bold]\n\nNext: prowmetrics resolve <prow report URL>",
            title="[bold green]prowmetrics initialized[/bold green]",
            border_style="green",
        )
    )


def write_sample_config(project_dir: Path, force: bool = False) -> Path | None:
    """Write the sample config; return None if one exists and ``force`` is off."""
    config_path = project_dir / "config.yaml"
    if config_path.exists() and not force:
        return None
    project_dir.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_SAMPLE_CONFIG, encoding="utf-8")
    return config_path
