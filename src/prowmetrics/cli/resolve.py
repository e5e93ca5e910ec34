"""prowmetrics resolve — Find the Prometheus archive behind a Prow job report.

Narrates each checkpoint to stderr and prints the result to stdout, so the
archive URL can be piped into other tools.

Features:
- TTY-aware output: Rich status lines in interactive terminals, plain ASCII
  lines in CI/pipes (auto-detected or via --plain).
- --json: machine-readable result on stdout.
- --no-validate: skip the HEAD check of the archive.
"""

from __future__ import annotations

import json
import logging
import random
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from prowmetrics.config import ProwMetricsConfigError, find_project_dir, load_config
from prowmetrics.engine.errors import ResolutionError
from prowmetrics.engine.lookup import find_metrics_archive
from prowmetrics.engine.resolver import DirectoryResolver
from prowmetrics.engine.status import ConsoleStatusSink

console = Console(stderr=True)
output_console = Console()  # stdout for machine-readable output

logger = logging.getLogger("prowmetrics.cli.resolve")


def _print_error(c: Console, plain: bool, message: str, title: str = "Error") -> None:
    """Print an error message in either plain or Rich mode."""
    if plain:
        print(f"[{title}] {message}", file=sys.stderr, flush=True)
    else:
        c.print(Panel(f"[red]{message}[/red]", title=f"[red]{title}[/red]", border_style="red"))


def resolve(
    report_url: str = typer.Argument(..., help="Prow job report URL (the viewer page)."),
    dir: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="Path to .prowmetrics/ directory.",
    ),
    validate: bool = typer.Option(
        True,
        "--validate/--no-validate",
        help="HEAD-check that the archive exists and is non-empty.  [default: validate]",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON on stdout.",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Use plain ASCII output. For CI logs and screen readers.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-request timeout in seconds (overrides config).",
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Generate a run label from this seed.",
    ),
) -> None:
    """Resolve REPORT_URL to the URL of its metrics/prometheus.tar.

    \b
    Examples:
      prowmetrics resolve https://prow.svc.ci.openshift.org/view/gcs/origin-ci-test/logs/job/123
      prowmetrics resolve URL --no-validate --json | jq -r '.archive_url'
    """
    if not sys.stdout.isatty() and not plain and not as_json:
        plain = True

    project_dir = dir or find_project_dir()
    try:
        config = load_config(project_dir)
        if timeout is not None:
            config.timeout = timeout
            config.validate()
    except ProwMetricsConfigError as exc:
        _print_error(console, plain, str(exc), "Config Error")
        raise typer.Exit(code=2)

    sink = ConsoleStatusSink(console, plain=plain)
    rng = random.Random(seed) if seed is not None else None

    with DirectoryResolver(config) as resolver:
        try:
            lookup = find_metrics_archive(report_url, resolver, sink, validate=validate, rng=rng)
        except ResolutionError as exc:
            logger.debug("Resolution failed at stage %s for %s", exc.stage, exc.url)
            if as_json:
                error = {"error": str(exc), "stage": exc.stage, "url": exc.url}
                output_console.out(json.dumps(error, indent=2), highlight=False)
            raise typer.Exit(code=1)

    if as_json:
        payload = lookup.archive.to_dict()
        payload["validated"] = validate
        if lookup.label is not None:
            payload["label"] = lookup.label
        output_console.out(json.dumps(payload, indent=2), highlight=False)
    else:
        print(lookup.archive.archive_url, flush=True)
