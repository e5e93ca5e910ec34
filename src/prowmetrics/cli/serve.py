"""prowmetrics serve — Run a listing fixture as a local gcsweb stand-in.

Point listing_prefix and storage_prefix at the printed URL to try
``prowmetrics resolve`` without network access.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from prowmetrics.engine.listing_server import ListingServer

console = Console(stderr=True)


def serve(
    fixture: Path = typer.Argument(..., help="Listing fixture YAML."),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to bind (overrides the fixture; 0 picks a free port).",
    ),
) -> None:
    """Serve FIXTURE on 127.0.0.1 until interrupted."""
    try:
        server = ListingServer.from_file(fixture, port=port)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2)

    server.start()
    console.print(f"Serving [bold]{fixture}[/bold] at [bold cyan]{server.url}[/bold cyan]  (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()
