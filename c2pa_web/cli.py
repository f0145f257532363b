#!/usr/bin/env python3
"""
C2PA Web CLI - run the server and inspect Content Credentials locally

Commands:
    c2pa-web serve              Start the HTTP server
    c2pa-web read <file>        Show the C2PA manifest embedded in an image
    c2pa-web verify <file>      Classify the manifest's validation results
    c2pa-web cleanup            Delete expired files from the temp directory
    c2pa-web version            Show version information
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from c2pa_web import __version__
from c2pa_web.config import Settings
from c2pa_web.errors import C2PAWebError
from c2pa_web.storage import TempStorage
from c2pa_web.verification import (
    STATUS_VALID,
    STATUS_WARNING,
    VerificationResult,
    summarize_manifest_store,
)


# =============================================================================
# CLI Application
# =============================================================================

app = typer.Typer(
    name="c2pa-web",
    help="C2PA Web - read, sign and verify Content Credentials",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Utility Functions
# =============================================================================

def format_timestamp(ts: Optional[str]) -> str:
    """Format a timestamp for display."""
    if not ts:
        return "Unknown"
    try:
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return str(ts)
    return dt.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def get_service():
    """Build the C2PA service, exit with a hint when the library is missing."""
    from c2pa_web.provenance import C2PAService

    service = C2PAService(Settings.from_env())
    if not service.available:
        rprint(Panel(
            "[bold red]c2pa-python not installed![/bold red]\n\n"
            "Install it with: [cyan]pip install c2pa-python[/cyan]",
            title="Missing Dependency",
            border_style="red",
        ))
        raise typer.Exit(1)
    return service


def print_unsigned(file: Path) -> None:
    rprint(Panel(
        f"[bold yellow]No C2PA manifest found[/bold yellow]\n\n"
        f"[dim]File:[/dim] {file}\n\n"
        "This file does not contain C2PA information.",
        title="Unsigned",
        border_style="yellow",
    ))


# =============================================================================
# Serve Command
# =============================================================================

@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: C2PA_WEB_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: C2PA_WEB_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes (development)"),
):
    """
    Start the C2PA Web server.

    Examples:
        c2pa-web serve
        c2pa-web serve --host 0.0.0.0 --port 8080
    """
    import uvicorn

    from c2pa_web.server import setup_logging

    settings = Settings.from_env()
    setup_logging(settings.log_level)

    host = host or settings.host
    port = port or settings.port
    rprint(f"[bold]C2PA Web[/bold] v{__version__} on [cyan]http://{host}:{port}[/cyan]")
    rprint(f"[dim]Temp directory:[/dim] {settings.temp_dir}")

    uvicorn.run(
        "c2pa_web.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# =============================================================================
# Read Command
# =============================================================================

@app.command("read")
def read_file(
    file: Path = typer.Argument(
        ...,
        help="Path to the image to read",
        exists=True,
        readable=True,
        dir_okay=False,
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw manifest store JSON"),
):
    """
    Show the C2PA manifest embedded in an image.

    Examples:
        c2pa-web read photo.jpg
        c2pa-web read photo.jpg --json
    """
    service = get_service()

    with console.status(f"[bold blue]Reading manifest from {file.name}..."):
        try:
            store = service.read(file)
        except C2PAWebError as e:
            rprint(f"[red]Error reading manifest:[/red] {e.message}")
            raise typer.Exit(1)

    if store is None:
        if as_json:
            typer.echo(json.dumps({"hasC2pa": False}))
        else:
            print_unsigned(file)
        return

    if as_json:
        typer.echo(json.dumps(store, indent=2, default=str))
        return

    summary = summarize_manifest_store(store)

    table = Table(show_header=False, box=None)
    table.add_column("Property", style="dim", width=16)
    table.add_column("Value")
    table.add_row("Title", summary["title"] or "-")
    table.add_row("Format", summary["format"] or "-")
    table.add_row("Generator", summary["claimGenerator"] or "-")
    table.add_row("Issuer", summary["signatureIssuer"] or "-")
    table.add_row("Signed", format_timestamp(summary["signedAt"]))
    table.add_row("Manifests", str(summary["manifestCount"]))

    rprint(Panel(
        f"[bold green]C2PA manifest found[/bold green]\n\n"
        f"[dim]File:[/dim] {file}\n"
        f"[dim]Active:[/dim] {summary['activeManifest']}",
        title="Content Credentials",
        border_style="green",
    ))
    rprint(table)

    if summary["assertions"]:
        rprint("\n[bold]Assertions:[/bold]")
        for label in summary["assertions"]:
            rprint(f"  - {label}")
    if summary["ingredients"]:
        rprint("\n[bold]Ingredients:[/bold]")
        for title in summary["ingredients"]:
            rprint(f"  - {title}")


# =============================================================================
# Verify Command
# =============================================================================

def print_verification(file: Path, result: VerificationResult) -> None:
    if not result.has_manifest:
        print_unsigned(file)
        return

    style = {STATUS_VALID: "green", STATUS_WARNING: "yellow"}.get(result.status, "red")
    rprint(Panel(
        f"[bold {style}]{result.status.upper()}[/bold {style}]\n\n[dim]File:[/dim] {file}",
        title="Verification",
        border_style=style,
    ))

    for error in result.errors:
        rprint(f"[red]✗[/red] {error}")
    for warning in result.warnings:
        rprint(f"[yellow]![/yellow] {warning}")

    if result.trust:
        table = Table(show_header=False, box=None)
        table.add_column("Property", style="dim", width=16)
        table.add_column("Value")
        table.add_row("Trusted", "Yes" if result.trust.is_trusted else "No")
        table.add_row("Issuer", result.trust.issuer or "-")
        table.add_row("Signed", format_timestamp(result.trust.timestamp))
        table.add_row("Algorithm", result.trust.algorithm or "-")
        rprint(table)


@app.command("verify")
def verify_file(
    file: Path = typer.Argument(
        ...,
        help="Path to the image to verify",
        exists=True,
        readable=True,
        dir_okay=False,
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """
    Classify the validation results of an image's C2PA manifest.

    Exits with 0 when the manifest is valid, 1 otherwise.

    Examples:
        c2pa-web verify signed.jpg
    """
    service = get_service()

    with console.status(f"[bold blue]Verifying {file.name}..."):
        try:
            result = service.verify(file)
        except C2PAWebError as e:
            rprint(f"[red]Error verifying manifest:[/red] {e.message}")
            raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps({"hasC2pa": result.has_manifest, **result.to_dict()}, indent=2, default=str))
    else:
        print_verification(file, result)

    if not result.is_valid:
        raise typer.Exit(1)


# =============================================================================
# Cleanup Command
# =============================================================================

@app.command("cleanup")
def cleanup(
    max_age: Optional[int] = typer.Option(
        None,
        "--max-age",
        min=0,
        help="Delete files older than this many seconds (default: C2PA_WEB_RETENTION_SECONDS)",
    ),
):
    """
    Delete expired uploads and signed files from the temp directory.

    Meant to be run from cron or a systemd timer.
    """
    settings = Settings.from_env()
    age = settings.retention_seconds if max_age is None else max_age

    removed = TempStorage(settings.temp_dir).purge_expired(age)
    rprint(
        f"[green]✓[/green] Removed {len(removed)} file(s) older than {age}s "
        f"from {settings.temp_dir}"
    )


# =============================================================================
# Version Command
# =============================================================================

@app.command("version")
def show_version():
    """Show version information."""
    from c2pa_web.provenance import C2PAService

    service = C2PAService(Settings.from_env())
    rprint(f"[bold]C2PA Web[/bold] v{__version__}")
    rprint(f"[dim]C2PA Available:[/dim] {'Yes' if service.available else 'No'}")
    if service.available:
        rprint(f"[dim]C2PA Version:[/dim] {service.sdk_version() or 'Unknown'}")


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
