"""
CLI: ``expressway config`` -- inspect an application's configuration.
"""

from __future__ import annotations

from pathlib import Path

import typer

from expressway.cli.utils import console, err_console, load_application, print_json

app = typer.Typer(no_args_is_help=True)

_MISSING = object()


@app.command("get")
def get_value(
    path: str = typer.Argument(..., help="Dotted path, e.g. app.port"),
    root: Path | None = typer.Option(None, "--root", "-r", help="Application root (default: cwd)"),
    default: str | None = typer.Option(None, "--default", "-d", help="Printed when the path is absent"),
) -> None:
    """Print a configuration value as JSON."""
    config = load_application(root).config
    value = config.get(path, _MISSING)
    if value is _MISSING:
        if default is None:
            err_console.print(f"[red]Not set:[/red] {path}")
            raise typer.Exit(code=1)
        value = default
    print_json(value)


@app.command("namespaces")
def namespaces(
    root: Path | None = typer.Option(None, "--root", "-r", help="Application root (default: cwd)"),
) -> None:
    """List the loaded configuration namespaces."""
    loaded = load_application(root).config.namespaces()
    if not loaded:
        console.print("[dim]No configuration namespaces.[/dim]")
        return
    for namespace in loaded:
        console.print(namespace)
