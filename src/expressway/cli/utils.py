"""
CLI utility helpers -- application loading and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from expressway.bootstrap.sequencer import bootstrap
from expressway.core.errors import ExpresswayError
from expressway.core.settings import ExpresswaySettings
from expressway.http.server import Application, StackEntry

console = Console()
err_console = Console(stderr=True)


def load_application(root: Path | None, *, log_level: str = "WARNING", **overrides: Any) -> Application:
    """Bootstrap the skeleton at ``root``; exits with code 1 on configuration errors."""
    fields: dict[str, Any] = {"log_level": log_level, **overrides}
    if root is not None:
        fields["root"] = root
    try:
        return bootstrap(settings=ExpresswaySettings(**fields))
    except ExpresswayError as exc:
        fail(exc)


def fail(exc: ExpresswayError) -> None:
    """Print a structured error and exit with code 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(exc).__name__}): {exc.message}")
    context = exc.context.to_dict()
    for key, value in context.items():
        err_console.print(f"  [dim]{key}[/dim]: {value}")
    raise typer.Exit(code=1)


def print_json(value: Any) -> None:
    console.print_json(json.dumps(value, default=str))


def print_stack(stack: list[StackEntry], *, title: str = "") -> None:
    """Render the installed stack as a Rich table, in installation order."""
    if not stack:
        console.print("[dim]Nothing installed.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("kind")
    table.add_column("name", overflow="fold")
    table.add_column("path")
    for position, entry in enumerate(stack, start=1):
        table.add_row(str(position), entry.kind, entry.name, entry.path or "")
    console.print(table)
