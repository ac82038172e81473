"""
CLI: ``expressway serve`` -- bootstrap, boot and serve an application.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from expressway.cli.utils import console, fail, load_application
from expressway.core.errors import ExpresswayError


def serve(
    root: Path | None = typer.Option(None, "--root", "-r", help="Application root (default: cwd)"),
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: app.port, then 3000)"),
    log_level: str = typer.Option("INFO", "--log-level"),
) -> None:
    """Boot the application and serve it until interrupted."""
    application = load_application(root, log_level=log_level)

    async def _run() -> None:
        await application.boot()
        await application.serve(port, host)
        console.print(
            f"[bold green]Serving[/bold green] {application.root} on {application.host}:{application.port}"
        )
        await application.wait_closed()

    try:
        asyncio.run(_run())
    except ExpresswayError as exc:
        fail(exc)
