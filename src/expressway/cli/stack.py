"""
CLI: ``expressway stack`` -- boot an application and list what it installed.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from pathlib import Path

import typer

from expressway.cli.utils import fail, load_application, print_json, print_stack
from expressway.core.errors import ExpresswayError


def stack(
    root: Path | None = typer.Option(None, "--root", "-r", help="Application root (default: cwd)"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Boot without serving and print the middleware/route stack in order."""
    application = load_application(root)
    try:
        asyncio.run(application.boot())
    except ExpresswayError as exc:
        fail(exc)

    if as_json:
        print_json([asdict(entry) for entry in application.stack])
        return
    print_stack(application.stack, title=f"Stack of {application.root}")
