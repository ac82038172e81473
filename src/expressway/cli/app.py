"""
Root Typer application for the expressway CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from expressway import __version__
from expressway.cli.config import app as config_app
from expressway.cli.serve import serve
from expressway.cli.stack import stack

app = Typer(
    name="expressway",
    help="expressway: convention-driven bootstrap for FastAPI applications.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"expressway {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """expressway CLI: boot, serve and inspect applications."""


app.command("serve")(serve)
app.command("stack")(stack)
app.add_typer(config_app, name="config", help="Configuration inspection.")


if __name__ == "__main__":
    app()
