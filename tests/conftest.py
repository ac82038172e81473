"""
Shared pytest fixtures for expressway tests.

This module provides:
- ``skeleton``: a throwaway application root with helpers to write
  config files, routes, middlewares and providers
- ``settings``: framework settings pointing at that root
- ``make_app``: bootstrap the skeleton without touching global logging

Usage:
    def test_something(skeleton, make_app):
        skeleton.config("app", {"port": 4000})
        app = make_app()
        assert app.config("app.port") == 4000
"""

from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from expressway.bootstrap.sequencer import bootstrap  # noqa: E402
from expressway.core.context import BootstrapContext  # noqa: E402
from expressway.core.settings import ExpresswaySettings  # noqa: E402
from expressway.http.server import Application  # noqa: E402


class Skeleton:
    """An application root under ``tmp_path``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, relative: str, content: str = "") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path

    def config(self, namespace: str, values: dict[str, Any]) -> Path:
        return self.write(f"config/{namespace}.py", f"config = {values!r}\n")

    def route(self, name: str, path: str = "/", body: str = "ok") -> Path:
        return self.write(
            f"routes/{name}.py",
            f"""
            from fastapi import APIRouter

            router = APIRouter()


            @router.get({path!r})
            def handler():
                return {{"route": {body!r}}}
            """,
        )

    def routes_entry(self, extra: str = "") -> Path:
        return self.write(
            "routes/__init__.py",
            """
            from fastapi import APIRouter
            from starlette.responses import JSONResponse

            main = APIRouter()


            @main.get("/")
            def home():
                return {"home": True}


            def errors(request, exc):
                return JSONResponse(status_code=500, content={"error": type(exc).__name__})
            """
            + textwrap.dedent(extra),
        )


@pytest.fixture
def skeleton(tmp_path: Path) -> Skeleton:
    return Skeleton(tmp_path)


@pytest.fixture
def settings(skeleton: Skeleton) -> ExpresswaySettings:
    return ExpresswaySettings(root=skeleton.root, log_level="WARNING", log_json=True)


@pytest.fixture
def make_app(settings: ExpresswaySettings) -> Callable[..., Application]:
    """Bootstrap the skeleton; keyword arguments are passed to ``bootstrap``."""

    def _make(**kwargs: Any) -> Application:
        kwargs.setdefault("configure_logs", False)
        return bootstrap(settings=settings, **kwargs)

    return _make


@pytest.fixture
def bare_app(settings: ExpresswaySettings) -> Application:
    """An application with an empty configuration, not booted."""
    return Application(BootstrapContext(settings=settings))
