"""
Bootstrap sequencer.

``bootstrap()`` turns an application skeleton into an :class:`Application`
in two steps. The synchronous part reads settings, configures logging and
loads configuration. ``Application.boot()`` then runs the asynchronous
phases, strictly in this order:

    ┌──────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────────────┐
    │ facades      │──▶│ backends     │──▶│ body parsing │──▶│ security     │
    └──────────────┘   │ (joined)     │   └──────────────┘   └──────┬───────┘
                       └──────────────┘                             │
    ┌──────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────▼───────┐
    │ routes       │◀──│ providers    │◀──│ middlewares  │◀──┤              │
    │ main + auto  │   │ (joined)     │   │ (declared    │   └──────────────┘
    └──────┬───────┘   └──────────────┘   │  order)      │
           │                              └──────────────┘
    ┌──────▼───────┐   ┌──────────────┐   ┌──────────────┐
    │ static files │──▶│ error handler│──▶│ finalize     │
    └──────────────┘   └──────────────┘   └──────────────┘

The first failing phase aborts the boot; its error propagates unchanged.

Example::

    app = bootstrap("/srv/shop")
    await app.boot()
    await app.serve()
    await app.wait_closed()
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from expressway.backends import BackendLoader
from expressway.bootstrap.middleware import MiddlewareLoader
from expressway.bootstrap.providers import ProviderLifecycle
from expressway.bootstrap.routes import RouteAssembler
from expressway.bootstrap.security import SecurityConfigurator
from expressway.core.context import BootstrapContext, DirectoryFactory
from expressway.core.errors import ExpresswayError
from expressway.core.logging import LogContext, configure_logging, get_logger
from expressway.core.settings import AppLayout, ExpresswaySettings
from expressway.http.body import json_body_parser, urlencoded_body_parser
from expressway.http.server import Application
from expressway.plugins.discovery import FilesystemDirectory
from expressway.plugins.units import maybe_await

logger = get_logger(__name__)


def bootstrap(
    root: Path | str | None = None,
    *,
    settings: ExpresswaySettings | None = None,
    layout: AppLayout | None = None,
    directory_factory: DirectoryFactory | None = None,
    configure_logs: bool = True,
) -> Application:
    """Create an application for the skeleton at ``root`` with its configuration loaded.

    ``root`` overrides ``settings.root``; without either the root is the
    working directory (or ``EXPRESSWAY_ROOT``).
    """
    if settings is None:
        settings = ExpresswaySettings(root=Path(root)) if root is not None else ExpresswaySettings()
    elif root is not None:
        settings = settings.model_copy(update={"root": Path(root)})

    if configure_logs:
        configure_logging(level=settings.log_level, json_format=settings.log_json, service=settings.title)

    context = BootstrapContext(
        settings=settings,
        layout=layout or AppLayout(),
        directory_factory=directory_factory or FilesystemDirectory,
    )
    context.config.load(context.directory(context.layout.config_dir))
    context.config.freeze()

    logger.info("bootstrap_ready", root=str(context.root), namespaces=context.config.namespaces())
    return Application(context)


class BootstrapSequencer:
    """Runs the boot phases for one application, once."""

    def __init__(self, application: Application) -> None:
        self.application = application
        self.config = application.config

    async def _phase(self, name: str, step: Callable[[], Awaitable[Any] | Any]) -> Any:
        with LogContext(phase=name):
            logger.debug("phase_started")
            started = time.perf_counter()
            try:
                result = await maybe_await(step())
            except ExpresswayError as exc:
                if exc.context.phase is None:
                    exc.with_context(phase=name)
                logger.error("phase_failed", error=exc)
                raise
            except Exception as exc:
                logger.error("phase_failed", error=exc)
                raise
            logger.info("phase_completed", duration_ms=round((time.perf_counter() - started) * 1000, 2))
        return result

    def _register_facades(self) -> list[str]:
        facades = self.config.get("app.facades") or {}
        return self.application.facades.register(facades)

    def _install_body_parsers(self) -> None:
        self.application.use(json_body_parser, name="json_body_parser")
        self.application.use(urlencoded_body_parser, name="urlencoded_body_parser")

    def _mount_static(self) -> str | None:
        static_dir = self.config.get("app.static_dir")
        if not static_dir:
            return None
        self.application.mount_static(static_dir)
        return static_dir

    async def boot(self) -> Application:
        app = self.application
        routes = RouteAssembler(app)

        with LogContext(root=str(app.root)):
            await self._phase("facades", self._register_facades)
            await self._phase("backends", BackendLoader(app).load_all)
            await self._phase("body_parsing", self._install_body_parsers)
            await self._phase("security", SecurityConfigurator(app).configure)
            await self._phase("middlewares", MiddlewareLoader(app).install_global)
            await self._phase("providers", ProviderLifecycle(app).boot_all)
            await self._phase("routes", routes.assemble)
            await self._phase("static", self._mount_static)
            await self._phase("error_handler", routes.mount_error_handler)
            await self._phase("finalize", app.finalize)

        logger.info("boot_completed", stack_size=len(app.stack))
        return app


__all__ = ["bootstrap", "BootstrapSequencer"]
