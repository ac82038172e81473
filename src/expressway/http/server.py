"""
The composed HTTP application.

``Application`` wraps a single ``FastAPI`` instance and is the object
every plugin receives. Boot phases install middlewares, routers, static
files and error handlers on it in order; ``finalize()`` then builds the
ASGI stack so that the first middleware installed is the outermost one.

Manifesto:
    Installation order is request order. Everything installed is recorded
    in ``stack`` so the composed server can be inspected (``expressway
    stack``) and asserted on in tests without sending requests.

Tags:
    expressway, server, asgi, middleware, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import socket
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

import uvicorn
from fastapi import APIRouter, FastAPI
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Receive, Scope, Send

from expressway.core.errors import BootstrapError, PluginShapeError, ServeError
from expressway.core.logging import get_logger
from expressway.http.errors import ErrorChainMiddleware, ErrorHandler

if TYPE_CHECKING:
    from expressway.core.config import ConfigStore
    from expressway.core.context import BootstrapContext

logger = get_logger(__name__)

Dispatch = Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]
MiddlewareArtifact = Union[Dispatch, Middleware]


@dataclass(frozen=True)
class StackEntry:
    """One installed element: ``middleware``, ``router``, ``static`` or ``error_handler``."""

    kind: str
    name: str
    path: str | None = None


def _label(value: Any) -> str:
    if isinstance(value, Middleware):
        return getattr(value.cls, "__name__", repr(value.cls))
    return getattr(value, "__name__", type(value).__name__)


class Application:
    """An HTTP server under construction, then served."""

    def __init__(self, context: BootstrapContext) -> None:
        self.context = context
        settings = context.settings
        self.asgi = FastAPI(title=settings.title, version=settings.version, debug=settings.debug)
        self.asgi.state.application = self

        self.stack: list[StackEntry] = []
        self._middlewares: list[MiddlewareArtifact] = []
        self._error_handlers: list[ErrorHandler] = []
        self._root_mounts: list[tuple[Any, str | None]] = []
        self._finalized = False
        self.booted = False

        self.host: str | None = None
        self.port: int | None = None
        self.server: uvicorn.Server | None = None
        self._server_task: asyncio.Task | None = None

    # ── Shared state ─────────────────────────────────────────────────

    @property
    def config(self) -> ConfigStore:
        return self.context.config

    @property
    def facades(self):
        return self.context.facades

    @property
    def services(self) -> dict[str, Any]:
        return self.context.services

    @property
    def root(self) -> Path:
        return self.context.root

    # ── Installation ─────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._finalized:
            raise BootstrapError("The middleware stack is finalized; nothing more can be installed")

    def use(self, middleware: MiddlewareArtifact, *, name: str | None = None) -> Application:
        """Install a middleware after every middleware installed so far.

        Accepts a dispatch callable ``async (request, call_next) -> response``
        or a Starlette ``Middleware`` wrapping an ASGI middleware class.
        """
        self._ensure_open()
        if not isinstance(middleware, Middleware) and not callable(middleware):
            raise PluginShapeError(
                f"Middleware must be a dispatch callable or a Middleware, got {type(middleware).__name__}"
            )
        label = name or _label(middleware)
        self._middlewares.append(middleware)
        self.stack.append(StackEntry("middleware", label))
        logger.debug("middleware_installed", name=label, position=len(self._middlewares))
        return self

    def mount(self, prefix: str, router: Any, *, name: str | None = None) -> Application:
        """Mount an ``APIRouter`` (or any ASGI app) under ``prefix``.

        An ASGI app mounted at ``/`` matches every path, so it is added
        at ``finalize()`` behind every other route and mount.
        """
        self._ensure_open()
        path = "/" + prefix.strip("/")
        label = name or _label(router)
        if isinstance(router, APIRouter):
            self.asgi.include_router(router, prefix="" if path == "/" else path)
        elif callable(router):
            if path == "/":
                self._root_mounts.append((router, None))
            else:
                self.asgi.mount(path, router)
        else:
            raise PluginShapeError(f"Cannot mount {type(router).__name__} at {path}")
        self.stack.append(StackEntry("router", label, path))
        logger.info("route_mounted", name=label, prefix=path)
        return self

    def mount_static(self, directory: Path | str, prefix: str = "/") -> Application:
        """Serve files from ``directory`` under ``prefix``."""
        self._ensure_open()
        directory = Path(directory)
        if not directory.is_absolute():
            directory = self.root / directory
        path = "/" + prefix.strip("/")
        static = StaticFiles(directory=directory, check_dir=False)
        if path == "/":
            self._root_mounts.append((static, "static"))
        else:
            self.asgi.mount(path, static, name="static")
        self.stack.append(StackEntry("static", directory.name, path))
        logger.info("static_mounted", directory=str(directory), prefix=path)
        return self

    def use_error_handler(self, handler: ErrorHandler, *, name: str | None = None) -> Application:
        """Append an error handler to the request-time error chain."""
        self._ensure_open()
        if not callable(handler):
            raise PluginShapeError(f"Error handler must be callable, got {type(handler).__name__}")
        label = name or _label(handler)
        self._error_handlers.append(handler)
        self.stack.append(StackEntry("error_handler", label))
        return self

    def finalize(self) -> Application:
        """Build the ASGI middleware stack. Idempotent."""
        if self._finalized:
            return self
        # Root mounts match every path, so they go behind all other routes
        for root_app, mount_name in self._root_mounts:
            self.asgi.mount("/", root_app, name=mount_name)
        # add_middleware prepends, so install innermost first
        for middleware in reversed(self._middlewares):
            if isinstance(middleware, Middleware):
                self.asgi.add_middleware(middleware.cls, *middleware.args, **middleware.kwargs)
            else:
                self.asgi.add_middleware(BaseHTTPMiddleware, dispatch=middleware)
        self.asgi.add_middleware(ErrorChainMiddleware, handlers=tuple(self._error_handlers))
        self._finalized = True
        logger.debug(
            "stack_finalized",
            middlewares=len(self._middlewares),
            error_handlers=len(self._error_handlers),
        )
        return self

    @property
    def finalized(self) -> bool:
        return self._finalized

    # ── Lifecycle ────────────────────────────────────────────────────

    async def boot(self) -> Application:
        """Run every boot phase in order. May only be called once."""
        from expressway.bootstrap.sequencer import BootstrapSequencer

        if self.booted:
            raise BootstrapError("Application has already been booted")
        self.booted = True
        await BootstrapSequencer(self).boot()
        return self

    async def serve(self, port: int | None = None, host: str | None = None) -> Application:
        """Bind the listening socket and start serving in the background.

        The port is ``port`` if given, else ``app.port``, else the
        ``EXPRESSWAY_PORT`` setting. Binding happens before this returns,
        so an unavailable port raises :class:`ServeError` here.
        """
        if not self._finalized:
            raise BootstrapError("boot() must complete before serve()")
        if self.server is not None:
            raise ServeError("Application is already serving")

        settings = self.context.settings
        bind_port = int(port if port is not None else (self.config.get("app.port") or settings.port))
        bind_host = host or settings.host

        try:
            sock = socket.create_server((bind_host, bind_port))
        except OSError as exc:
            raise ServeError(
                f"Cannot listen on {bind_host}:{bind_port}: {exc}", cause=exc
            ).with_context(phase="serve", port=bind_port) from exc

        config = uvicorn.Config(
            self.asgi,
            log_config=None,
            log_level=settings.log_level.lower(),
            lifespan="on",
        )
        self.server = uvicorn.Server(config)
        self.host = bind_host
        self.port = sock.getsockname()[1]
        self._server_task = asyncio.create_task(self.server.serve(sockets=[sock]))
        logger.info("server_listening", host=self.host, port=self.port)
        return self

    async def wait_closed(self) -> None:
        """Wait until the server task exits."""
        if self._server_task is not None:
            await self._server_task

    async def shutdown(self) -> None:
        """Ask the server to exit and wait for it."""
        if self.server is None:
            return
        self.server.should_exit = True
        await self.wait_closed()
        logger.info("server_stopped", port=self.port)
        self.server = None
        self._server_task = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.asgi(scope, receive, send)

    def __repr__(self) -> str:
        state = "booted" if self.booted else "new"
        return f"<Application root={str(self.root)!r} {state} stack={len(self.stack)}>"


__all__ = ["Application", "StackEntry", "MiddlewareArtifact"]
