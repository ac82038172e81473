"""Route table assembly.

``routes/__init__.py`` (or ``routes/index.py``) is the entry module. It
exports ``main``, the primary router mounted at ``/``, and ``errors``,
the catch-all error handler installed after everything else. Every other
module in ``routes/`` exports ``router`` and is mounted at ``/<stem>``::

    routes/
        __init__.py     main, errors
        users.py        router  → /users
        billing/        router  → /billing
"""

from __future__ import annotations

from types import ModuleType
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter

from expressway.core.errors import PluginError, RouteLoadError
from expressway.core.logging import get_logger
from expressway.plugins.discovery import DEFAULT_EXCLUDES, PluginDiscovery, is_index, named
from expressway.plugins.resolver import import_file

if TYPE_CHECKING:
    from expressway.http.server import Application

logger = get_logger(__name__)

_UNSET: Any = object()


def is_empty_router(router: Any) -> bool:
    """``None``, or an ``APIRouter`` without routes."""
    return router is None or (isinstance(router, APIRouter) and not router.routes)


class RouteAssembler:
    def __init__(self, application: Application) -> None:
        self.application = application
        context = application.context
        self.directory = context.directory(context.layout.routes_dir)
        self._entry: ModuleType | None = _UNSET

    def _import(self, name: str, path) -> ModuleType:
        try:
            return import_file(path, namespace="routes")
        except PluginError as exc:
            raise RouteLoadError(
                f"Route module '{name}' failed to load: {exc.message}", cause=exc
            ).with_context(unit=name, path=str(path), phase="routes") from exc

    def entry_module(self) -> ModuleType | None:
        """The routes entry module, or ``None`` when the application has none."""
        if self._entry is _UNSET:
            self._entry = None
            if self.directory.exists():
                for entry in sorted(self.directory.entries(), key=lambda e: e.name):
                    if entry.is_file and entry.name.endswith(".py") and is_index(entry.name):
                        self._entry = self._import(entry.name, entry.path)
                        break
            if self._entry is None:
                logger.warning("routes_entry_missing", directory=str(self.directory.path))
        return self._entry

    def _entry_export(self, name: str) -> Any:
        entry = self.entry_module()
        if not hasattr(entry, name):
            raise RouteLoadError(
                f"Routes entry module does not export '{name}'"
            ).with_context(unit=name, path=getattr(entry, "__file__", None), phase="routes")
        return getattr(entry, name)

    def assemble(self) -> list[str]:
        """Mount ``main`` at ``/``, then every autoloaded route module. Returns the mounted prefixes."""
        mounted: list[str] = []
        if self.entry_module() is not None:
            self.application.mount("/", self._entry_export("main"), name="main")
            mounted.append("/")

        discovery = PluginDiscovery(self.directory, exclude=(*DEFAULT_EXCLUDES, named("errors")))
        for descriptor in discovery:
            module = self._import(descriptor.name, descriptor.path)
            router = getattr(module, "router", None)
            if is_empty_router(router):
                logger.debug("route_skipped", route=descriptor.name, reason="empty")
                continue
            prefix = f"/{descriptor.name}"
            self.application.mount(prefix, router, name=descriptor.name)
            mounted.append(prefix)
        return mounted

    def mount_error_handler(self) -> bool:
        """Install the entry module's ``errors`` handler; returns whether one was installed."""
        if self.entry_module() is None:
            return False
        self.application.use_error_handler(self._entry_export("errors"), name="errors")
        return True


__all__ = ["RouteAssembler", "is_empty_router"]
