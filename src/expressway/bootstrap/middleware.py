"""Global middleware installation.

The middlewares to install come from, in order of precedence:

1. ``app.middlewares`` in configuration, when non-empty,
2. the ``middlewares`` list of ``app/middlewares/global/__init__.py``
   (or ``index.py``), when non-empty,
3. every unit in ``app/middlewares/global/``, in discovery order.

Each unit exports ``middleware``. A lifecycle unit is constructed with
the application and asked for its dispatch callable via ``handle()``; a
stateless unit is called with the application and returns it::

    # app/middlewares/global/timing.py
    from expressway import stateless

    @stateless
    def middleware(app):
        async def timing(request, call_next):
            ...
        return timing
"""

from __future__ import annotations

from types import ModuleType
from typing import TYPE_CHECKING, Any

from starlette.middleware import Middleware

from expressway.core.errors import ExpresswayError, PluginShapeError
from expressway.core.logging import get_logger
from expressway.plugins.discovery import PluginDirectory, PluginDiscovery, is_index
from expressway.plugins.resolver import export, import_file
from expressway.plugins.units import PluginKind, classify

if TYPE_CHECKING:
    from expressway.http.server import Application

logger = get_logger(__name__)


def build_middleware(unit: Any, application: Application) -> Any:
    """Turn a loaded unit into a middleware artifact."""
    kind = classify(unit)
    if kind is PluginKind.LIFECYCLE:
        artifact = unit(application).handle()
    else:
        artifact = unit(application)
    if isinstance(artifact, Middleware) or callable(artifact):
        return artifact
    raise PluginShapeError(
        f"Middleware unit {getattr(unit, '__name__', unit)!r} produced {type(artifact).__name__}, "
        "expected a dispatch callable or a Middleware"
    )


class MiddlewareLoader:
    def __init__(self, application: Application) -> None:
        self.application = application
        context = application.context
        self.base_dir = context.path(context.layout.global_middleware_dir)
        self.directory: PluginDirectory = context.directory(context.layout.global_middleware_dir)

    def index_module(self) -> ModuleType | None:
        """The directory's index module, if it has one."""
        if not self.directory.exists():
            return None
        for entry in sorted(self.directory.entries(), key=lambda e: e.name):
            if entry.is_file and entry.name.endswith(".py") and is_index(entry.name):
                return import_file(entry.path, namespace="middleware")
        return None

    def declared(self) -> list[str] | None:
        """The explicit middleware list, or ``None`` to autoload the directory.

        An empty list counts as no list.
        """
        explicit = self.application.config.get("app.middlewares")
        if explicit:
            return list(explicit)
        index = self.index_module()
        if index is not None and getattr(index, "middlewares", None):
            return list(index.middlewares)
        return None

    def _load_unit(self, identifier: str) -> Any:
        resolver = self.application.context.resolver
        module = resolver.load_identifier(identifier, self.base_dir, namespace="middleware")
        return module if not isinstance(module, ModuleType) else export(module, "middleware")

    def _install(self, identifier: str, unit: Any) -> None:
        try:
            artifact = build_middleware(unit, self.application)
        except ExpresswayError as exc:
            raise exc.with_context(unit=identifier, phase="middlewares")
        self.application.use(artifact, name=identifier)
        logger.info("middleware_loaded", middleware=identifier)

    def install_global(self) -> list[str]:
        """Install the global middlewares in declared order; returns their identifiers."""
        declared = self.declared()
        installed: list[str] = []

        if declared is not None:
            for identifier in declared:
                try:
                    unit = self._load_unit(identifier)
                except ExpresswayError as exc:
                    raise exc.with_context(unit=identifier, phase="middlewares")
                self._install(identifier, unit)
                installed.append(identifier)
            return installed

        for descriptor in PluginDiscovery(self.directory):
            try:
                unit = export(import_file(descriptor.path, namespace="middleware"), "middleware")
            except ExpresswayError as exc:
                raise exc.with_context(unit=descriptor.name, phase="middlewares")
            self._install(descriptor.name, unit)
            installed.append(descriptor.name)
        return installed


__all__ = ["MiddlewareLoader", "build_middleware"]
