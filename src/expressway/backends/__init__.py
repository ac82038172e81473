"""
Backends: infrastructure modules loaded before any middleware.

``app.modules`` lists the backends to load; an empty or missing list
means the built-in set ``mail``, ``database`` and ``caching``. Bare
names are built-ins (``expressway.backends.<name>``); path-like names
are application modules (``"app/backends/search.py"``,
``"acme.search"``). Each backend module exports ``load(app)``, which may
be async. All backends load concurrently and the batch fails as a whole.
"""

from __future__ import annotations

import importlib
from collections.abc import Sequence
from types import ModuleType
from typing import TYPE_CHECKING, Any

from expressway.core.errors import BackendLoadError, ExpresswayError
from expressway.core.logging import get_logger
from expressway.plugins.barrier import join_all
from expressway.plugins.resolver import export, is_path_like
from expressway.plugins.units import maybe_await

if TYPE_CHECKING:
    from expressway.http.server import Application

logger = get_logger(__name__)

DEFAULT_BACKENDS = ("mail", "database", "caching")


class BackendLoader:
    """Load the configured backends for one application."""

    def __init__(self, application: Application) -> None:
        self.application = application

    def modules(self, module_list: Sequence[str] | None = None) -> list[str]:
        """The backend identifiers to load, in declared order."""
        modules = module_list or self.application.config.get("app.modules") or DEFAULT_BACKENDS
        if isinstance(modules, str):
            modules = [modules]
        return list(modules)

    def import_backend(self, name: str) -> ModuleType:
        if is_path_like(name):
            return self.application.context.resolver.load_identifier(name, namespace="backend")
        return importlib.import_module(f"{__name__}.{name}")

    async def load_one(self, name: str) -> Any:
        try:
            module = self.import_backend(name)
            entry = export(module, "load")
            result = await maybe_await(entry(self.application))
        except BackendLoadError:
            raise
        except Exception as exc:
            detail = exc.message if isinstance(exc, ExpresswayError) else str(exc)
            raise BackendLoadError(
                f"Backend '{name}' failed to load: {detail}", cause=exc
            ).with_context(unit=name, phase="backends") from exc
        logger.info("backend_loaded", backend=name)
        return result

    async def load_all(self, module_list: Sequence[str] | None = None) -> list[str]:
        """Load every backend concurrently; returns their names once all have loaded."""
        names = self.modules(module_list)
        await join_all(self.load_one(name) for name in names)
        return names


__all__ = ["BackendLoader", "DEFAULT_BACKENDS"]
