"""Service provider boot.

Providers register application-wide capabilities once, at startup. In
autoload mode (``app.autoload_providers``) every unit in
``app/providers/`` is booted; otherwise the identifiers in
``app.providers`` are, resolved against that directory. All providers
boot concurrently and the batch fails as a whole::

    # app/providers/search.py
    from expressway import lifecycle

    @lifecycle
    class SearchProvider:
        def __init__(self, app):
            self.app = app

        async def boot(self):
            self.app.services["search"] = await connect_search()
"""

from __future__ import annotations

from types import ModuleType
from typing import TYPE_CHECKING, Any

from expressway.core.errors import ExpresswayError, PluginShapeError, ProviderBootError
from expressway.core.logging import get_logger
from expressway.plugins.barrier import join_all
from expressway.plugins.discovery import PluginDiscovery
from expressway.plugins.resolver import export, import_file
from expressway.plugins.units import PluginKind, classify, maybe_await

if TYPE_CHECKING:
    from expressway.http.server import Application

logger = get_logger(__name__)


async def boot_provider(unit: Any, application: Application) -> Any:
    """Run one provider unit to completion."""
    if classify(unit) is PluginKind.LIFECYCLE:
        instance = unit(application)
        boot = getattr(instance, "boot", None)
        if not callable(boot):
            raise PluginShapeError(f"Lifecycle provider {unit.__name__} has no boot() method")
        await maybe_await(boot())
        return instance
    return await maybe_await(unit(application))


class ProviderLifecycle:
    def __init__(self, application: Application) -> None:
        self.application = application
        context = application.context
        self.base_dir = context.path(context.layout.providers_dir)
        self.directory = context.directory(context.layout.providers_dir)

    @property
    def autoload(self) -> bool:
        return bool(self.application.config.get("app.autoload_providers", False))

    def units(self) -> list[tuple[str, Any]]:
        """``(name, unit)`` pairs to boot, in declared or discovery order."""
        if self.autoload:
            return [
                (descriptor.name, self._export(descriptor.name, import_file(descriptor.path, namespace="provider")))
                for descriptor in PluginDiscovery(self.directory)
            ]

        resolver = self.application.context.resolver
        units = []
        for identifier in self.application.config.get("app.providers", []) or []:
            try:
                loaded = resolver.load_identifier(identifier, self.base_dir, namespace="provider")
            except ExpresswayError as exc:
                raise exc.with_context(unit=identifier, phase="providers")
            units.append((identifier, self._export(identifier, loaded)))
        return units

    @staticmethod
    def _export(name: str, loaded: Any) -> Any:
        if not isinstance(loaded, ModuleType):
            return loaded
        try:
            return export(loaded, "provider")
        except ExpresswayError as exc:
            raise exc.with_context(unit=name, phase="providers")

    async def _boot_one(self, name: str, unit: Any) -> Any:
        try:
            result = await boot_provider(unit, self.application)
        except Exception as exc:
            detail = exc.message if isinstance(exc, ExpresswayError) else str(exc)
            raise ProviderBootError(
                f"Provider '{name}' failed to boot: {detail}", cause=exc
            ).with_context(unit=name, phase="providers") from exc
        logger.info("provider_booted", provider=name)
        return result

    async def boot_all(self) -> list[str]:
        """Boot every provider concurrently; returns their names once all have booted."""
        units = self.units()
        await join_all(self._boot_one(name, unit) for name, unit in units)
        return [name for name, _ in units]


__all__ = ["ProviderLifecycle", "boot_provider"]
