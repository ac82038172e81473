"""Bootstrap context.

One :class:`BootstrapContext` is created per application at bootstrap
start and handed to every component. It replaces process-wide globals:
the configuration store, the facade registry and the services published
by backends all hang off it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from expressway.core.config import ConfigStore
from expressway.core.settings import AppLayout, ExpresswaySettings
from expressway.plugins.discovery import FilesystemDirectory, PluginDirectory
from expressway.plugins.resolver import PluginResolver

if TYPE_CHECKING:
    from expressway.facades import FacadeRegistry

DirectoryFactory = Callable[[Path], PluginDirectory]


@dataclass
class BootstrapContext:
    """Everything the boot phases share.

    Attributes:
        settings: Framework settings
        layout: Directory conventions, relative to ``settings.root``
        config: Application configuration (frozen after bootstrap)
        resolver: Identifier resolver rooted at the application
        facades: Lazily-bound aliases published before backends load
        services: Capabilities published by backends and providers
        directory_factory: Builds directory handles for discovery
    """

    settings: ExpresswaySettings
    layout: AppLayout = field(default_factory=AppLayout)
    config: ConfigStore = field(default_factory=ConfigStore)
    resolver: PluginResolver | None = None
    facades: FacadeRegistry | None = None
    services: dict[str, Any] = field(default_factory=dict)
    directory_factory: DirectoryFactory = FilesystemDirectory

    def __post_init__(self) -> None:
        if self.resolver is None:
            self.resolver = PluginResolver(self.root)
        if self.facades is None:
            from expressway.facades import FacadeRegistry

            self.facades = FacadeRegistry(self.resolver)

    @property
    def root(self) -> Path:
        return Path(self.settings.root)

    def path(self, relative: str) -> Path:
        """Absolute path of a directory convention."""
        return self.root / relative

    def directory(self, relative: str) -> PluginDirectory:
        """Directory handle for a convention, built by ``directory_factory``."""
        return self.directory_factory(self.path(relative))


__all__ = ["BootstrapContext", "DirectoryFactory"]
