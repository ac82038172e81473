"""
Application configuration store.

Each file in the application's ``config/`` directory becomes one
namespace, named after the file stem. Values are read with dotted paths::

    store.load(root / "config")
    store.get("app.port", 3000)      # config/app.py → config["port"]
    store("cookies.enable_csrf")     # the store is callable

Supported formats:
    ``.py``   module attribute ``config``; without one, the module's public
              data attributes (``PORT = 4000`` → ``{"PORT": 4000}``)
    ``.toml`` parsed with :mod:`tomllib`
    ``.json`` parsed with :mod:`json`

Files are read in lexicographic order, so ``app.py`` is overwritten by
``app.toml``. Index modules (``index.*``, ``__init__.py``), dotfiles and
other suffixes are skipped.

Lifecycle:
    The store is written once during bootstrap and then frozen; ``load()``
    on a frozen store raises :class:`ConfigError`. Readers never lock.
"""

from __future__ import annotations

import copy
import inspect
import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from expressway.core.errors import ConfigError, ConfigLoadError, ConfigScanError
from expressway.core.logging import get_logger
from expressway.plugins.discovery import (
    FilesystemDirectory,
    PluginDirectory,
    PluginDiscovery,
    is_dotfile,
    is_index,
)
from expressway.plugins.resolver import import_file

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = (".py", ".toml", ".json")

_MISSING = object()


def _module_config(module: ModuleType) -> Any:
    """Extract the configuration value a ``.py`` config module exports."""
    if hasattr(module, "config"):
        return module.config
    return {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_")
        and not inspect.ismodule(value)
        and not inspect.isclass(value)
        and not callable(value)
    }


def read_config_file(path: Path) -> Any:
    """Parse one configuration file according to its suffix."""
    try:
        if path.suffix == ".toml":
            with path.open("rb") as fh:
                return tomllib.load(fh)
        if path.suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
        return _module_config(import_file(path, namespace="config"))
    except ConfigError:
        raise
    except Exception as exc:
        raise ConfigLoadError(
            f"Failed to load config file {path.name}: {exc}", cause=exc
        ).with_context(path=str(path), phase="config") from exc


class ConfigStore:
    """In-memory, namespace-indexed configuration for one application."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._frozen = False

    # ── Loading ──────────────────────────────────────────────────────

    def load(self, config_dir: Path | str | PluginDirectory) -> list[str]:
        """Load every configuration file in ``config_dir``.

        Returns the namespaces loaded, in load order. A missing directory
        loads nothing; a directory that cannot be listed raises
        :class:`ConfigScanError`.
        """
        if self._frozen:
            raise ConfigError("Configuration is frozen and cannot be reloaded")

        directory = (
            config_dir
            if isinstance(config_dir, PluginDirectory)
            else FilesystemDirectory(Path(config_dir))
        )
        discovery = PluginDiscovery(
            directory,
            exclude=(is_index, is_dotfile),
            suffixes=SUPPORTED_SUFFIXES,
        )

        try:
            descriptors = [d for d in discovery if d.path.suffix in SUPPORTED_SUFFIXES]
        except OSError as exc:
            raise ConfigScanError(
                f"Cannot read configuration directory {directory.path}: {exc}", cause=exc
            ).with_context(path=str(directory.path), phase="config") from exc

        loaded: list[str] = []
        for descriptor in descriptors:
            self._data[descriptor.name] = read_config_file(descriptor.path)
            loaded.append(descriptor.name)
            logger.debug("config_namespace_loaded", namespace=descriptor.name, file=descriptor.path.name)

        logger.info("config_loaded", directory=str(directory.path), namespaces=loaded)
        return loaded

    def freeze(self) -> None:
        """Forbid further loads."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Reading ──────────────────────────────────────────────────────

    def get(self, path: str, default: Any = None) -> Any:
        """Read a dotted path; ``default`` when any segment is absent."""
        namespace, *segments = path.split(".")
        value = self._data.get(namespace, _MISSING)
        for segment in segments:
            if value is _MISSING:
                break
            value = self._descend(value, segment)
        return default if value is _MISSING else value

    __call__ = get

    @staticmethod
    def _descend(value: Any, segment: str) -> Any:
        if isinstance(value, Mapping):
            return value.get(segment, _MISSING)
        if isinstance(value, (list, tuple)) and segment.isdigit():
            index = int(segment)
            return value[index] if index < len(value) else _MISSING
        return _MISSING

    def namespaces(self) -> list[str]:
        return sorted(self._data)

    def as_dict(self) -> dict[str, Any]:
        """Deep copy of all namespaces."""
        return copy.deepcopy(self._data)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._data

    def __repr__(self) -> str:
        return f"ConfigStore(namespaces={self.namespaces()!r}, frozen={self._frozen})"


__all__ = ["ConfigStore", "read_config_file", "SUPPORTED_SUFFIXES"]
