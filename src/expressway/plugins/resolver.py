"""
Plugin identifier resolution and loading.

Identifiers name pluggable units in configuration (backends, middlewares,
providers, facades). One rule applies to all of them:

* **bare** (no ``/`` and no ``.``): a unit in the conventional directory
  for that kind, ``<base_dir>/<name>.py`` or ``<base_dir>/<name>/__init__.py``;
* **path-like**, containing ``/`` or ending in ``.py``: a file under the
  application root (``/x`` and ``./x`` are both root-relative), or an
  absolute path that exists;
* **path-like**, dotted (``acme.search``): an importable module.

An identifier may end in ``:attribute`` to select one attribute of the
module, as in ``"services.billing:client"``.

File units are executed under private module names so that two
applications with the same layout never share module objects.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any

from expressway.core.errors import PluginLoadError
from expressway.core.logging import get_logger
from expressway.plugins.units import PluginKind, declared_kind

logger = get_logger(__name__)

_PRIVATE_PACKAGE = "_expressway_units"


class ReferenceKind(str, Enum):
    """Where a resolved reference points."""

    FILE = "file"
    MODULE = "module"


@dataclass(frozen=True)
class PluginReference:
    """A resolved, loadable plugin location."""

    identifier: str
    kind: ReferenceKind
    target: str
    attribute: str | None = None

    @property
    def path(self) -> Path | None:
        return Path(self.target) if self.kind is ReferenceKind.FILE else None


def split_attribute(identifier: str) -> tuple[str, str | None]:
    """Split ``"module:attr"`` into its parts."""
    if ":" in identifier:
        module, _, attribute = identifier.rpartition(":")
        # Windows drive letters ("C:\\app") are not attribute selectors
        if module and attribute and "\\" not in attribute and "/" not in attribute:
            return module, attribute
    return identifier, None


def is_path_like(identifier: str) -> bool:
    """True when the identifier names a path or module rather than a bare unit."""
    name, _ = split_attribute(identifier)
    return "/" in name or "." in name


def import_file(path: Path, *, namespace: str = "unit") -> ModuleType:
    """Execute a Python file as a fresh module and return it.

    The module is registered in ``sys.modules`` under a private name
    derived from its absolute path.
    """
    path = Path(path).resolve()
    target = path / "__init__.py" if path.is_dir() else path
    digest = hashlib.sha1(str(target).encode("utf-8")).hexdigest()[:12]
    module_name = f"{_PRIVATE_PACKAGE}.{namespace}_{target.parent.name}_{path.stem}_{digest}"
    module_name = module_name.replace("-", "_")

    spec = importlib.util.spec_from_file_location(
        module_name,
        target,
        submodule_search_locations=[str(path)] if path.is_dir() else None,
    )
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Cannot load module from {target}").with_context(path=str(target))

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(
            f"Failed to import {target}: {exc}", cause=exc
        ).with_context(path=str(target)) from exc
    return module


class PluginResolver:
    """Resolve identifiers to modules, relative to an application root."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    # ── Resolution ───────────────────────────────────────────────────

    def resolve(self, identifier: str, base_dir: Path | str | None = None) -> PluginReference:
        """Resolve ``identifier`` to a :class:`PluginReference`.

        ``base_dir`` is the conventional directory for bare names; it may
        be absolute or relative to the application root. Resolution does
        not check that the target exists.
        """
        if not identifier or not identifier.strip():
            raise PluginLoadError("Plugin identifier must be a non-empty string")

        name, attribute = split_attribute(identifier.strip())

        if not is_path_like(name):
            if base_dir is None:
                raise PluginLoadError(
                    f"Bare identifier '{name}' needs a conventional directory"
                ).with_context(unit=name)
            base = Path(base_dir)
            if not base.is_absolute():
                base = self.root / base
            return PluginReference(identifier, ReferenceKind.FILE, str(self._file_for(base / name)), attribute)

        if "/" in name or "\\" in name or name.endswith(".py"):
            candidate = Path(name)
            if candidate.is_absolute() and candidate.exists():
                path = candidate
            else:
                path = self.root / name.lstrip("/\\")
            return PluginReference(identifier, ReferenceKind.FILE, str(self._file_for(path)), attribute)

        return PluginReference(identifier, ReferenceKind.MODULE, name, attribute)

    @staticmethod
    def _file_for(path: Path) -> Path:
        """Map an extension-less path onto ``<path>.py`` or a package directory."""
        if path.suffix == ".py" or path.is_dir():
            return path
        return path.with_name(path.name + ".py")

    # ── Loading ──────────────────────────────────────────────────────

    def load(self, reference: PluginReference, *, namespace: str = "unit") -> Any:
        """Import the module a reference points at; returns the attribute if one was selected."""
        if reference.kind is ReferenceKind.FILE:
            path = Path(reference.target)
            if not path.exists():
                raise PluginLoadError(
                    f"Plugin '{reference.identifier}' not found at {path}"
                ).with_context(unit=reference.identifier, path=str(path))
            module: Any = import_file(path, namespace=namespace)
        else:
            try:
                module = importlib.import_module(reference.target)
            except Exception as exc:
                raise PluginLoadError(
                    f"Cannot import module '{reference.target}': {exc}", cause=exc
                ).with_context(unit=reference.identifier) from exc

        if reference.attribute is None:
            return module
        try:
            return getattr(module, reference.attribute)
        except AttributeError as exc:
            raise PluginLoadError(
                f"'{reference.target}' has no attribute '{reference.attribute}'", cause=exc
            ).with_context(unit=reference.identifier) from exc

    def load_identifier(self, identifier: str, base_dir: Path | str | None = None, *, namespace: str = "unit") -> Any:
        """Shortcut for ``load(resolve(identifier, base_dir))``."""
        return self.load(self.resolve(identifier, base_dir), namespace=namespace)


def export(module: Any, name: str, kind: PluginKind | None = None) -> Any:
    """Return the unit a module exports under ``name``.

    Falls back to the single attribute defined in that module and tagged
    with ``kind`` (via ``@lifecycle``/``@stateless``), so a module can
    expose a decorated class without an explicit export name.
    """
    if hasattr(module, name):
        return getattr(module, name)

    module_name = getattr(module, "__name__", None)
    tagged = [
        value
        for attr, value in vars(module).items()
        if not attr.startswith("_")
        and getattr(value, "__module__", None) == module_name
        and declared_kind(value) is not None
        and (kind is None or declared_kind(value) is kind)
    ]
    if len(tagged) == 1:
        return tagged[0]

    origin = getattr(module, "__file__", module_name)
    if tagged:
        raise PluginLoadError(
            f"{origin} defines {len(tagged)} tagged plugins; export one as '{name}'"
        )
    raise PluginLoadError(f"{origin} does not export '{name}'")


__all__ = [
    "ReferenceKind",
    "PluginReference",
    "PluginResolver",
    "split_attribute",
    "is_path_like",
    "import_file",
    "export",
]
