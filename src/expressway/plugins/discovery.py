"""
Convention-based plugin discovery.

Discovery turns a directory of plugin files into a lazy, restartable
sequence of :class:`PluginDescriptor`. The directory is reached through
the :class:`PluginDirectory` protocol so tests can hand in an in-memory
listing instead of touching the filesystem.

Ordering:
    Descriptors are yielded in lexicographic order of their file name.
    Filesystem enumeration order differs across platforms, so the sort
    makes autoloaded middlewares and routes install the same way
    everywhere.

Exclusions:
    Predicates receive the entry name and return ``True`` to skip it.
    :data:`DEFAULT_EXCLUDES` drops index modules, dotfiles and private
    names (``__pycache__``, ``_helpers.py``).

Example::

    discovery = PluginDiscovery(FilesystemDirectory(root / "app/providers"))
    for descriptor in discovery:
        print(descriptor.name, descriptor.path)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

ExcludePredicate = Callable[[str], bool]

INDEX_STEMS = frozenset({"index", "__init__"})


@dataclass(frozen=True)
class DirectoryEntry:
    """One entry of a plugin directory listing."""

    name: str
    path: Path
    is_file: bool


@dataclass(frozen=True)
class PluginDescriptor:
    """A discovered plugin unit: its name (file stem) and location."""

    name: str
    path: Path


@runtime_checkable
class PluginDirectory(Protocol):
    """Directory handle consumed by discovery."""

    @property
    def path(self) -> Path: ...

    def exists(self) -> bool: ...

    def entries(self) -> Iterable[DirectoryEntry]: ...


class FilesystemDirectory:
    """:class:`PluginDirectory` backed by :mod:`pathlib`.

    ``entries()`` propagates ``OSError`` from the enumeration itself;
    callers decide whether a missing directory is an error.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_dir()

    def entries(self) -> Iterator[DirectoryEntry]:
        for child in self._path.iterdir():
            yield DirectoryEntry(name=child.name, path=child, is_file=child.is_file())

    def __repr__(self) -> str:
        return f"FilesystemDirectory({str(self._path)!r})"


# ── Exclusion predicates ─────────────────────────────────────────────────


def stem_of(name: str) -> str:
    """File name without its last suffix (``users.py`` → ``users``)."""
    return name.rsplit(".", 1)[0] if "." in name[1:] else name


def is_index(name: str) -> bool:
    """``index.py`` / ``__init__.py`` entry modules."""
    return stem_of(name) in INDEX_STEMS


def is_dotfile(name: str) -> bool:
    return name.startswith(".")


def is_private(name: str) -> bool:
    """``__pycache__``, ``_helpers.py`` and friends."""
    return name.startswith("_") and not is_index(name)


def named(*stems: str) -> ExcludePredicate:
    """Build a predicate excluding entries whose stem is one of ``stems``."""
    excluded = frozenset(stems)

    def _predicate(name: str) -> bool:
        return stem_of(name) in excluded

    return _predicate


DEFAULT_EXCLUDES: tuple[ExcludePredicate, ...] = (is_index, is_dotfile, is_private)


class PluginDiscovery:
    """Finite, restartable, lazy sequence of plugin descriptors.

    Each iteration re-reads the directory, so a discovery object can be
    created once and iterated again after files change. A missing
    directory yields nothing.
    """

    def __init__(
        self,
        directory: PluginDirectory,
        *,
        exclude: Iterable[ExcludePredicate] = DEFAULT_EXCLUDES,
        suffixes: Iterable[str] = (".py",),
    ) -> None:
        self.directory = directory
        self._exclude = tuple(exclude)
        self._suffixes = tuple(suffixes)

    def _accepts(self, entry: DirectoryEntry) -> bool:
        if any(predicate(entry.name) for predicate in self._exclude):
            return False
        if entry.is_file:
            return entry.path.suffix in self._suffixes
        # Packages count as plugins when ".py" units are being discovered
        return ".py" in self._suffixes and (entry.path / "__init__.py").is_file()

    def __iter__(self) -> Iterator[PluginDescriptor]:
        if not self.directory.exists():
            return
        for entry in sorted(self.directory.entries(), key=lambda e: e.name):
            if self._accepts(entry):
                yield PluginDescriptor(name=stem_of(entry.name), path=entry.path)

    def names(self) -> list[str]:
        """Names of all currently discoverable units, in discovery order."""
        return [descriptor.name for descriptor in self]


__all__ = [
    "DirectoryEntry",
    "PluginDescriptor",
    "PluginDirectory",
    "FilesystemDirectory",
    "PluginDiscovery",
    "DEFAULT_EXCLUDES",
    "ExcludePredicate",
    "stem_of",
    "is_index",
    "is_dotfile",
    "is_private",
    "named",
]
