"""Plugin shapes and their registration markers.

A pluggable unit is either a *lifecycle* plugin (a class that is
instantiated, then asked to ``boot()`` or ``handle()``) or a *stateless*
plugin (a plain callable returning its effect). Units declare their shape
with :func:`lifecycle` or :func:`stateless`; untagged units fall back to a
structural check.

Example::

    from expressway import lifecycle

    @lifecycle
    class CacheProvider:
        def __init__(self, app):
            self.app = app

        async def boot(self):
            ...
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, TypeVar

from expressway.core.errors import PluginShapeError

T = TypeVar("T")

PLUGIN_MARKER = "__expressway_plugin__"


class PluginKind(str, Enum):
    """How a unit produces its effect."""

    LIFECYCLE = "lifecycle"
    STATELESS = "stateless"


def lifecycle(cls: T) -> T:
    """Mark a class as a lifecycle plugin (constructed, then booted/handled)."""
    if not inspect.isclass(cls):
        raise PluginShapeError(f"@lifecycle expects a class, got {type(cls).__name__}")
    setattr(cls, PLUGIN_MARKER, PluginKind.LIFECYCLE)
    return cls


def stateless(fn: T) -> T:
    """Mark a callable as a stateless plugin (invoked directly)."""
    if not callable(fn):
        raise PluginShapeError(f"@stateless expects a callable, got {type(fn).__name__}")
    setattr(fn, PLUGIN_MARKER, PluginKind.STATELESS)
    return fn


def declared_kind(value: Any) -> PluginKind | None:
    """Return the kind a unit was registered with, if any. Subclasses inherit the tag."""
    kind = getattr(value, PLUGIN_MARKER, None)
    return kind if isinstance(kind, PluginKind) else None


def classify(value: Any) -> PluginKind:
    """Classify a loaded unit. Pure and deterministic for a given value."""
    kind = declared_kind(value)
    if kind is not None:
        return kind
    if inspect.isclass(value):
        return PluginKind.LIFECYCLE
    if callable(value):
        return PluginKind.STATELESS
    raise PluginShapeError(
        f"{value!r} is neither a class nor a callable and cannot be used as a plugin"
    )


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = [
    "PLUGIN_MARKER",
    "PluginKind",
    "lifecycle",
    "stateless",
    "declared_kind",
    "classify",
    "maybe_await",
]
