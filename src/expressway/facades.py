"""
Facades: application-wide aliases bound to a capability module.

``app.facades`` in configuration maps alias names to plugin identifiers::

    # config/app.py
    config = {
        "facades": {
            "Billing": "services/billing.py:client",
            "Paths": "os.path",            # importable module
            "Mailer": "mailer",            # <root>/mailer.py
        },
    }

Each target is resolved and imported when the alias is registered, so a
misspelt identifier fails the ``facades`` phase. Attribute access stays
late-bound: a :class:`LazyFacade` looks names up on its target at every
access, so attributes that backends or providers add later are visible
through the alias.

Facades are registered once per application, before any backend,
middleware or provider runs. Registering an alias twice raises
:class:`~expressway.core.errors.FacadeError`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from expressway.core.errors import FacadeError, PluginError
from expressway.core.logging import get_logger
from expressway.plugins.resolver import PluginResolver

logger = get_logger(__name__)


class LazyFacade:
    """Proxy forwarding attribute access and calls to its target."""

    __slots__ = ("_alias", "_identifier", "_target")

    def __init__(self, alias: str, identifier: str, target: Any) -> None:
        object.__setattr__(self, "_alias", alias)
        object.__setattr__(self, "_identifier", identifier)
        object.__setattr__(self, "_target", target)

    @property
    def target(self) -> Any:
        return self._target

    def __getattr__(self, name: str) -> Any:
        return getattr(self._target, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._target, name, value)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._target(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<LazyFacade {self._alias} -> {self._identifier}>"


class FacadeRegistry:
    """Aliases published for one application."""

    def __init__(self, resolver: PluginResolver) -> None:
        self._resolver = resolver
        self._facades: dict[str, LazyFacade] = {}

    def _load(self, alias: str, identifier: str) -> Any:
        try:
            return self._resolver.load_identifier(identifier, self._resolver.root, namespace="facade")
        except PluginError as exc:
            raise FacadeError(
                f"Facade '{alias}' cannot resolve '{identifier}': {exc.message}", cause=exc
            ).with_context(unit=alias) from exc

    def register(self, alias_map: Mapping[str, str]) -> list[str]:
        """Resolve and publish every alias in ``alias_map``; returns the aliases added."""
        added: list[str] = []
        for alias, identifier in alias_map.items():
            if not alias.isidentifier():
                raise FacadeError(f"Facade alias '{alias}' is not a valid identifier").with_context(unit=alias)
            if alias in self._facades:
                raise FacadeError(f"Facade '{alias}' is already registered").with_context(unit=alias)
            self._facades[alias] = LazyFacade(alias, identifier, self._load(alias, identifier))
            added.append(alias)
            logger.debug("facade_registered", alias=alias, identifier=identifier)
        return added

    def get(self, alias: str) -> LazyFacade:
        try:
            return self._facades[alias]
        except KeyError:
            available = ", ".join(sorted(self._facades)) or "none"
            raise FacadeError(f"Facade '{alias}' not found. Available: {available}") from None

    __getitem__ = get

    def __getattr__(self, alias: str) -> LazyFacade:
        if alias.startswith("_"):
            raise AttributeError(alias)
        try:
            return self._facades[alias]
        except KeyError:
            raise AttributeError(f"No facade named '{alias}'") from None

    def __contains__(self, alias: object) -> bool:
        return alias in self._facades

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._facades))

    def __len__(self) -> int:
        return len(self._facades)


__all__ = ["FacadeRegistry", "LazyFacade"]
