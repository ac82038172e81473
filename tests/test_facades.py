"""Tests for expressway.facades — aliases resolved at registration."""

from __future__ import annotations

import pytest

from expressway.core.errors import FacadeError
from expressway.facades import FacadeRegistry, LazyFacade
from expressway.plugins.resolver import PluginResolver


@pytest.fixture
def registry(tmp_path) -> FacadeRegistry:
    return FacadeRegistry(PluginResolver(tmp_path))


class TestRegister:
    def test_register_returns_aliases(self, registry):
        assert registry.register({"Paths": "os.path", "Json": "json"}) == ["Paths", "Json"]
        assert "Paths" in registry
        assert len(registry) == 2
        assert list(registry) == ["Json", "Paths"]

    def test_duplicate_alias(self, registry):
        registry.register({"Paths": "os.path"})
        with pytest.raises(FacadeError, match="already registered"):
            registry.register({"Paths": "json"})

    def test_invalid_alias(self, registry):
        with pytest.raises(FacadeError, match="not a valid identifier"):
            registry.register({"not-valid": "json"})

    def test_unresolvable_target_fails_registration(self, registry):
        with pytest.raises(FacadeError, match="cannot resolve 'does/not/exist.py'") as exc_info:
            registry.register({"Mailer": "does/not/exist.py"})
        assert exc_info.value.context.unit == "Mailer"
        assert "Mailer" not in registry

    def test_missing_module_fails_registration(self, registry):
        with pytest.raises(FacadeError):
            registry.register({"Mailer": "acme_missing.mailer"})


class TestBinding:
    def test_target_loaded_at_registration(self, registry, tmp_path):
        (tmp_path / "mailer.py").write_text("SENDER = 'noreply@example.com'\n\ndef send(to):\n    return f'sent:{to}'\n")
        registry.register({"Mailer": "mailer"})

        facade = registry.Mailer
        assert isinstance(facade, LazyFacade)
        assert facade.target.SENDER == "noreply@example.com"
        assert facade.send("a@b.c") == "sent:a@b.c"

    def test_attributes_are_looked_up_on_each_access(self, registry, tmp_path):
        (tmp_path / "search.py").write_text("client = None\n")
        registry.register({"Search": "search"})

        registry.Search.target.client = "connected"

        assert registry.Search.client == "connected"

    def test_attribute_selector_and_call(self, registry, tmp_path):
        (tmp_path / "services").mkdir()
        (tmp_path / "services/billing.py").write_text("def charge(amount):\n    return amount * 2\n")
        registry.register({"Charge": "services/billing.py:charge"})
        assert registry["Charge"](21) == 42

    def test_setattr_proxies_to_target(self, registry, tmp_path):
        (tmp_path / "state.py").write_text("counter = 0\n")
        registry.register({"State": "state"})
        registry.State.counter = 5
        assert registry.State.target.counter == 5

    def test_repr(self, registry):
        registry.register({"Paths": "os.path"})
        assert repr(registry.Paths) == "<LazyFacade Paths -> os.path>"


class TestLookup:
    def test_unknown_alias_item(self, registry):
        with pytest.raises(FacadeError, match="not found"):
            registry["Nope"]

    def test_unknown_alias_attribute(self, registry):
        with pytest.raises(AttributeError):
            registry.Nope
