"""Tests for expressway.backends — BackendLoader and the built-in backends."""

from __future__ import annotations

import pytest
from sqlalchemy.engine import Engine

from expressway.backends import DEFAULT_BACKENDS, BackendLoader
from expressway.backends.caching import InMemoryCache
from expressway.backends.mail import MailSettings
from expressway.core.errors import BackendLoadError


class TestModules:
    def test_default_set_when_unconfigured(self, make_app):
        loader = BackendLoader(make_app())
        assert loader.modules() == list(DEFAULT_BACKENDS) == ["mail", "database", "caching"]

    def test_default_set_when_falsy(self, skeleton, make_app):
        skeleton.config("app", {"modules": []})
        assert BackendLoader(make_app()).modules() == ["mail", "database", "caching"]

    def test_configured_list(self, skeleton, make_app):
        skeleton.config("app", {"modules": ["caching"]})
        assert BackendLoader(make_app()).modules() == ["caching"]

    def test_argument_wins(self, skeleton, make_app):
        skeleton.config("app", {"modules": ["caching"]})
        assert BackendLoader(make_app()).modules(["mail"]) == ["mail"]


class TestLoadAll:
    @pytest.mark.asyncio
    async def test_builtins_publish_services(self, skeleton, make_app):
        skeleton.config("mail", {"host": "smtp.local", "port": 2525, "from": "noreply@example.com"})
        skeleton.config("database", {"url": "sqlite://"})
        skeleton.config("cache", {"max_size": 2, "default_ttl_seconds": None})
        app = make_app()

        assert await BackendLoader(app).load_all() == ["mail", "database", "caching"]

        mail = app.services["mail"]
        assert isinstance(mail, MailSettings)
        assert mail.port == 2525
        assert mail.from_address == "noreply@example.com"
        assert isinstance(app.services["database"], Engine)
        assert isinstance(app.services["cache"], InMemoryCache)

    @pytest.mark.asyncio
    async def test_database_without_url(self, make_app):
        app = make_app()
        await BackendLoader(app).load_all(["database"])
        assert app.services["database"] is None

    @pytest.mark.asyncio
    async def test_path_like_application_backend(self, skeleton, make_app):
        skeleton.write(
            "app/backends/search.py",
            """
            import asyncio

            async def load(app):
                await asyncio.sleep(0)
                app.services["search"] = "ready"
            """,
        )
        app = make_app()
        await BackendLoader(app).load_all(["app/backends/search.py"])
        assert app.services["search"] == "ready"

    @pytest.mark.asyncio
    async def test_completes_after_slowest(self, skeleton, make_app):
        for name, delay in (("slow", 0.05), ("fast", 0.0)):
            skeleton.write(
                f"backends/{name}.py",
                f"""
                import asyncio

                async def load(app):
                    await asyncio.sleep({delay})
                    app.services.setdefault("order", []).append({name!r})
                """,
            )
        app = make_app()
        await BackendLoader(app).load_all(["backends/slow.py", "backends/fast.py"])
        assert app.services["order"] == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_one_failure_fails_the_batch(self, skeleton, make_app):
        skeleton.write(
            "backends/broken.py",
            """
            async def load(app):
                raise RuntimeError("no connection")
            """,
        )
        app = make_app()
        with pytest.raises(BackendLoadError) as exc_info:
            await BackendLoader(app).load_all(["caching", "backends/broken.py"])
        assert exc_info.value.context.unit == "backends/broken.py"
        assert "no connection" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unknown_builtin(self, make_app):
        with pytest.raises(BackendLoadError, match="'nosuch'"):
            await BackendLoader(make_app()).load_all(["nosuch"])

    @pytest.mark.asyncio
    async def test_missing_load_entry(self, skeleton, make_app):
        skeleton.write("backends/empty.py", "VALUE = 1\n")
        with pytest.raises(BackendLoadError, match="does not export 'load'"):
            await BackendLoader(make_app()).load_all(["backends/empty.py"])

    @pytest.mark.asyncio
    async def test_invalid_mail_settings(self, skeleton, make_app):
        skeleton.config("mail", {"port": "not-a-port"})
        with pytest.raises(BackendLoadError, match="Invalid mail configuration"):
            await BackendLoader(make_app()).load_all(["mail"])


class TestInMemoryCache:
    def test_get_set(self):
        cache = InMemoryCache()
        cache.set("user:1", {"name": "Ada"})
        assert cache.get("user:1") == {"name": "Ada"}
        assert cache.exists("user:1")
        assert cache.get("user:2") is None

    def test_lru_eviction(self):
        cache = InMemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.size() == 2

    def test_expiry(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("expressway.backends.caching.time.monotonic", lambda: now[0])
        cache = InMemoryCache(default_ttl_seconds=10)
        cache.set("k", "v")
        now[0] += 11
        assert cache.get("k") is None
        assert not cache.exists("k")

    def test_delete_and_clear(self):
        cache = InMemoryCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        cache.delete("missing")
        assert cache.size() == 1
        cache.clear()
        assert cache.size() == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            InMemoryCache(max_size=0)


def test_mail_defaults():
    settings = MailSettings()
    assert settings.driver == "smtp"
    assert settings.port == 25
