"""Tests for expressway.bootstrap.routes — route table assembly."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from expressway.bootstrap.routes import RouteAssembler, is_empty_router
from expressway.core.errors import RouteLoadError


class TestAssemble:
    def test_main_and_autoloaded_routes(self, skeleton, make_app):
        skeleton.routes_entry()
        skeleton.route("users")
        skeleton.route("billing", body="billing")
        app = make_app()

        mounted = RouteAssembler(app).assemble()

        assert mounted == ["/", "/billing", "/users"]
        client = TestClient(app.finalize())
        assert client.get("/").json() == {"home": True}
        assert client.get("/users/").json() == {"route": "ok"}
        assert client.get("/billing/").json() == {"route": "billing"}

    def test_reserved_and_hidden_files_are_not_mounted(self, skeleton, make_app):
        skeleton.routes_entry()
        skeleton.route("errors")
        skeleton.route("index")
        skeleton.write("routes/.draft.py", "raise RuntimeError('never imported')\n")
        skeleton.route("users")
        app = make_app()

        assert RouteAssembler(app).assemble() == ["/", "/users"]

    def test_empty_route_modules_are_skipped(self, skeleton, make_app):
        skeleton.routes_entry()
        skeleton.write("routes/nothing.py", "VALUE = 1\n")
        skeleton.write("routes/blank.py", "from fastapi import APIRouter\n\nrouter = APIRouter()\n")
        skeleton.write("routes/none.py", "router = None\n")
        app = make_app()

        assert RouteAssembler(app).assemble() == ["/"]

    def test_package_route_module(self, skeleton, make_app):
        skeleton.routes_entry()
        skeleton.write(
            "routes/admin/__init__.py",
            """
            from fastapi import APIRouter

            router = APIRouter()


            @router.get("/stats")
            def stats():
                return {"admin": True}
            """,
        )
        app = make_app()

        RouteAssembler(app).assemble()

        assert TestClient(app.finalize()).get("/admin/stats").json() == {"admin": True}

    def test_asgi_main_does_not_shadow_autoloaded_routes(self, skeleton, make_app):
        skeleton.write(
            "routes/__init__.py",
            """
            from starlette.applications import Starlette
            from starlette.responses import PlainTextResponse
            from starlette.routing import Route


            async def home(request):
                return PlainTextResponse("home")


            main = Starlette(routes=[Route("/", home)])
            errors = None
            """,
        )
        skeleton.route("users")
        app = make_app()

        RouteAssembler(app).assemble()
        client = TestClient(app.finalize())

        assert client.get("/").text == "home"
        assert client.get("/users/").json() == {"route": "ok"}

    def test_index_entry_module(self, skeleton, make_app):
        skeleton.write(
            "routes/index.py",
            """
            from fastapi import APIRouter

            main = APIRouter()
            errors = None
            """,
        )
        assert RouteAssembler(make_app()).assemble() == ["/"]

    def test_missing_routes_directory(self, make_app):
        assembler = RouteAssembler(make_app())
        assert assembler.assemble() == []
        assert assembler.mount_error_handler() is False

    def test_entry_without_main(self, skeleton, make_app):
        skeleton.write("routes/__init__.py", "def errors(request, exc):\n    return None\n")
        with pytest.raises(RouteLoadError, match="'main'"):
            RouteAssembler(make_app()).assemble()

    def test_broken_route_module(self, skeleton, make_app):
        skeleton.routes_entry()
        skeleton.write("routes/users.py", "import does_not_exist\n")
        with pytest.raises(RouteLoadError) as exc_info:
            RouteAssembler(make_app()).assemble()
        assert exc_info.value.context.unit == "users"
        assert exc_info.value.context.phase == "routes"


class TestErrorHandler:
    def test_catches_errors_from_every_autoloaded_route(self, skeleton, make_app):
        skeleton.routes_entry()
        for name in ("aardvark", "zebra"):
            skeleton.write(
                f"routes/{name}.py",
                """
                from fastapi import APIRouter

                router = APIRouter()


                @router.get("/fail")
                def fail():
                    raise LookupError("missing")
                """,
            )
        app = make_app()
        assembler = RouteAssembler(app)
        assembler.assemble()

        assert assembler.mount_error_handler() is True
        assert app.stack[-1].name == "errors"
        assert app.stack[-1].kind == "error_handler"

        client = TestClient(app.finalize())
        for name in ("aardvark", "zebra"):
            response = client.get(f"/{name}/fail")
            assert response.status_code == 500
            assert response.json() == {"error": "LookupError"}

    def test_entry_without_errors(self, skeleton, make_app):
        skeleton.write("routes/__init__.py", "from fastapi import APIRouter\n\nmain = APIRouter()\n")
        assembler = RouteAssembler(make_app())
        with pytest.raises(RouteLoadError, match="'errors'"):
            assembler.mount_error_handler()


def test_is_empty_router():
    from fastapi import APIRouter

    assert is_empty_router(None)
    assert is_empty_router(APIRouter())
    assert not is_empty_router(object())
