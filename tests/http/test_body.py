"""Tests for expressway.http.body."""

from __future__ import annotations

import pytest
from fastapi import APIRouter, Request
from fastapi.testclient import TestClient
from starlette.responses import JSONResponse

from expressway.core.errors import RequestError
from expressway.http.body import json_body_parser, media_type, urlencoded_body_parser


def request_error_handler(request, exc):
    if isinstance(exc, RequestError):
        return JSONResponse(status_code=exc.status_code, content={"code": exc.code})
    return None


@pytest.fixture
def client(bare_app) -> TestClient:
    router = APIRouter()

    @router.post("/echo")
    async def echo(request: Request):
        return {"body": getattr(request.state, "body", None)}

    bare_app.use(json_body_parser)
    bare_app.use(urlencoded_body_parser)
    bare_app.mount("/", router)
    bare_app.use_error_handler(request_error_handler)
    return TestClient(bare_app.finalize())


class TestBodyParsers:
    def test_json(self, client):
        assert client.post("/echo", json={"name": "Ada", "tags": [1, 2]}).json() == {
            "body": {"name": "Ada", "tags": [1, 2]}
        }

    def test_vendor_json_media_type(self, client):
        response = client.post(
            "/echo", content=b'{"a": 1}', headers={"content-type": "application/vnd.api+json"}
        )
        assert response.json() == {"body": {"a": 1}}

    def test_malformed_json(self, client):
        response = client.post("/echo", content=b"{nope", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json() == {"code": "EBADBODY"}

    def test_urlencoded(self, client):
        response = client.post("/echo", data={"name": "Ada", "tag": ["x", "y"], "empty": ""})
        assert response.json() == {"body": {"name": "Ada", "tag": ["x", "y"], "empty": ""}}

    def test_other_content_types_untouched(self, client):
        response = client.post("/echo", content=b"raw", headers={"content-type": "text/plain"})
        assert response.json() == {"body": None}

    def test_empty_json_body(self, client):
        response = client.post("/echo", content=b"", headers={"content-type": "application/json"})
        assert response.json() == {"body": None}


def test_media_type_strips_parameters():
    class FakeRequest:
        headers = {"content-type": "Application/JSON; charset=utf-8"}

    assert media_type(FakeRequest()) == "application/json"
