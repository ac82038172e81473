"""Body-parsing middlewares.

Installed first during boot so that every later middleware and provider
can read ``request.state.body``. Requests whose content type does not
match are left untouched (``request.state.body`` stays unset).
"""

from __future__ import annotations

import json
from urllib.parse import parse_qs

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from expressway.core.errors import BodyParseError


def media_type(request: Request) -> str:
    """Content type without parameters, lower-cased."""
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def _is_json(content_type: str) -> bool:
    return content_type == "application/json" or content_type.endswith("+json")


async def json_body_parser(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Parse ``application/json`` bodies into ``request.state.body``."""
    if _is_json(media_type(request)):
        raw = await request.body()
        if raw:
            try:
                request.state.body = json.loads(raw)
            except ValueError as exc:
                raise BodyParseError(f"Malformed JSON body: {exc}", cause=exc) from exc
    return await call_next(request)


async def urlencoded_body_parser(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Parse ``application/x-www-form-urlencoded`` bodies into ``request.state.body``.

    Repeated keys become lists; single keys stay scalar.
    """
    if media_type(request) == "application/x-www-form-urlencoded":
        raw = await request.body()
        try:
            parsed = parse_qs(raw.decode("utf-8"), keep_blank_values=True, strict_parsing=False)
        except UnicodeDecodeError as exc:
            raise BodyParseError("Form body is not valid UTF-8", cause=exc) from exc
        request.state.body = {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}
    return await call_next(request)


__all__ = ["json_body_parser", "urlencoded_body_parser", "media_type"]
