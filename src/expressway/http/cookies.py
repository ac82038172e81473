"""Cookie parsing and signing.

Signed cookie values have the form ``s:<value>.<signature>`` where the
signature is the unpadded urlsafe-base64 HMAC-SHA256 of ``<value>`` keyed
by the application key (``app.key``).
"""

from __future__ import annotations

import base64
import hashlib
import hmac

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from expressway.core.logging import get_logger

logger = get_logger(__name__)

SIGNED_PREFIX = "s:"


def _signature(value: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def sign(value: str, secret: str) -> str:
    """Return ``value.<signature>``."""
    return f"{value}.{_signature(value, secret)}"


def unsign(signed: str, secret: str) -> str | None:
    """Return the original value, or ``None`` when the signature does not match."""
    value, sep, signature = signed.rpartition(".")
    if not sep:
        return None
    if hmac.compare_digest(signature, _signature(value, secret)):
        return value
    return None


def signed_cookie_value(value: str, secret: str) -> str:
    """Full cookie value for a signed cookie, prefix included."""
    return SIGNED_PREFIX + sign(value, secret)


def cookie_parser(secret: str | None = None):
    """Build a middleware exposing parsed cookies on ``request.state``.

    ``request.state.cookies`` holds unsigned cookies. When ``secret`` is
    given, ``s:``-prefixed cookies with a valid signature land in
    ``request.state.signed_cookies``; tampered ones are dropped.
    """

    async def parse_cookies(request: Request, call_next: RequestResponseEndpoint) -> Response:
        plain: dict[str, str] = {}
        signed: dict[str, str] = {}
        for name, value in request.cookies.items():
            if secret and value.startswith(SIGNED_PREFIX):
                original = unsign(value[len(SIGNED_PREFIX):], secret)
                if original is None:
                    logger.debug("cookie_signature_invalid", cookie=name)
                    continue
                signed[name] = original
            else:
                plain[name] = value
        request.state.cookies = plain
        request.state.signed_cookies = signed
        request.state.secret = secret
        return await call_next(request)

    return parse_cookies


__all__ = ["SIGNED_PREFIX", "sign", "unsign", "signed_cookie_value", "cookie_parser"]
