"""
CSRF protection with a cookie-stored secret.

A per-client secret lives in a (signed) cookie. Each request gets
``request.state.csrf_token()``, which mints tokens of the form
``<salt>-<sha256(salt-secret)>``; state-changing requests must echo one
back in the ``_csrf`` body field, the ``_csrf`` query parameter, or one of
the ``csrf-token`` / ``xsrf-token`` / ``x-csrf-token`` / ``x-xsrf-token``
headers. Failures raise :class:`~expressway.core.errors.CsrfTokenError`
(``code == "EBADCSRFTOKEN"``) for the error chain to answer.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from expressway.core.errors import CsrfTokenError
from expressway.core.logging import get_logger
from expressway.http.cookies import signed_cookie_value

logger = get_logger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

TOKEN_FIELD = "_csrf"
TOKEN_HEADERS = ("csrf-token", "xsrf-token", "x-csrf-token", "x-xsrf-token")


@dataclass(frozen=True)
class CookieOptions:
    """Attributes of the cookie holding the CSRF secret."""

    key: str = "_csrf"
    path: str = "/"
    signed: bool = True
    secure: bool = False
    httponly: bool = False
    samesite: str | None = None
    max_age: int | None = None
    domain: str | None = None

    def as_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``Response.set_cookie``."""
        kwargs: dict[str, Any] = {
            "path": self.path,
            "secure": self.secure,
            "httponly": self.httponly,
        }
        if self.samesite:
            kwargs["samesite"] = self.samesite
        if self.max_age is not None:
            kwargs["max_age"] = self.max_age
        if self.domain:
            kwargs["domain"] = self.domain
        return kwargs


@dataclass(frozen=True)
class CsrfOptions:
    cookie: CookieOptions = field(default_factory=CookieOptions)
    ignore_methods: frozenset[str] = SAFE_METHODS
    secret_length: int = 18


def create_secret(length: int = 18) -> str:
    return secrets.token_urlsafe(length)


def _digest(salt: str, secret: str) -> str:
    raw = hashlib.sha256(f"{salt}-{secret}".encode("utf-8")).digest()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def create_token(secret: str) -> str:
    """Mint a new token for ``secret``; the salt is hex so it never contains ``-``."""
    salt = secrets.token_hex(4)
    return f"{salt}-{_digest(salt, secret)}"


def verify_token(secret: str, token: str) -> bool:
    salt, sep, digest = token.partition("-")
    if not sep or not salt:
        return False
    return hmac.compare_digest(digest, _digest(salt, secret))


class _TokenFactory:
    """``request.state.csrf_token``: returns one token per request."""

    __slots__ = ("_secret", "_token")

    def __init__(self, secret: str) -> None:
        self._secret = secret
        self._token: str | None = None

    def __call__(self) -> str:
        if self._token is None:
            self._token = create_token(self._secret)
        return self._token


class CsrfProtection:
    """Dispatch callable enforcing CSRF tokens on state-changing requests.

    Requires the cookie parser to run first when the secret cookie is
    signed (the default).
    """

    def __init__(self, options: CsrfOptions | None = None, *, secret_key: str | None = None) -> None:
        self.options = options or CsrfOptions()
        if self.options.cookie.signed and not secret_key:
            raise ValueError("A secret key is required to sign the CSRF cookie")
        self._secret_key = secret_key

    def read_secret(self, request: Request) -> str | None:
        key = self.options.cookie.key
        if self.options.cookie.signed:
            return getattr(request.state, "signed_cookies", {}).get(key)
        return getattr(request.state, "cookies", request.cookies).get(key)

    @staticmethod
    def token_from_request(request: Request) -> str | None:
        """Return the submitted token from body, query string or headers."""
        body = getattr(request.state, "body", None)
        if isinstance(body, Mapping) and isinstance(body.get(TOKEN_FIELD), str):
            return body[TOKEN_FIELD]
        if TOKEN_FIELD in request.query_params:
            return request.query_params[TOKEN_FIELD]
        for header in TOKEN_HEADERS:
            if header in request.headers:
                return request.headers[header]
        return None

    def _set_secret_cookie(self, response: Response, secret: str) -> None:
        cookie = self.options.cookie
        value = signed_cookie_value(secret, self._secret_key) if cookie.signed else secret
        response.set_cookie(cookie.key, value, **cookie.as_kwargs())

    async def __call__(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        secret = self.read_secret(request)
        new_secret = None
        if not secret:
            secret = new_secret = create_secret(self.options.secret_length)

        request.state.csrf_token = _TokenFactory(secret)

        if request.method not in self.options.ignore_methods:
            token = self.token_from_request(request)
            if not token or not verify_token(secret, token):
                raise CsrfTokenError("invalid csrf token").with_context(path=request.url.path)

        response = await call_next(request)
        if new_secret is not None:
            self._set_secret_cookie(response, new_secret)
        return response


def csrf_token_exposer(token_name: str = "XSRF-TOKEN"):
    """Build a middleware publishing the request's CSRF token on GET requests.

    The token is placed in ``request.state.locals[token_name]`` for
    renderers and in a same-site cookie readable by client scripts.
    """

    async def expose_csrf_token(request: Request, call_next: RequestResponseEndpoint) -> Response:
        token = None
        if request.method == "GET":
            factory = getattr(request.state, "csrf_token", None)
            if factory is not None:
                token = factory()
                if not hasattr(request.state, "locals"):
                    request.state.locals = {}
                request.state.locals[token_name] = token
        response = await call_next(request)
        if token is not None:
            response.set_cookie(token_name, token, samesite="strict")
        return response

    return expose_csrf_token


__all__ = [
    "SAFE_METHODS",
    "TOKEN_FIELD",
    "TOKEN_HEADERS",
    "CookieOptions",
    "CsrfOptions",
    "CsrfProtection",
    "create_secret",
    "create_token",
    "verify_token",
    "csrf_token_exposer",
]
