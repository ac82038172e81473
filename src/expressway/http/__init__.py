"""HTTP layer: the composed application and its built-in middlewares."""

from expressway.http.body import json_body_parser, urlencoded_body_parser
from expressway.http.cookies import cookie_parser, sign, unsign
from expressway.http.csrf import CookieOptions, CsrfOptions, CsrfProtection, csrf_token_exposer
from expressway.http.errors import FORBIDDEN_BODY, ErrorChainMiddleware, csrf_error_handler
from expressway.http.server import Application, StackEntry

__all__ = [
    "Application",
    "StackEntry",
    "CookieOptions",
    "CsrfOptions",
    "CsrfProtection",
    "ErrorChainMiddleware",
    "FORBIDDEN_BODY",
    "cookie_parser",
    "csrf_error_handler",
    "csrf_token_exposer",
    "json_body_parser",
    "sign",
    "unsign",
    "urlencoded_body_parser",
]
