"""Cookie and CSRF wiring, driven by the ``cookies`` configuration namespace.

Keys (all optional)::

    enable_cookie_parser   install the signed cookie parser
    enable_csrf            install CSRF protection (implies the cookie parser)
    enable_global_csrf     expose the token on GET requests
    csrf_token_name        cookie/locals name of the exposed token (XSRF-TOKEN)
    cookie_path            secret cookie path (/)
    secure_cookie          secret cookie Secure flag
    http_only_cookie       secret cookie HttpOnly flag
    same_site_cookie       True → "strict", or "lax"/"strict"/"none"
    csrf_ignored_methods   methods exempt from token checks (GET/HEAD/OPTIONS)
    cookie_max_age         secret cookie Max-Age in seconds
    cookie_domain          secret cookie Domain

Cookies are signed with ``app.key``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from expressway.core.config import ConfigStore
from expressway.core.errors import ConfigError
from expressway.core.logging import get_logger
from expressway.http.cookies import cookie_parser
from expressway.http.csrf import SAFE_METHODS, CookieOptions, CsrfOptions, CsrfProtection, csrf_token_exposer
from expressway.http.errors import csrf_error_handler

if TYPE_CHECKING:
    from expressway.http.server import Application

logger = get_logger(__name__)

DEFAULT_TOKEN_NAME = "XSRF-TOKEN"


def _same_site(value: object) -> str | None:
    if value is True:
        return "strict"
    if not value:
        return None
    policy = str(value).lower()
    if policy not in {"strict", "lax", "none"}:
        raise ConfigError(f"cookies.same_site_cookie must be strict, lax or none, got {value!r}")
    return policy


def csrf_options_from_config(config: ConfigStore) -> CsrfOptions:
    """Translate the ``cookies`` namespace into :class:`CsrfOptions`."""
    ignored = config.get("cookies.csrf_ignored_methods")
    max_age = config.get("cookies.cookie_max_age")
    cookie = CookieOptions(
        path=config.get("cookies.cookie_path") or "/",
        signed=True,
        secure=bool(config.get("cookies.secure_cookie", False)),
        httponly=bool(config.get("cookies.http_only_cookie", False)),
        samesite=_same_site(config.get("cookies.same_site_cookie")),
        max_age=int(max_age) if max_age else None,
        domain=config.get("cookies.cookie_domain") or None,
    )
    return CsrfOptions(
        cookie=cookie,
        ignore_methods=SAFE_METHODS if ignored is None else frozenset(m.upper() for m in ignored),
    )


class SecurityConfigurator:
    def __init__(self, application: Application) -> None:
        self.application = application
        self.config = application.config

    def configure(self) -> list[str]:
        """Install the enabled security steps; returns their names in order."""
        enable_csrf = bool(self.config.get("cookies.enable_csrf", False))
        enable_parser = bool(self.config.get("cookies.enable_cookie_parser", False))
        secret = self.config.get("app.key")
        installed: list[str] = []

        if enable_parser or enable_csrf:
            if enable_csrf and not secret:
                raise ConfigError("app.key is required to sign cookies when cookies.enable_csrf is set")
            self.application.use(cookie_parser(secret), name="cookie_parser")
            installed.append("cookie_parser")

        if enable_csrf:
            protection = CsrfProtection(csrf_options_from_config(self.config), secret_key=secret)
            self.application.use(protection, name="csrf")
            installed.append("csrf")

            if self.config.get("cookies.enable_global_csrf", False):
                token_name = self.config.get("cookies.csrf_token_name") or DEFAULT_TOKEN_NAME
                self.application.use(csrf_token_exposer(token_name), name="csrf_token")
                installed.append("csrf_token")

            self.application.use_error_handler(csrf_error_handler, name="csrf_error_handler")
            installed.append("csrf_error_handler")

        logger.info("security_configured", steps=installed)
        return installed


__all__ = ["SecurityConfigurator", "csrf_options_from_config"]
