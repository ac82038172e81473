"""Framework-level settings.

``ExpresswaySettings`` covers what the framework itself needs before any
application configuration has been read: where the application root is,
how to log, and where to listen when ``app.port`` is not configured.

All values can be overridden via environment variables prefixed with
``EXPRESSWAY_`` or a ``.env`` file.

Tags:
    settings, configuration, pydantic, environment, expressway

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExpresswaySettings(BaseSettings):
    """Settings for the bootstrap sequencer.

    Order of precedence (highest → lowest):
        1. Explicit keyword arguments
        2. Environment variables (``EXPRESSWAY_ROOT``, ``EXPRESSWAY_PORT``...)
        3. ``.env`` file
        4. Defaults below

    Fields
    ──────
    root       : Application root holding ``config/``, ``routes/`` and ``app/``
    host       : Bind address used by ``serve()``
    port       : Fallback port when neither an argument nor ``app.port`` is given
    debug      : Enable debug mode
    log_level  : Structlog log level
    log_json   : Force JSON (True) or console (False) output; auto when unset
    title      : OpenAPI title of the composed server
    version    : OpenAPI version string
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPRESSWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    root: Path = Field(default_factory=Path.cwd, description="Application root directory")

    # ── Network ──────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Default bind port")

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── OpenAPI ──────────────────────────────────────────────────
    title: str = "expressway"
    version: str = "0.1.0"


@dataclass(frozen=True)
class AppLayout:
    """Directory conventions of an application skeleton, relative to its root."""

    config_dir: str = "config"
    routes_dir: str = "routes"
    global_middleware_dir: str = "app/middlewares/global"
    providers_dir: str = "app/providers"


__all__ = ["ExpresswaySettings", "AppLayout"]
