"""Database backend: a SQLAlchemy engine built from the ``database`` namespace.

Configuration::

    # config/database.py
    config = {
        "url": "postgresql://app@localhost/app",
        "echo": False,
        "pool_size": 5,
    }

The engine is created lazily by SQLAlchemy; no connection is opened
during boot. Without ``database.url`` no engine is published.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from expressway.core.logging import get_logger

logger = get_logger(__name__)

_POOL_OPTIONS = ("pool_size", "max_overflow", "pool_timeout", "pool_recycle")


def build_engine(url: str, *, echo: bool = False, **options: Any) -> Engine:
    """Create an engine; pool options are dropped for SQLite."""
    if url.startswith("sqlite"):
        for key in _POOL_OPTIONS:
            options.pop(key, None)
        options.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, echo=echo, **options)


async def load(app) -> Engine | None:
    settings = dict(app.config.get("database", {}) or {})
    url = settings.pop("url", None)
    if not url:
        logger.info("database_skipped", reason="no database.url configured")
        app.services["database"] = None
        return None

    echo = bool(settings.pop("echo", False))
    engine = build_engine(url, echo=echo, **settings)
    app.services["database"] = engine
    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine
