"""Expressway CLI -- ``expressway serve``, ``expressway stack``, ``expressway config``."""

from expressway.cli.app import app

__all__ = ["app"]
