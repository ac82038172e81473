"""Expressway Core -- settings, configuration, errors and logging.

Manifesto:
    Everything the boot phases share lives here and nowhere else: the
    framework settings, the per-application configuration store, the
    bootstrap context that replaces process-wide globals, the structured
    error hierarchy and the structlog setup.

Architecture::

    settings.py     ExpresswaySettings (pydantic-settings) + AppLayout
    config.py       ConfigStore: one namespace per config/ file
    context.py      BootstrapContext threaded through every phase
    errors.py       ExpresswayError hierarchy with phase/unit context
    logging.py      structlog configuration (JSON or console)

Tags:
    expressway, core, configuration, errors, logging

Doc-Types:
    api-reference
"""

from expressway.core.config import ConfigStore
from expressway.core.context import BootstrapContext
from expressway.core.settings import AppLayout, ExpresswaySettings

__all__ = ["AppLayout", "BootstrapContext", "ConfigStore", "ExpresswaySettings"]
