"""
Structured error types for Expressway.

Every failure the bootstrap pipeline can raise is an ``ExpresswayError``
subclass carrying a category, structured context and the chained cause,
so a fatal boot can be reported with the unit and phase that broke it.

Manifesto:
    - **Typed Error Hierarchy:** Config, plugin, bootstrap and request errors
    - **Rich Context:** Errors name the phase and unit that failed
    - **Error Chaining:** The original exception is always preserved

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      ExpresswayError                          │
        │              (category, context, cause)                       │
        ├──────────────────────────────────────────────────────────────┤
        │  ConfigError          PluginError         BootstrapError      │
        │  (CONFIG)             (PLUGIN)            (BOOTSTRAP)         │
        │     │                    │                    │               │
        │  ConfigScanError      PluginLoadError     BackendLoadError    │
        │  ConfigLoadError      PluginShapeError    ProviderBootError   │
        │                       FacadeError         RouteLoadError      │
        │                                           ServeError          │
        │  RequestError (REQUEST)                                       │
        │     │                                                         │
        │  BodyParseError (400)   CsrfTokenError (403, EBADCSRFTOKEN)   │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = PluginLoadError("cannot import 'cors'").with_context(unit="cors")
    >>> error.context.unit
    'cors'
    >>> error.to_dict()["category"]
    'PLUGIN'

Tags:
    error-handling, exception-hierarchy, error-context, expressway

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting.

    Attributes:
        CONFIG: Configuration scan or load failures
        PLUGIN: A pluggable unit could not be resolved, imported or classified
        BOOTSTRAP: A boot phase failed (backends, providers, routes, serving)
        REQUEST: Request-time failures recovered by error handlers
        INTERNAL: Bugs, unexpected state
    """

    CONFIG = "CONFIG"
    PLUGIN = "PLUGIN"
    BOOTSTRAP = "BOOTSTRAP"
    REQUEST = "REQUEST"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        phase: Boot phase in which the error happened (``backends``, ``routes``...)
        unit: Identifier of the failing unit (backend name, provider file...)
        path: Filesystem path involved, if any
        metadata: Additional key-value pairs
    """

    phase: str | None = None
    unit: str | None = None
    path: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["phase", "unit", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ExpresswayError(Exception):
    """Base exception for all Expressway errors.

    Subclasses set ``default_category``; callers may attach context with
    :meth:`with_context` and chain the original failure with ``cause=``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ExpresswayError:
        """Add context to this error (fluent API).

        Usage:
            raise RouteLoadError("bad module").with_context(unit="users", phase="routes")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ExpresswayError):
    """Configuration could not be read, or was written after being frozen."""

    default_category = ErrorCategory.CONFIG


class ConfigScanError(ConfigError):
    """The configuration directory exists but could not be enumerated."""


class ConfigLoadError(ConfigError):
    """A configuration file could not be parsed or executed."""


# =============================================================================
# PLUGIN ERRORS
# =============================================================================


class PluginError(ExpresswayError):
    """Base for failures resolving or loading pluggable units."""

    default_category = ErrorCategory.PLUGIN


class PluginLoadError(PluginError):
    """A unit could not be found, imported, or lacks the expected export."""


class PluginShapeError(PluginError):
    """A unit is neither a lifecycle nor a stateless plugin, or produced a bad artifact."""


class FacadeError(PluginError):
    """A facade alias was registered twice or its target cannot be resolved."""


# =============================================================================
# BOOTSTRAP ERRORS
# =============================================================================


class BootstrapError(ExpresswayError):
    """A boot phase failed; the server must not be served."""

    default_category = ErrorCategory.BOOTSTRAP


class BackendLoadError(BootstrapError):
    """A backend module failed to load; the whole backend batch fails."""


class ProviderBootError(BootstrapError):
    """A service provider failed to boot; the whole provider batch fails."""


class RouteLoadError(BootstrapError):
    """A route module could not be loaded or lacks a required export."""


class ServeError(BootstrapError):
    """The server could not bind its listening socket."""


# =============================================================================
# REQUEST-TIME ERRORS
# =============================================================================


class RequestError(ExpresswayError):
    """Request-time error with an HTTP status and a machine-readable code."""

    default_category = ErrorCategory.REQUEST
    status_code: int = 500
    code: str = "EREQUEST"


class BodyParseError(RequestError):
    """The request body did not match its declared content type."""

    status_code = 400
    code = "EBADBODY"


class CsrfTokenError(RequestError):
    """The request carried a missing or invalid CSRF token."""

    status_code = 403
    code = "EBADCSRFTOKEN"


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ExpresswayError",
    "ConfigError",
    "ConfigScanError",
    "ConfigLoadError",
    "PluginError",
    "PluginLoadError",
    "PluginShapeError",
    "FacadeError",
    "BootstrapError",
    "BackendLoadError",
    "ProviderBootError",
    "RouteLoadError",
    "ServeError",
    "RequestError",
    "BodyParseError",
    "CsrfTokenError",
]
