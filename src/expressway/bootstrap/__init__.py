"""Boot phases and the sequencer that runs them in order."""

from expressway.bootstrap.middleware import MiddlewareLoader
from expressway.bootstrap.providers import ProviderLifecycle
from expressway.bootstrap.routes import RouteAssembler
from expressway.bootstrap.security import SecurityConfigurator
from expressway.bootstrap.sequencer import BootstrapSequencer, bootstrap

__all__ = [
    "BootstrapSequencer",
    "MiddlewareLoader",
    "ProviderLifecycle",
    "RouteAssembler",
    "SecurityConfigurator",
    "bootstrap",
]
