"""
Expressway -- convention-driven bootstrap for FastAPI applications.

An application skeleton (``config/``, ``routes/``, ``app/middlewares/global/``,
``app/providers/``) is turned into a wired server in a fixed phase order::

    from expressway import bootstrap

    app = bootstrap("/srv/shop")
    await app.boot()
    await app.serve()

Plugins declare their shape with :func:`lifecycle` or :func:`stateless`.
"""

from expressway.bootstrap.sequencer import bootstrap
from expressway.http.server import Application
from expressway.plugins.units import lifecycle, stateless

__version__ = "0.1.0"

__all__ = ["Application", "bootstrap", "lifecycle", "stateless", "__version__"]
