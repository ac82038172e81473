"""
Request-time error chain.

Error handlers are installed on the application in order, like
middlewares. At request time every unhandled exception is offered to
them in installation order; the first handler returning a response
answers the request, and a handler returning ``None`` passes the error
on. When no handler answers, the exception propagates to the ASGI
server's own 500 handling.

Handler signature (sync or async)::

    def handler(request: Request, exc: Exception) -> Response | None: ...
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Union

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from expressway.core.errors import CsrfTokenError
from expressway.core.logging import get_logger
from expressway.plugins.units import maybe_await

logger = get_logger(__name__)

ErrorHandler = Callable[[Request, Exception], Union[Response, None, Awaitable[Union[Response, None]]]]

FORBIDDEN_BODY = {"status": False, "code": 403, "message": "Forbidden"}


class ErrorChainMiddleware(BaseHTTPMiddleware):
    """Offer unhandled exceptions to the installed error handlers, in order.

    Installed as the outermost user middleware so it observes failures
    raised by every middleware and route installed before it.
    """

    def __init__(self, app: ASGIApp, handlers: Iterable[ErrorHandler] = ()) -> None:
        super().__init__(app)
        self._handlers = tuple(handlers)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            for handler in self._handlers:
                response = await maybe_await(handler(request, exc))
                if response is not None:
                    return response
            logger.debug("request_error_unhandled", path=request.url.path, error=type(exc).__name__)
            raise


def csrf_error_handler(request: Request, exc: Exception) -> Response | None:
    """Answer CSRF failures with a fixed 403 body; pass everything else on."""
    if getattr(exc, "code", None) != CsrfTokenError.code:
        return None
    logger.info("csrf_rejected", path=request.url.path, method=request.method)
    return JSONResponse(status_code=403, content=FORBIDDEN_BODY)


__all__ = ["ErrorChainMiddleware", "ErrorHandler", "FORBIDDEN_BODY", "csrf_error_handler"]
