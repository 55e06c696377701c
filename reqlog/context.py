"""
reqlog — Request-Scoped Logger Lookup
=======================================

What:  Publishes the request's Logger where downstream code can find it, and
       retrieves it again.
How:   Two carriers, both written by RequestLoggerMiddleware:
         1. The ASGI scope, under a private key object. Route handlers reach
            it through the Request (from_request / get_request_logger).
         2. A ContextVar, for services and helpers that never see the
            Request object (from_context).
       Both raise LoggerNotFoundError when nothing was published.

Why a key object instead of a string:
    Nothing outside this module can construct _SCOPE_KEY, so no other
    middleware sharing the scope dict can overwrite or read it by accident.
"""

from contextvars import ContextVar
from typing import Any, MutableMapping, Optional

from starlette.requests import HTTPConnection, Request

from reqlog.exceptions import LoggerNotFoundError
from reqlog.logger import Logger

_SCOPE_KEY = object()

# Coroutine-local: concurrent requests on one event loop each see their own
current_logger_var: ContextVar[Optional[Logger]] = ContextVar(
    "reqlog_current_logger", default=None
)


def publish(scope: MutableMapping[Any, Any], logger: Logger) -> None:
    """Store logger in an ASGI scope."""
    scope[_SCOPE_KEY] = logger


def retrieve(scope: MutableMapping[Any, Any]) -> Logger:
    """
    Read the Logger published into an ASGI scope.

    Raises:
        LoggerNotFoundError: the scope was not handled by the middleware.
    """
    logger = scope.get(_SCOPE_KEY)
    if not isinstance(logger, Logger):
        raise LoggerNotFoundError(context={"path": scope.get("path", "")})
    return logger


def from_request(conn: HTTPConnection) -> Logger:
    """Return the Logger bound to this request."""
    return retrieve(conn.scope)


def from_context() -> Logger:
    """
    Return the Logger of the request currently being handled.

    Raises:
        LoggerNotFoundError: called outside a request handled by the
            middleware (startup code, a detached task, a test).
    """
    logger = current_logger_var.get()
    if logger is None:
        raise LoggerNotFoundError()
    return logger


def get_request_logger(request: Request) -> Logger:
    """
    FastAPI dependency yielding the request's Logger.

    Usage:
        @router.get("/items")
        async def list_items(lgr: Logger = Depends(get_request_logger)):
            lgr.info("listing items")
    """
    return from_request(request)
