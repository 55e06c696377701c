"""
reqlog — Request Logger Middleware
====================================

What:  Gives every HTTP request its own Logger and guarantees the Logger is
       flushed when the request ends.
How:   Pure ASGI middleware. Per request it:
         1. builds a Logger and binds the request (adopting x-trace-id)
         2. publishes it into the scope and the ContextVar
         3. wraps send() to observe the response status
         4. runs the app
         5. finally: stamps status_code on every buffered entry, flushes
Who:   Installed by main.create_app(), or by any Starlette/FastAPI app via
       app.add_middleware(RequestLoggerMiddleware, config=...).

Why pure ASGI (not BaseHTTPMiddleware):
    The status has to be read off the http.response.start message, and the
    flush has to run even when the app raises before producing a response.
    Wrapping send() covers both without buffering the response body.

Status when the app raises:
    No http.response.start was seen, so the outer ServerErrorMiddleware is
    about to answer 500. Entries are stamped with 500 to match.
"""

import logging
from typing import Optional

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from reqlog.config import LoggerConfig
from reqlog.context import current_logger_var, publish
from reqlog.entry import Entry
from reqlog.logger import TRACE_HEADER, Logger, new_logger

logger = logging.getLogger(__name__)

UNHANDLED_ERROR_STATUS = 500


class ResponseStatusObserver:
    """
    Wraps an ASGI send callable and remembers the response status.

    Also echoes the Logger's trace id in the x-trace-id response header so
    clients can quote it when reporting a problem.
    """

    def __init__(self, send: Send, trace_id: str = ""):
        self._send = send
        self.trace_id = trace_id
        self.status_code: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.status_code is not None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            if self.trace_id:
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                headers[TRACE_HEADER] = self.trace_id
        await self._send(message)


def status_decorator(status_code: int):
    """Build a decorator that stamps status_code on an Entry."""

    def decorate(entry: Entry) -> Entry:
        entry.status_code = status_code
        return entry

    return decorate


class RequestLoggerMiddleware:
    """
    Binds a fresh Logger to each HTTP request.

    Args:
        app:     The wrapped ASGI application
        config:  Sink, env and service for every Logger this creates

    Lifespan and websocket scopes pass through untouched.
    """

    def __init__(self, app: ASGIApp, config: LoggerConfig):
        self.app = app
        self.config = config

    def build_logger(self, scope: Scope) -> Logger:
        return new_logger(self.config).with_request(Request(scope))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        lgr = self.build_logger(scope)
        publish(scope, lgr)
        token = current_logger_var.set(lgr)
        observer = ResponseStatusObserver(send, trace_id=lgr.trace_id)

        try:
            await self.app(scope, receive, observer)
        except Exception:
            if not observer.started:
                observer.status_code = UNHANDLED_ERROR_STATUS
            raise
        finally:
            try:
                status = observer.status_code or 0
                logger.debug(
                    "Flushing %d entries for %s %s [%s] status=%d",
                    len(lgr.entries),
                    scope.get("method", ""),
                    scope.get("path", ""),
                    lgr.trace_id,
                    status,
                )
                lgr.decorate_entries(status_decorator(status))
                lgr.flush()
            finally:
                current_logger_var.reset(token)
