"""
reqlog — Middleware Package
=============================

RequestLoggerMiddleware is the only middleware. Install it outermost among
user middleware so entries logged by other middleware also land in the
request's Logger:

    Request → [RequestLogger] → [other middleware] → Route Handler
    Response ← [RequestLogger] ← ... (status observed, entries flushed)
"""

from reqlog.middleware.request_logger import (
    RequestLoggerMiddleware,
    ResponseStatusObserver,
)

__all__ = ["RequestLoggerMiddleware", "ResponseStatusObserver"]
