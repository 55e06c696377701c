"""
reqlog — Custom Exception Hierarchy
=====================================

What:  Exceptions raised by the request logger and its configuration layer.
How:   Each exception carries a message and an optional context dict, the
       same shape the application's exception handlers serialize.
Who:   Raised by context lookup and sink configuration; caught by the
       handlers registered in main.py or by calling code.

Exception Hierarchy:
    ReqLogError (base)
    ├── LoggerNotFoundError   → no Logger bound to the current request scope
    └── ConfigurationError    → sink setting cannot be turned into a stream

What is NOT an exception here:
    - Malformed context JSON: coerced to "{}" by Entry.with_context
    - Encode or write failures during flush: reported on the diagnostics
      logger and dropped
    Logging must degrade to fewer or emptier fields, never to a crash.
"""

from typing import Any, Dict, Optional


class ReqLogError(Exception):
    """
    Base exception for all reqlog errors.

    Attributes:
        message:  Human-readable description
        context:  Additional debug info (logged, never returned to clients)
    """

    def __init__(
        self,
        message: str = "A request logger error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class LoggerNotFoundError(ReqLogError):
    """
    Raised when a Logger is requested from a scope that has none.

    When:    Handler code runs outside RequestLoggerMiddleware, or a different
             scope/context is passed than the one the middleware published to.
    HTTP:    500 Internal Server Error (see main.register_exception_handlers)

    The caller decides the fallback: abort the request, or build a standalone
    Logger with new_logger() for the remainder of the unit of work.
    """

    def __init__(
        self,
        message: str = "structured logger not found.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(ReqLogError):
    """
    Raised when the configured sink cannot be opened.

    When:    REQLOG_SINK names a file in a directory that does not exist, or
             the file is not writable.
    """

    def __init__(
        self,
        message: str = "Invalid request logger configuration",
        setting: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if setting:
            ctx["setting"] = setting
        super().__init__(message=message, context=ctx)
        self.setting = setting
