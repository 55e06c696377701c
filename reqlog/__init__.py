"""
reqlog — Per-Request Structured Logging
=========================================

What: Buffers structured log entries for the lifetime of one request and
      writes them as newline-delimited JSON when the request ends.

Typical use (FastAPI):

    from reqlog import LoggerConfig, RequestLoggerMiddleware, get_request_logger

    app.add_middleware(
        RequestLoggerMiddleware,
        config=LoggerConfig(sink=sys.stdout, env="production", service="billing"),
    )

    @app.get("/invoices")
    async def invoices(lgr: Logger = Depends(get_request_logger)):
        lgr.info("listing invoices")
        lgr.warn("slow query").with_context('{"ms": 812}')

Outside a request:

    with new_logger(config) as lgr:
        lgr.info("nightly job started")
"""

__version__ = "1.0.0"

from reqlog.config import LoggerConfig, Settings
from reqlog.context import from_context, from_request, get_request_logger
from reqlog.entry import Entry, is_json
from reqlog.exceptions import ConfigurationError, LoggerNotFoundError, ReqLogError
from reqlog.logger import Level, Logger, new_logger, report_logger_not_found
from reqlog.middleware import RequestLoggerMiddleware

__all__ = [
    "ConfigurationError",
    "Entry",
    "Level",
    "Logger",
    "LoggerConfig",
    "LoggerNotFoundError",
    "ReqLogError",
    "RequestLoggerMiddleware",
    "Settings",
    "from_context",
    "from_request",
    "get_request_logger",
    "is_json",
    "new_logger",
    "report_logger_not_found",
]
