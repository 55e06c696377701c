"""
reqlog — FastAPI Application Factory
======================================

What:  Builds a FastAPI application with the request logger installed.
How:   create_app() reads Settings, opens the sink, installs
       RequestLoggerMiddleware, registers exception handlers and routes.
Who:   uvicorn (uvicorn reqlog.main:app), and tests through create_app().

Two separate log streams:
    NDJSON entries  → the configured sink (stdout by default), one line each,
                      written by Logger.flush() at the end of every request
    Diagnostics     → stderr through the stdlib logging module (reqlog.*
                      loggers), so they never interleave with the NDJSON lines

Lifecycle:
    Startup:  configure diagnostics logging, log the sink and service
    Shutdown: close the sink if create_app() opened a file for it
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reqlog import __version__
from reqlog.config import Settings, close_sink
from reqlog.exceptions import LoggerNotFoundError
from reqlog.logger import report_logger_not_found
from reqlog.middleware import RequestLoggerMiddleware
from reqlog.routes import health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Diagnostics Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the stdlib logging used for reqlog's own diagnostics.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
        force=True,
    )

    # uvicorn's access log duplicates what every NDJSON line already carries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map reqlog exceptions to JSON error responses.

        LoggerNotFoundError → 500, plus the fixed "logger not found" line
                              on the sink (skipped when REQLOG_SINK=none)
    """

    @app.exception_handler(LoggerNotFoundError)
    async def handle_logger_not_found(request: Request, exc: LoggerNotFoundError):
        logger.error("No request logger bound for %s %s", request.method, request.url.path)
        sink = app.state.logger_config.sink
        if sink is not None:
            report_logger_not_found(sink)
        return JSONResponse(
            status_code=500,
            content={
                "error": "logger_not_found",
                "message": exc.message,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Explicit settings (tests); defaults to reading REQLOG_* vars.

    Raises:
        ConfigurationError: the sink setting names a file that cannot be
            opened. Raised here, at startup, rather than on the first request.
    """
    settings = settings or Settings()
    logger_config = settings.logger_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(settings.log_level)
        logger.info(
            "reqlog %s starting: service=%s env=%s sink=%s",
            __version__,
            settings.service,
            settings.env,
            settings.sink,
        )

        yield

        close_sink(settings.sink, logger_config.sink)
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="reqlog",
        description="Per-request structured NDJSON logging for ASGI services.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.logger_config = logger_config

    app.add_middleware(RequestLoggerMiddleware, config=logger_config)

    register_exception_handlers(app)

    app.include_router(health.router)

    return app


# uvicorn expects `reqlog.main:app` to be importable
app = create_app()
