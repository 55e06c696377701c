"""
reqlog — Configuration
========================

What:  Environment-driven settings plus the LoggerConfig consumed by
       new_logger() and RequestLoggerMiddleware.
How:   Pydantic Settings reads REQLOG_* environment variables (or a .env
       file) and validates them; logger_config() turns the sink setting into
       an actual stream.
Who:   main.create_app() builds one LoggerConfig per application; library
       users may build LoggerConfig directly with any writable stream.

Environment variables:
    REQLOG_ENV        Environment name stamped on every entry (default: local)
    REQLOG_SERVICE    Service name stamped on every entry (default: reqlog)
    REQLOG_SINK       stdout | stderr | none | /path/to/file (default: stdout)
    REQLOG_LOG_LEVEL  Level for reqlog's own diagnostics (default: INFO)
"""

import logging
import sys
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from reqlog.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

STDOUT = "stdout"
STDERR = "stderr"
NO_SINK = "none"


class LoggerConfig(BaseModel):
    """
    The complete set of options a Logger is constructed from.

    sink:     Anything with write(str). None disables output; flush() then
              only clears the buffer. The Logger never opens or closes it.
    env:      Environment name, e.g. "production".
    service:  Service name, e.g. "billing-api".
    """

    sink: Optional[Any] = None
    env: str = ""
    service: str = ""

    model_config = {"arbitrary_types_allowed": True, "frozen": True}


class Settings(BaseSettings):
    """Settings loaded from REQLOG_* environment variables."""

    env: str = Field(default="local", description="Environment name")
    service: str = Field(default="reqlog", description="Service name")

    # What: Where NDJSON lines go
    # Format: "stdout", "stderr", "none", or a filesystem path (append mode)
    sink: str = Field(default=STDOUT)

    # What: Verbosity of reqlog's own diagnostics (never of the NDJSON output)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("sink")
    @classmethod
    def validate_sink(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("sink must not be empty; use 'none' to disable output")
        return v

    model_config = {
        "env_prefix": "REQLOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def logger_config(self) -> LoggerConfig:
        """Build the LoggerConfig, opening the sink this setting names."""
        return LoggerConfig(
            sink=open_sink(self.sink),
            env=self.env,
            service=self.service,
        )


def open_sink(setting: str) -> Optional[Any]:
    """
    Turn a sink setting into a writable text stream.

    Files are opened in append mode with line buffering so that each
    NDJSON line reaches the OS in a single write; concurrent requests
    sharing the stream then interleave whole lines, not bytes.

    Raises:
        ConfigurationError: if a file path cannot be opened for appending.
    """
    name = setting.strip()
    lowered = name.lower()
    if lowered == STDOUT:
        return sys.stdout
    if lowered == STDERR:
        return sys.stderr
    if lowered == NO_SINK:
        return None

    try:
        stream = open(name, "a", buffering=1, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            message=f"Cannot open log sink '{name}': {e.strerror or e}",
            setting="sink",
            context={"path": name},
        ) from e

    logger.debug("Opened file sink %s", name)
    return stream


def is_file_sink(setting: str) -> bool:
    """True when open_sink(setting) opens (and so owns) a file."""
    return setting.strip().lower() not in (STDOUT, STDERR, NO_SINK)


def close_sink(setting: str, sink: Optional[Any]) -> None:
    """Close a sink opened by open_sink(); standard streams are left open."""
    if sink is None or not is_file_sink(setting):
        return
    sink.close()
    logger.debug("Closed file sink %s", setting)
