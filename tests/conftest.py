"""
reqlog — Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    sink:           In-memory text stream standing in for stdout/file sinks
    logger_config:  LoggerConfig(env="some-env", service="some-service") on sink
    lgr:            A fresh Logger built from logger_config
    read_lines:     Parses everything written to sink into a list of dicts
"""

import io
import json
import os

import pytest

from reqlog.config import LoggerConfig
from reqlog.logger import new_logger

# Keep `reqlog.main:app` (built at import) off the real stdout and .env
os.environ.setdefault("REQLOG_SINK", "none")
os.environ.setdefault("REQLOG_LOG_LEVEL", "WARNING")


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def logger_config(sink):
    return LoggerConfig(sink=sink, env="some-env", service="some-service")


@pytest.fixture
def lgr(logger_config):
    return new_logger(logger_config)


@pytest.fixture
def read_lines(sink):
    """
    Returns a callable that decodes the NDJSON written to `sink` so far.

    Blank lines are skipped; every other line must be a JSON object.
    """

    def _read():
        return [json.loads(line) for line in sink.getvalue().splitlines() if line.strip()]

    return _read
