"""
reqlog — Request Scope Lookup Tests
=====================================

What:  Tests for publishing and retrieving the request's Logger.
"""

import asyncio

import pytest
from starlette.requests import Request

from reqlog.context import (
    current_logger_var,
    from_context,
    from_request,
    get_request_logger,
    publish,
    retrieve,
)
from reqlog.exceptions import LoggerNotFoundError
from reqlog.logger import Logger


def http_scope():
    return {"type": "http", "method": "GET", "path": "/x", "headers": []}


class TestScopeCarrier:
    """Tests for the ASGI scope carrier."""

    def test_publish_then_retrieve(self):
        scope = http_scope()
        lgr = Logger()
        publish(scope, lgr)
        assert retrieve(scope) is lgr

    def test_retrieve_without_publish_raises(self):
        with pytest.raises(LoggerNotFoundError, match="structured logger not found"):
            retrieve(http_scope())

    def test_string_keys_cannot_collide(self):
        """Unrelated code storing a Logger under a string key is not picked up."""
        scope = http_scope()
        scope["logger"] = Logger()
        scope["reqlog"] = Logger()
        with pytest.raises(LoggerNotFoundError):
            retrieve(scope)

    def test_publish_adds_no_string_keys(self):
        scope = http_scope()
        before = {k for k in scope if isinstance(k, str)}
        publish(scope, Logger())
        assert {k for k in scope if isinstance(k, str)} == before

    def test_from_request_reads_scope(self):
        scope = http_scope()
        lgr = Logger()
        publish(scope, lgr)
        assert from_request(Request(scope)) is lgr
        assert get_request_logger(Request(scope)) is lgr

    def test_error_carries_path(self):
        with pytest.raises(LoggerNotFoundError) as exc_info:
            from_request(Request(http_scope()))
        assert exc_info.value.context == {"path": "/x"}


class TestContextVar:
    """Tests for the coroutine-local carrier."""

    def test_unset_raises(self):
        with pytest.raises(LoggerNotFoundError):
            from_context()

    def test_set_then_read(self):
        lgr = Logger()
        token = current_logger_var.set(lgr)
        try:
            assert from_context() is lgr
        finally:
            current_logger_var.reset(token)

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self):
        """Each task sees only the Logger it set."""

        async def handle(name):
            lgr = Logger(trace_id=name)
            current_logger_var.set(lgr)
            await asyncio.sleep(0.01)
            return from_context().trace_id

        results = await asyncio.gather(handle("a"), handle("b"), handle("c"))
        assert results == ["a", "b", "c"]
