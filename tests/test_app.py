"""
reqlog — Application Factory Tests
====================================

What:  Tests for create_app(): middleware wiring, /health, exception handlers.
How:   Each app writes to a file sink under tmp_path, read back after requests.
"""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from reqlog import __version__
from reqlog.config import Settings
from reqlog.exceptions import LoggerNotFoundError
from reqlog.main import create_app


@pytest.fixture
def sink_path(tmp_path):
    return tmp_path / "requests.ndjson"


@pytest.fixture
def app(sink_path):
    settings = Settings(
        _env_file=None,
        env="test",
        service="svc",
        sink=str(sink_path),
        log_level="WARNING",
    )
    application = create_app(settings)

    @application.get("/orphan")
    async def orphan():
        raise LoggerNotFoundError()

    yield application
    application.state.logger_config.sink.close()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def read_lines(path):
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestHealth:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health_reports_identity(self, client):
        response = await client.get("/health", headers={"x-trace-id": "health-trace"})
        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "service": "svc",
            "env": "test",
            "version": __version__,
            "trace_id": "health-trace",
        }
        assert response.headers["x-trace-id"] == "health-trace"

    @pytest.mark.asyncio
    async def test_health_logs_one_entry(self, client, sink_path):
        await client.get("/health", headers={"x-trace-id": "health-trace"})

        (line,) = read_lines(sink_path)
        assert line["message"] == "health check"
        assert line["level"] == "info"
        assert line["env"] == "test"
        assert line["service"] == "svc"
        assert line["trace_id"] == "health-trace"
        assert line["request_url"] == "test/health"
        assert line["status_code"] == 200


class TestExceptionHandlers:
    """Tests for the LoggerNotFoundError handler."""

    @pytest.mark.asyncio
    async def test_logger_not_found(self, client, sink_path):
        response = await client.get("/orphan")

        assert response.status_code == 500
        assert response.json() == {
            "error": "logger_not_found",
            "message": "structured logger not found.",
        }
        assert '{"error":"structured logger not found."}' in sink_path.read_text().splitlines()

    @pytest.mark.asyncio
    async def test_logger_not_found_silent_without_sink(self, capsys):
        """With REQLOG_SINK=none nothing is written to stdout."""
        application = create_app(Settings(_env_file=None, sink="none", log_level="WARNING"))

        @application.get("/orphan")
        async def orphan():
            raise LoggerNotFoundError()

        capsys.readouterr()
        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/orphan")

        assert response.status_code == 500
        assert response.json()["error"] == "logger_not_found"
        assert capsys.readouterr().out == ""
