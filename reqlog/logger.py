"""
reqlog — Per-Request Logger
=============================

What:  Buffers Entries for one unit of work and writes them as NDJSON when
       the unit of work ends.
How:   Level methods build an Entry from a snapshot of the Logger's state and
       append it; decorate_entries() rewrites buffered entries in place;
       flush() serializes the buffer to the sink and clears it.
Who:   Created per request by RequestLoggerMiddleware, or directly with
       new_logger() for scripts and background jobs.

Lifecycle:
    new_logger(cfg)          → empty buffer, fresh random trace id
    .with_request(request)   → optional; adopts an inbound x-trace-id
    .info() / .warn() / ...  → append (never filtered by level)
    .decorate_entries(fn)    → rewrite what is buffered right now
    .flush()                 → write every entry, then clear the buffer

Concurrency:
    A Logger belongs to exactly one request and is used from that request's
    code path only. There is no locking; isolation comes from never sharing
    an instance between requests.
"""

import enum
import logging
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

from pydantic_core import PydanticSerializationError
from starlette.requests import HTTPConnection

from reqlog.config import LoggerConfig
from reqlog.entry import Entry

diagnostics = logging.getLogger("reqlog.diagnostics")

TRACE_HEADER = "x-trace-id"
ENTRY_TYPE = "general"
PROCESS_CONTEXT = "request"

Decorator = Callable[[Entry], Entry]


class Level(str, enum.Enum):
    """Severity names as they appear in the "level" field."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    return moment.isoformat(timespec="seconds")


def _new_trace_id() -> str:
    return str(uuid.uuid4())


def _format_address(host: str, port: int) -> str:
    # IPv6 hosts are bracketed: [::1]:5000
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}"


class Logger:
    """
    Ordered buffer of Entries sharing one trace id and start time.

    Attributes:
        entries:     Buffered entries in emission order
        env:         Environment name copied into every entry
        service:     Service name copied into every entry
        start_time:  When this Logger was created (UTC)
        trace_id:    Correlates every entry of this unit of work
        request:     Bound inbound request, or None
        sink:        Borrowed output stream, or None to discard on flush
    """

    def __init__(
        self,
        env: str = "",
        service: str = "",
        sink: Optional[Any] = None,
        trace_id: str = "",
        start_time: Optional[datetime] = None,
    ):
        self.entries: List[Entry] = []
        self.env = env
        self.service = service
        self.sink = sink
        self.trace_id = trace_id
        self.start_time = start_time or _now()
        self.request: Optional[HTTPConnection] = None

    def __repr__(self) -> str:
        return (
            f"<Logger service={self.service!r} env={self.env!r} "
            f"trace_id={self.trace_id!r} entries={len(self.entries)}>"
        )

    # ── Context manager: flush when the unit of work ends ─────────────────

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.flush()

    # ── Request binding ───────────────────────────────────────────────────

    def with_request(self, request: Optional[HTTPConnection]) -> "Logger":
        """
        Bind an inbound request; entries built afterwards carry its details.

        A non-empty x-trace-id header replaces this Logger's trace id. This
        is the only place the trace id ever changes. Passing None keeps the
        current binding.
        """
        if request is None:
            return self

        self.request = request
        inbound = request.headers.get(TRACE_HEADER, "")
        if inbound:
            self.trace_id = inbound
        return self

    # ── Level methods ─────────────────────────────────────────────────────

    def debug(self, message: str) -> Entry:
        return self.log(Level.DEBUG, message)

    def info(self, message: str) -> Entry:
        return self.log(Level.INFO, message)

    def warn(self, message: str) -> Entry:
        return self.log(Level.WARN, message)

    warning = warn

    def error(self, message: str) -> Entry:
        return self.log(Level.ERROR, message)

    def log(self, level: Level, message: str) -> Entry:
        """
        Build an Entry and append it to the buffer.

        Every level is buffered; deciding what to ship or display is left
        to whatever reads the sink.

        Returns:
            The appended Entry, so with_context() can be chained.
        """
        entry = self._build_entry(level, message)
        self.entries.append(entry)
        return entry

    def _build_entry(self, level: Level, message: str) -> Entry:
        """
        Snapshot the Logger's current state into a new Entry.

        delta is whole milliseconds since start_time. It is not clamped, so
        a wall clock stepping backwards yields a negative value.
        """
        now = _now()
        delta = now - self.start_time

        remote_address = ""
        request_method = ""
        request_query = ""
        request_url = ""

        if self.request is not None:
            client = self.request.client
            if client is not None:
                remote_address = _format_address(client.host, client.port)
            request_method = self.request.scope.get("method", "")
            request_query = self.request.url.query
            request_url = self.request.url.netloc + self.request.url.path

        return Entry(
            args=" ".join(sys.argv),
            context_as_string="",
            datetime=_format_time(now),
            delta=int(delta / timedelta(milliseconds=1)),
            env=self.env,
            level=Level(level).value,
            message=message,
            process_context=PROCESS_CONTEXT,
            process_start=_format_time(self.start_time),
            remote_address=remote_address,
            request_method=request_method,
            request_query=request_query,
            request_url=request_url,
            service=self.service,
            trace_id=self.trace_id,
            type=ENTRY_TYPE,
        )

    # ── Decoration ────────────────────────────────────────────────────────

    def decorate_entries(self, *decorators: Decorator) -> None:
        """
        Apply decorators, left to right, to every entry buffered right now.

        Each decorator receives an Entry and returns the Entry to keep, so
        it may mutate in place or substitute a new one. Entries appended
        after this call are not touched; call again if they need it.
        """
        for i, entry in enumerate(self.entries):
            for decorator in decorators:
                entry = decorator(entry)
            self.entries[i] = entry

    # ── Flush ─────────────────────────────────────────────────────────────

    def flush(self) -> None:
        """
        Write every buffered entry to the sink as one JSON line, then clear.

        Best effort:
            - No sink: nothing is written, the buffer is still cleared.
            - An entry that fails to encode is dropped; the rest are written.
            - A failed write loses that line only; the rest are still tried.
              Failures are reported once per flush, never raised.
        """
        entries, self.entries = self.entries, []
        if self.sink is None or not entries:
            return

        failed = 0
        last_error = None

        for entry in entries:
            try:
                line = entry.model_dump_json()
            except (PydanticSerializationError, TypeError, ValueError) as e:
                diagnostics.debug(
                    "dropping unencodable log entry: %s",
                    e,
                    extra={"trace_id": self.trace_id},
                )
                continue

            try:
                self.sink.write(line + "\n")
            except (OSError, ValueError) as e:
                failed += 1
                last_error = e

        if failed:
            diagnostics.warning(
                "log sink write failed for %d of %d entries: %s",
                failed,
                len(entries),
                last_error,
                extra={"trace_id": self.trace_id},
            )

        flush = getattr(self.sink, "flush", None)
        if flush is not None:
            try:
                flush()
            except (OSError, ValueError) as e:
                diagnostics.warning("log sink flush failed: %s", e)


def new_logger(
    config: LoggerConfig,
    id_generator: Callable[[], str] = _new_trace_id,
) -> Logger:
    """
    Create a Logger for a new unit of work.

    The trace id comes from id_generator (a random UUID4 by default),
    called exactly once. No request is bound; use with_request().
    """
    return Logger(
        env=config.env,
        service=config.service,
        sink=config.sink,
        trace_id=id_generator(),
        start_time=_now(),
    )


def report_logger_not_found(sink: Optional[Any] = None) -> None:
    """Write the fixed "logger not found" JSON line (stdout by default)."""
    stream = sink if sink is not None else sys.stdout
    stream.write('{"error":"structured logger not found."}\n')
