"""
reqlog — Log Entry Model
==========================

What:  One structured log record plus the request/process context it was
       emitted in.
How:   A pydantic model whose field order and names are the wire format;
       model_dump_json() produces exactly one NDJSON line.
Who:   Built by Logger._build_entry(); returned to callers of the level
       methods so they can chain with_context().

Wire format (one JSON object per line, keys in this order):
    args, causer_id, causer_type, context_as_string, data_id, data_type,
    datetime, delta, env, impersonator, level, message, process_context,
    process_start, remote_address, request_method, request_query,
    request_url, service, status_code, trace_id, type

    delta and status_code are integers; every other field is a string.
    Unset strings serialize as "" (never null, never absent).

Fields the Logger never fills:
    causer_id, causer_type, data_id, data_type, impersonator
    These identify who acted on what. Callers set them through
    Logger.decorate_entries() once they know (e.g. after authentication).
"""

import json
import logging

from pydantic import BaseModel

diagnostics = logging.getLogger("reqlog.diagnostics")

EMPTY_CONTEXT = "{}"


def _reject_constant(token: str):
    raise ValueError(f"{token} is not valid JSON")


def is_json(text: str) -> bool:
    """
    Report whether text is one complete, well-formed JSON document.

    Any JSON value counts (object, array, string, number, literal).
    The empty string, truncated documents and the non-standard NaN,
    Infinity and -Infinity tokens do not.
    """
    if not isinstance(text, str):
        return False
    try:
        json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return False
    return True


class Entry(BaseModel):
    """
    A single log event.

    Mutable on purpose: decoration rewrites fields of entries that are
    already buffered (e.g. status_code once the response is known).
    """

    args: str = ""
    causer_id: str = ""
    causer_type: str = ""
    context_as_string: str = ""
    data_id: str = ""
    data_type: str = ""
    datetime: str = ""
    delta: int = 0
    env: str = ""
    impersonator: str = ""
    level: str = ""
    message: str = ""
    process_context: str = ""
    process_start: str = ""
    remote_address: str = ""
    request_method: str = ""
    request_query: str = ""
    request_url: str = ""
    service: str = ""
    status_code: int = 0
    trace_id: str = ""
    type: str = ""

    def with_context(self, context: str) -> "Entry":
        """
        Attach a JSON-encoded context blob to this entry.

        Valid JSON is stored verbatim. Anything else, including the empty
        string, is replaced by "{}" and reported on the diagnostics logger;
        the caller never sees an error.

        Returns:
            self, so calls chain: lgr.warn("msg").with_context('{"k": 1}')
        """
        if not is_json(context):
            diagnostics.warning(
                "invalid JSON context",
                extra={"context": context, "trace_id": self.trace_id},
            )
            context = EMPTY_CONTEXT

        self.context_as_string = context
        return self
