"""Trace context shared between spans and structured log records.

The JSON formatter reads this on every record, so the log lines a search
emits carry the same trace id, span id and engine label as its spans.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import secrets


trace_context: ContextVar[dict | None] = ContextVar("search_trace_context", default=None)

TRACE_ID_HEX_LENGTH = 32
SPAN_ID_HEX_LENGTH = 16


def new_trace_id() -> str:
    return secrets.token_hex(TRACE_ID_HEX_LENGTH // 2)


def new_span_id() -> str:
    return secrets.token_hex(SPAN_ID_HEX_LENGTH // 2)


def get_trace_context() -> dict:
    """Current context; ids are minted on first access so logs outside a span still correlate."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), "trace_id": new_trace_id(), "span_id": new_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def adopt_span_ids(trace_id: int, span_id: int) -> None:
    """Mirror OpenTelemetry's integer ids, hex-formatted the way exporters print them."""
    ctx = trace_context.get() or {}
    trace_context.set(
        {
            **ctx,
            "trace_id": format(trace_id, f"0{TRACE_ID_HEX_LENGTH}x"),
            "span_id": format(span_id, f"0{SPAN_ID_HEX_LENGTH}x"),
        }
    )


@contextmanager
def engine_scope(engine: str) -> Iterator[dict]:
    """Label log records with ``engine`` until the block exits."""
    token = trace_context.set({**get_trace_context(), "engine": engine})
    try:
        yield trace_context.get()
    finally:
        trace_context.reset(token)
