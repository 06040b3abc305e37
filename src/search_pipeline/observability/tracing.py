"""OpenTelemetry tracing for search pipeline runs.

A search opens one ``search.pipeline`` span and a child span per phase that
can shrink the candidate set (``search.filter``, ``search.score``,
``search.rank``). Span ids are mirrored into the log trace context.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode

from search_pipeline.observability.context import adopt_span_ids


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span, Tracer

    from search_pipeline.config import Settings
    from search_pipeline.domain.search import SearchContext, SearchResult

logger = logging.getLogger(__name__)

_tracer_holder: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = "search-pipeline",
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    """Install an SDK tracer provider; exporters are attached by the host process."""
    attributes = {"service.name": service_name, **(resource_attributes or {})}
    provider = TracerProvider(resource=Resource.create(attributes))
    trace.set_tracer_provider(provider)
    _tracer_holder["tracer"] = trace.get_tracer(__name__)
    logger.info("Tracing initialized for service: %s", service_name)
    return provider


def init_tracing_from_settings(settings: Settings) -> TracerProvider:
    return init_tracing(resource_attributes={"search.engine": settings.engine_name})


def get_tracer() -> Tracer:
    if _tracer_holder["tracer"] is None:
        init_tracing()
    return _tracer_holder["tracer"]  # type: ignore[return-value]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Open a span, mirror its ids into the log context and mark it failed on error.

    ``None`` attribute values are skipped rather than sent to the exporter.
    """
    present = {key: value for key, value in (attributes or {}).items() if value is not None}
    with get_tracer().start_as_current_span(name, kind=kind, attributes=present) as span:
        span_context = span.get_span_context()
        if span_context.is_valid:
            adopt_span_ids(span_context.trace_id, span_context.span_id)
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise


def pipeline_span(engine: str, context: SearchContext):
    """Root span for one search run."""
    forced = context.forced_mode.value if context.forced_mode is not None else None
    return create_span(
        "search.pipeline",
        attributes={
            "search.engine": engine,
            "search.query_words": len(context.words),
            "search.max_results": context.max_results,
            "search.forced_mode": forced,
        },
    )


def phase_span(phase: str, candidates: int):
    return create_span(f"search.{phase}", attributes={"search.candidates": candidates})


def record_result(span: Span, result: SearchResult) -> None:
    """Stamp the outcome of a run onto its span."""
    span.set_attribute("search.mode", result.mode.value)
    span.set_attribute("search.result_count", result.count)
    span.set_attribute("search.top_score", result.top_score)
    span.set_attribute("search.suggestion_count", len(result.suggestions))
