"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from search_pipeline.observability.context import (
    adopt_span_ids,
    engine_scope,
    get_trace_context,
    set_trace_context,
    trace_context,
)
from search_pipeline.observability.logging import (
    JsonFormatter,
    configure_logging,
    configure_logging_from_settings,
    query_digest,
)
from search_pipeline.observability.metrics import (
    DOCUMENT_STORE_SIZE,
    SEARCH_EMPTY_RESULTS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    SEARCH_RESULT_COUNT,
    SEARCH_STRATEGY_ERRORS,
    MetricBridge,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    observe_search,
    track_latency,
)
from search_pipeline.observability.tracing import (
    create_span,
    get_tracer,
    init_tracing,
    init_tracing_from_settings,
    phase_span,
    pipeline_span,
    record_result,
)


__all__ = [
    "DOCUMENT_STORE_SIZE",
    "SEARCH_EMPTY_RESULTS",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "SEARCH_RESULT_COUNT",
    "SEARCH_STRATEGY_ERRORS",
    "JsonFormatter",
    "MetricBridge",
    "adopt_span_ids",
    "configure_logging",
    "configure_logging_from_settings",
    "create_span",
    "engine_scope",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "init_tracing_from_settings",
    "observe_search",
    "phase_span",
    "pipeline_span",
    "query_digest",
    "record_result",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
