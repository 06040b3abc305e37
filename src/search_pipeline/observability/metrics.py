"""Search golden signals as Prometheus metrics, mirrored to OpenTelemetry.

Every metric is declared once through ``MetricBridge.counter``/``histogram``/
``gauge``; the Prometheus side is created eagerly so ``get_metrics`` can
expose it, the OpenTelemetry instrument lazily on first use.
"""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


if TYPE_CHECKING:
    from collections.abc import Generator, Sequence


_meter_holder: dict[str, Any] = {"meter": None, "provider": None}

# OTel has no synchronous absolute gauge in older APIs; gauges are fed as deltas
_OTEL_FACTORIES = {
    "counter": "create_counter",
    "histogram": "create_histogram",
    "gauge": "create_up_down_counter",
}

LATENCY_BUCKETS = (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25)
RESULT_COUNT_BUCKETS = (0, 1, 3, 5, 10, 15, 25, 50)


def init_metrics(
    service_name: str = "search-pipeline",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: list[MetricReader] | None = None,
) -> MeterProvider:
    """Install the OpenTelemetry meter provider once per process; later calls return it."""
    provider = _meter_holder.get("provider")
    if isinstance(provider, MeterProvider):
        return provider

    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = MeterProvider(resource=resource, metric_readers=metric_readers or [])
    otel_metrics.set_meter_provider(provider)
    _meter_holder["provider"] = provider
    _meter_holder["meter"] = otel_metrics.get_meter(__name__)
    return provider


def _get_meter():
    if _meter_holder.get("meter") is None:
        init_metrics()
    return _meter_holder["meter"]


class _BoundMetric:
    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self._bridge = bridge
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._bridge.inc(self._labels, amount)

    def observe(self, value: float) -> None:
        self._bridge.observe(self._labels, value)

    def set(self, value: float) -> None:
        self._bridge.set(self._labels, value)


class MetricBridge:
    """A Prometheus metric and its OpenTelemetry twin, updated together."""

    def __init__(
        self,
        prom_metric: Counter | Histogram | Gauge,
        *,
        name: str,
        description: str,
        kind: str,
    ) -> None:
        if kind not in _OTEL_FACTORIES:
            raise ValueError(f"Unknown metric kind: {kind} (expected one of {', '.join(_OTEL_FACTORIES)})")
        self._prom_metric = prom_metric
        self.name = name
        self.description = description
        self.kind = kind
        self._otel_instrument = None
        self._last_gauge_values: dict[tuple[tuple[str, str], ...], float] = {}

    @classmethod
    def counter(
        cls, name: str, description: str, labelnames: Sequence[str], *, registry: CollectorRegistry = REGISTRY
    ) -> MetricBridge:
        prom = Counter(name, description, list(labelnames), registry=registry)
        return cls(prom, name=name, description=description, kind="counter")

    @classmethod
    def histogram(
        cls,
        name: str,
        description: str,
        labelnames: Sequence[str],
        *,
        buckets: Sequence[float],
        registry: CollectorRegistry = REGISTRY,
    ) -> MetricBridge:
        prom = Histogram(name, description, list(labelnames), buckets=tuple(buckets), registry=registry)
        return cls(prom, name=name, description=description, kind="histogram")

    @classmethod
    def gauge(
        cls, name: str, description: str, labelnames: Sequence[str], *, registry: CollectorRegistry = REGISTRY
    ) -> MetricBridge:
        prom = Gauge(name, description, list(labelnames), registry=registry)
        return cls(prom, name=name, description=description, kind="gauge")

    @property
    def prometheus_metric(self) -> Counter | Histogram | Gauge:
        return self._prom_metric

    def labels(self, **labels: str) -> _BoundMetric:
        return _BoundMetric(self, labels)

    def _instrument(self):
        if self._otel_instrument is None:
            factory = getattr(_get_meter(), _OTEL_FACTORIES[self.kind])
            self._otel_instrument = factory(self.name, description=self.description)
        return self._otel_instrument

    def inc(self, labels: dict[str, str], amount: float) -> None:
        self._prom_metric.labels(**labels).inc(amount)
        self._instrument().add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        self._prom_metric.labels(**labels).observe(value)
        self._instrument().record(value, labels)

    def set(self, labels: dict[str, str], value: float) -> None:
        self._prom_metric.labels(**labels).set(value)
        key = tuple(sorted(labels.items()))
        delta = value - self._last_gauge_values.get(key, 0.0)
        if delta:
            self._instrument().add(delta, labels)
        self._last_gauge_values[key] = value


SEARCH_REQUESTS = MetricBridge.counter(
    "search_requests_total",
    "Total search pipeline runs",
    ["engine", "mode"],
)
SEARCH_LATENCY = MetricBridge.histogram(
    "search_latency_seconds",
    "Search pipeline latency",
    ["engine"],
    buckets=LATENCY_BUCKETS,
)
SEARCH_RESULT_COUNT = MetricBridge.histogram(
    "search_result_count",
    "Items returned per search after trimming",
    ["engine", "mode"],
    buckets=RESULT_COUNT_BUCKETS,
)
SEARCH_EMPTY_RESULTS = MetricBridge.counter(
    "search_empty_results_total",
    "Searches that ended with no survivors",
    ["engine", "phase"],
)
SEARCH_STRATEGY_ERRORS = MetricBridge.counter(
    "search_strategy_errors_total",
    "Filter or scorer failures degraded to exclusion",
    ["engine", "stage"],
)
DOCUMENT_STORE_SIZE = MetricBridge.gauge(
    "document_store_size",
    "Documents held by an engine's store",
    ["engine"],
)


def observe_search(engine: str, mode: str, result_count: int) -> None:
    """Count one finished search and record how many items it returned."""
    SEARCH_REQUESTS.labels(engine=engine, mode=mode).inc()
    SEARCH_RESULT_COUNT.labels(engine=engine, mode=mode).observe(result_count)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Generator[None, None, None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics(registry: CollectorRegistry = REGISTRY) -> bytes:
    """Prometheus text exposition of every search metric."""
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
