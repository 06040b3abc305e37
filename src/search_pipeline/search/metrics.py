"""Performance metrics collection for search operations."""

from collections import Counter, defaultdict, deque
from dataclasses import dataclass
import threading


@dataclass
class SearchMetrics:
    """Search operation metrics."""

    latency_ms: float
    result_count: int
    query_tokens: int
    mode: str


class MetricsCollector:
    """Lightweight rolling-window metrics collector for search operations."""

    def __init__(self, window_size: int = 1000, slow_threshold_ms: float = 10.0):
        self.window_size = window_size
        self.slow_threshold_ms = slow_threshold_ms
        self._metrics: deque[SearchMetrics] = deque(maxlen=window_size)
        self._counters: defaultdict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def record_search(self, metrics: SearchMetrics):
        """Record search operation metrics."""
        with self._lock:
            self._metrics.append(metrics)
            self._counters["total_searches"] += 1

            if metrics.latency_ms > self.slow_threshold_ms:
                self._counters["slow_searches"] += 1
            if metrics.result_count == 0:
                self._counters["empty_results"] += 1

    def get_stats(self) -> dict:
        """Get current performance statistics."""
        with self._lock:
            window = list(self._metrics)
            counters = dict(self._counters)

        if not window:
            return {}

        latencies = sorted(m.latency_ms for m in window)
        result_counts = [m.result_count for m in window]
        total = counters["total_searches"]

        return {
            "count": len(window),
            "latency": {
                "mean": sum(latencies) / len(latencies),
                "p95": latencies[min(int(len(latencies) * 0.95), len(latencies) - 1)],
                "p99": latencies[min(int(len(latencies) * 0.99), len(latencies) - 1)],
                "max": latencies[-1],
            },
            "results": {
                "mean": sum(result_counts) / len(result_counts),
                "empty_rate": counters.get("empty_results", 0) / total,
            },
            "modes": dict(Counter(m.mode for m in window)),
            "performance": {
                "slow_rate": counters.get("slow_searches", 0) / total,
                "total_searches": total,
            },
        }

    def reset(self):
        """Reset all metrics."""
        with self._lock:
            self._metrics.clear()
            self._counters.clear()


# Global metrics collector instance
_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector."""
    return _metrics_collector

