"""Prometheus metrics for engine operations."""

from prometheus_client import Counter, Histogram

engine_operations_total = Counter(
    "engine_operations_total",
    "Total itinerary operations",
    ["operation", "outcome"],
)

engine_operation_latency_ms = Histogram(
    "engine_operation_latency_ms",
    "Itinerary operation latency in milliseconds, including load and save",
    ["operation"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

inferred_segments_total = Counter(
    "inferred_segments_total",
    "Inferred segments committed by gap filling",
    ["kind"],
)

cascade_shifted_segments = Histogram(
    "cascade_shifted_segments",
    "Segments shifted per cascade move, including the moved one",
    buckets=[1, 2, 3, 5, 8, 13, 21, 34],
)


class PrometheusEngineMetrics:
    """Prometheus-based engine metrics implementation."""

    def record_operation(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Count an operation and record its latency."""
        engine_operations_total.labels(operation=operation, outcome=outcome).inc()
        engine_operation_latency_ms.labels(operation=operation).observe(latency_ms)

    def inc_inferred(self, kind: str, count: int = 1) -> None:
        """Increment inferred segment counter."""
        inferred_segments_total.labels(kind=kind).inc(count)

    def observe_cascade(self, shifted: int) -> None:
        """Record how many segments one cascade move shifted."""
        cascade_shifted_segments.observe(shifted)
