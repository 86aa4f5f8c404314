"""Request metrics aggregated in an explicitly owned Prometheus registry.

A single MetricsRegistry is constructed at process start and handed to the
app factory. Nothing here touches prometheus_client's global REGISTRY, so
several registries (one per test, for example) can coexist.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

DEFAULT_HISTOGRAM_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]

REQUEST_COUNTER_NAME = "http_requests_total"
REQUEST_HISTOGRAM_NAME = "http_request_duration_seconds"


class MetricsRegistry:
    """Per-request count and latency observations.

    Records:
        http_requests_total{method, endpoint, status}: counter
        http_request_duration_seconds{method, endpoint}: histogram

    prometheus_client guards each child metric with a lock, so observe()
    is safe to call from any number of concurrent requests.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, buckets: list[float] | None = None) -> None:
        self._registry = CollectorRegistry()
        self._requests = Counter(
            REQUEST_COUNTER_NAME,
            "Total number of HTTP requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )
        self._duration = Histogram(
            REQUEST_HISTOGRAM_NAME,
            "Duration of HTTP requests",
            ["method", "endpoint"],
            buckets=buckets if buckets is not None else DEFAULT_HISTOGRAM_BUCKETS,
            registry=self._registry,
        )
        self._closed = False

    def observe(self, method: str, endpoint: str, status: int, duration: float) -> None:
        """Record one finished request.

        Args:
            method: HTTP method.
            endpoint: Route template (e.g. "/logs/{log_id}"), never the raw path.
            status: Final response status code.
            duration: Elapsed handler time in seconds.
        """
        self._requests.labels(method, endpoint, str(status)).inc()
        self._duration.labels(method, endpoint).observe(duration)

    def count(self, method: str, endpoint: str, status: int) -> float:
        """Return the current request count for a (method, endpoint, status)."""
        value = self._registry.get_sample_value(
            REQUEST_COUNTER_NAME,
            {"method": method, "endpoint": endpoint, "status": str(status)},
        )
        return value or 0.0

    def observations(self, method: str, endpoint: str) -> float:
        """Return how many durations were observed for a (method, endpoint)."""
        value = self._registry.get_sample_value(
            f"{REQUEST_HISTOGRAM_NAME}_count",
            {"method": method, "endpoint": endpoint},
        )
        return value or 0.0

    def exposition(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self._registry)

    def close(self) -> None:
        """Unregister the collectors. Idempotent."""
        if self._closed:
            return
        self._registry.unregister(self._requests)
        self._registry.unregister(self._duration)
        self._closed = True
