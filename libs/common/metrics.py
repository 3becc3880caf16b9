"""Metrics collection for the dimension search service.

Provides a thin convenience wrapper around ``prometheus_client`` so the
service records HTTP, search, index lifecycle, and output queue metrics with
consistent label sets.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- A single registry is kept per collector (can be injected for tests)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration',
            ['method', 'endpoint'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'dimension_search_requests_total',
            'Total dimension search requests',
            ['outcome'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'dimension_search_duration_seconds',
            'Dimension search duration',
            ['outcome'],
            registry=self.registry
        )

        self.index_operations = Counter(
            'dimension_search_index_operations_total',
            'Search index lifecycle operations',
            ['operation', 'outcome'],
            registry=self.registry
        )

        self.queue_messages = Counter(
            'dimension_search_output_queue_messages_total',
            'Index build requests passed through the output queue',
            ['status'],
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status: int, duration: float) -> None:
        """Record an HTTP request."""
        self.request_count.labels(method=method, endpoint=endpoint, status=str(status)).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_search(self, outcome: str, duration: float) -> None:
        """Record a search request; ``outcome`` is ``success`` or an error name."""
        self.search_requests.labels(outcome=outcome).inc()
        self.search_duration.labels(outcome=outcome).observe(duration)

    def record_index_operation(self, operation: str, outcome: str) -> None:
        """Record a create/delete index operation."""
        self.index_operations.labels(operation=operation, outcome=outcome).inc()

    def record_queue_message(self, status: str) -> None:
        """Record an output queue message (``queued``, ``published``, ``failed``)."""
        self.queue_messages.labels(status=status).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus text format."""
        return generate_latest(self.registry).decode('utf-8')

