"""Metrics collection facade for the search service.

Re-exports the shared metrics collector so callers can import from a
consistent local path within the service.
"""

from libs.common.metrics import MetricsCollector

SERVICE_NAME = "dimension-search-api"


def create_metrics_collector() -> MetricsCollector:
    """Create the collector for one application instance."""
    return MetricsCollector(SERVICE_NAME)
