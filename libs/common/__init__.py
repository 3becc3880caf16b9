"""Common utilities shared by the search platform.

Includes:
- ``config``: Pydantic-based service configuration from environment variables.
- ``errors``: the domain error taxonomy and its HTTP status codes.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.
- ``tracing``: OpenTelemetry setup and span helpers.
- ``events``: Redis pub/sub event models and publisher.
- ``auth``: caller identity from bearer JWTs.

Import pattern:
- from libs.common.config import SearchConfig
- from libs.common.logging import configure_logging
"""
