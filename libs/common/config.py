"""Configuration management for the dimension search service.

Configuration is environment driven and built on
``pydantic_settings.BaseSettings`` so values can come from environment
variables, a ``.env`` file, or defaults. Field names match the environment
variable names (case-insensitive), e.g. ``MAX_SEARCH_RESULTS_OFFSET``.

The settings object is frozen: build it once in the service entrypoint and
pass it to the components that need it.

Usage
- ``config = SearchConfig()``
- ``config = SearchConfig(enable_private_endpoints=False)`` in tests
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Subnet(str, Enum):
    """Deployment trust zone.

    ``PRIVATE`` deployments expose authenticated endpoints and may forward the
    service credential to the Dataset API; ``PUBLIC`` deployments never do.
    """

    PUBLIC = "public"
    PRIVATE = "private"


# Never written to logs.
SENSITIVE_FIELDS = {
    "opensearch_password",
    "service_auth_token",
    "jwt_secret_key",
    "redis_url",
}


class BaseConfig(BaseSettings):
    """Settings shared by every process of the platform.

    Notes
    - Add new shared settings here so downstream services inherit them.
    - Instances are immutable; use ``model_copy(update=...)`` to derive one.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    env: str = Field(default="local")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # Observability
    tracing_enabled: bool = Field(default=False)
    otel_exporter_otlp_endpoint: str = Field(default="http://localhost:4317")
    otel_service_name: str = Field(default="dp-dimension-search-api")

    # Message bus
    redis_url: str = Field(default="redis://localhost:6379")
    event_channel_prefix: str = Field(default="dimension_search")

    # Outbound HTTP
    request_timeout: float = Field(default=10.0)
    request_max_retries: int = Field(default=3)

    def safe_dict(self) -> Dict[str, Any]:
        """Return the settings with secrets removed, for startup logging."""
        return self.model_dump(exclude=SENSITIVE_FIELDS)


class SearchConfig(BaseConfig):
    """Configuration for the dimension search API."""

    search_host: str = Field(default="0.0.0.0")
    search_port: int = Field(default=23100)
    search_api_url: str = Field(default="http://localhost:23100")
    graceful_shutdown_timeout: int = Field(default=5)

    # Dataset API (version registry)
    dataset_api_url: str = Field(default="http://localhost:22000")
    service_auth_token: str = Field(default="a507f722-f25a-4889-9653-23a2655b925c")

    # OpenSearch / Elasticsearch
    opensearch_hosts: str = Field(default="http://localhost:10200")
    opensearch_username: Optional[str] = Field(default=None)
    opensearch_password: Optional[str] = Field(default=None)
    opensearch_verify_certs: bool = Field(default=False)

    # Search behaviour
    max_search_results_offset: int = Field(default=1000)
    enable_private_endpoints: bool = Field(default=True)
    enable_url_rewriting: bool = Field(default=False)

    # Identity
    jwt_secret_key: str = Field(default="dev-secret-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")

    # Index build requests
    hierarchy_built_topic: str = Field(default="hierarchy-built")
    output_queue_size: int = Field(default=100)
    output_queue_timeout: float = Field(default=5.0)

    @property
    def subnet(self) -> Subnet:
        return Subnet.PRIVATE if self.enable_private_endpoints else Subnet.PUBLIC

    @property
    def opensearch_host_list(self) -> List[str]:
        return [host.strip() for host in self.opensearch_hosts.split(",") if host.strip()]
