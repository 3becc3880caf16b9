"""Shared libraries for the dimension search service.

Subpackages:
- ``libs.common``: configuration, errors, logging, authentication, metrics,
  tracing and events.
- ``libs.search_index``: search index abstraction and the OpenSearch backend.
- ``libs.dataset_api``: async client for the Dataset API.

Notes:
- Avoid service-specific logic; keep modules cohesive and broadly useful.
"""
