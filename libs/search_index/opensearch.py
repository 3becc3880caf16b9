"""OpenSearch/Elasticsearch search index implementation."""

import json
from typing import Any, List, Mapping, Optional, Union

import structlog
from opensearchpy import AsyncOpenSearch, exceptions
from pydantic import ValidationError

from libs.common.errors import (
    DeleteIndexNotFoundError,
    IndexNotFoundError,
    InternalServerError,
    MarshallingQueryError,
    UnmarshallingJSONError,
)

from .base import SearchIndex
from .models import EngineResponse
from .query import build_search_query, index_name

logger = structlog.get_logger("search_index.opensearch")


def transform_response(body: Union[bytes, str, Mapping[str, Any]]) -> EngineResponse:
    """Parse a search response body into an ``EngineResponse``.

    Accepts raw bytes/str or an already decoded mapping. ``hits.total`` is
    normalized from either engine encoding.
    """
    if isinstance(body, (bytes, bytearray, str)):
        try:
            body = json.loads(body)
        except ValueError as e:
            logger.error("Unable to parse json body", error=str(e))
            raise UnmarshallingJSONError() from e

    try:
        return EngineResponse.model_validate(body)
    except ValidationError as e:
        logger.error("Search response has an unexpected shape", error=str(e))
        raise UnmarshallingJSONError() from e


class OpenSearchSearchIndex(SearchIndex):
    """Search index backed by an OpenSearch (or Elasticsearch) cluster."""

    def __init__(
        self,
        hosts: List[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = False,
        timeout: float = 10.0,
        client: Optional[AsyncOpenSearch] = None,
    ):
        """Initialize the search index client.

        Args:
            hosts: List of OpenSearch host URLs
            username: OpenSearch username
            password: OpenSearch password
            verify_certs: Whether to verify SSL certificates
            timeout: Per-request timeout in seconds
            client: Pre-built client, mainly for tests
        """
        self.hosts = hosts
        self.client = client or AsyncOpenSearch(
            hosts=hosts,
            http_auth=(username, password) if username and password else None,
            verify_certs=verify_certs,
            use_ssl=hosts[0].startswith("https"),
            timeout=timeout,
            # Retries belong to the caller's policy, not this client.
            max_retries=0,
            retry_on_timeout=False,
        )

    async def query(
        self,
        instance_id: str,
        dimension: str,
        term: str,
        limit: int,
        offset: int
    ) -> EngineResponse:
        """Search the dimension index for ``term``."""
        path = f"/{index_name(instance_id, dimension)}/_search"
        log_data = {"term": term, "path": path}

        logger.info("Searching index", **log_data)

        try:
            body = json.dumps(build_search_query(term, limit, offset))
        except (TypeError, ValueError) as e:
            logger.error("Failed to marshal search query", error=str(e), **log_data)
            raise MarshallingQueryError() from e

        try:
            response = await self.client.transport.perform_request("GET", path, body=body)
        except exceptions.NotFoundError as e:
            logger.error("Search index not found", status=404, **log_data)
            raise IndexNotFoundError() from e
        except exceptions.SerializationError as e:
            logger.error("Unable to parse json body", error=str(e), **log_data)
            raise UnmarshallingJSONError() from e
        except exceptions.TransportError as e:
            logger.error(
                "Failed to call search engine",
                status=e.status_code,
                error=str(e),
                **log_data
            )
            status = e.status_code if isinstance(e.status_code, int) else None
            raise InternalServerError(upstream_status=status) from e

        result = transform_response(response)

        logger.info(
            "Search results",
            total=result.hits.total,
            hits=len(result.hits.hit_list),
            **log_data
        )
        return result

    async def delete_index(self, instance_id: str, dimension: str) -> int:
        """Delete the dimension index."""
        index = index_name(instance_id, dimension)

        try:
            await self.client.indices.delete(index=index)
        except exceptions.NotFoundError as e:
            logger.warning("Search index not found for deletion", index=index)
            raise DeleteIndexNotFoundError() from e
        except exceptions.TransportError as e:
            logger.error(
                "Failed to delete search index",
                index=index,
                status=e.status_code,
                error=str(e)
            )
            status = e.status_code if isinstance(e.status_code, int) else None
            raise InternalServerError(upstream_status=status) from e

        logger.info("Search index deleted", index=index)
        return 200

    async def health_check(self) -> bool:
        """Check if the cluster answers a ping."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning("Search engine health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the OpenSearch client connection."""
        try:
            await self.client.close()
            logger.info("OpenSearch client connection closed")
        except Exception as e:
            logger.error("Failed to close OpenSearch client", error=str(e))
