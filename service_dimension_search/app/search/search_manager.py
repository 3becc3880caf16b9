"""Search manager for dimension option search and index lifecycle.

Drives one search request through
``resolve version -> validate paging -> query index -> transform results``.
Every step raises a typed ``SearchAPIError`` on failure, so the pipeline
stops at the first failed step and the API layer maps the error to a
response. Nothing request-scoped is stored on the manager; the only shared
state is the downstream clients, each safe for concurrent use.
"""

from typing import Any, Dict, Mapping, Optional

import structlog

from libs.common.config import SearchConfig
from libs.common.errors import InternalServerError
from libs.common.events import create_event_publisher
from libs.common.metrics import MetricsCollector
from libs.common.tracing import SearchTracer
from libs.dataset_api.client import DatasetAPIClient
from libs.search_index.base import SearchIndex
from libs.search_index.factory import create_search_index_from_config
from libs.search_index.models import EngineResponse

from ..models import (
    Matches,
    PageVariables,
    SearchQuery,
    SearchResult,
    SearchResults,
    parse_page_parameters,
)
from ..runtime.output_queue import OutputQueueError, SearchOutputQueue
from .links import external_base_url, rewrite_link
from .snippets import extract_snippets
from .versions import VersionResolver

logger = structlog.get_logger("search_service.search_manager")


class SearchManager:
    """Coordinates the dimension search pipeline.

    Responsibilities
    - Resolve the public version to its instance via the Dataset API
    - Validate and clamp paging
    - Query the instance's dimension index and shape the response
    - Queue index builds and delete indexes for the private endpoints
    """

    def __init__(
        self,
        config: SearchConfig,
        dataset_api: DatasetAPIClient,
        search_index: SearchIndex,
        output_queue: SearchOutputQueue,
    ):
        self.config = config
        self.dataset_api = dataset_api
        self.search_index = search_index
        self.output_queue = output_queue
        self.version_resolver = VersionResolver(
            dataset_api,
            subnet=config.subnet,
            service_auth_token=config.service_auth_token,
        )
        self.tracer = SearchTracer(config.otel_service_name)

    async def initialize(self):
        """Start the output queue pump."""
        try:
            await self.output_queue.start()
            logger.info(
                "Search manager initialized successfully",
                subnet=self.config.subnet.value,
                url_rewriting=self.config.enable_url_rewriting
            )
        except Exception as e:
            logger.error("Failed to initialize search manager", error=str(e))
            raise

    async def search(
        self,
        query: SearchQuery,
        caller_present: bool,
        headers: Optional[Mapping[str, str]] = None
    ) -> SearchResults:
        """Search the options of a dimension of a dataset version."""
        log_data = {
            "dataset_id": query.dataset_id,
            "edition": query.edition,
            "version": query.version,
            "dimension": query.dimension,
            "term": query.term,
        }
        logger.info("Incoming search request", caller_present=caller_present, **log_data)

        with self.tracer.trace_search_query(query.dataset_id, query.dimension, term=query.term):
            instance_id = await self.version_resolver.resolve(
                query.dataset_id,
                query.edition,
                query.version,
                caller_present,
            )

            limit, offset = parse_page_parameters(query.requested_limit, query.requested_offset)
            page = PageVariables(
                default_max_results=self.config.max_search_results_offset,
                limit=limit,
                offset=offset,
            )
            page.validate_query_parameters(query.term)

            logger.info(
                "Searching dimension index",
                instance_id=instance_id,
                limit=page.limit,
                offset=page.offset,
                **log_data
            )
            response = await self.search_index.query(
                instance_id,
                query.dimension,
                query.term,
                page.limit,
                page.offset,
            )

            results = self._transform(response, page, headers or {})

        logger.info(
            "Search completed",
            count=results.count,
            total_count=results.total_count,
            **log_data
        )
        return results

    def _transform(
        self,
        response: EngineResponse,
        page: PageVariables,
        headers: Mapping[str, str]
    ) -> SearchResults:
        base_url = None
        if self.config.enable_url_rewriting:
            base_url = external_base_url(headers, self.config.search_api_url)

        items = []
        for hit in response.hits.hit_list:
            option = hit.source
            result = SearchResult(
                code=option.code,
                url=option.url,
                has_data=option.has_data,
                label=option.label,
                number_of_children=option.number_of_children,
            )

            link = result.url
            if base_url is not None:
                link = rewrite_link(link, base_url)
            result.dimension_option_url = link
            result.url = ""

            result.matches = Matches(
                code=extract_snippets(hit.highlight.code),
                label=extract_snippets(hit.highlight.label),
            )
            items.append(result)

        # count always reflects the materialized page
        return SearchResults(
            count=len(items),
            items=items,
            limit=page.limit,
            offset=page.offset,
            total_count=response.hits.total,
        )

    async def create_index(self, instance_id: str, dimension: str) -> None:
        """Queue a request to build the index of ``instance_id``/``dimension``."""
        with self.tracer.trace_index_operation("create", instance_id, dimension):
            try:
                await self.output_queue.queue(dimension, instance_id)
            except OutputQueueError as e:
                logger.error(
                    "Failed to queue search index build",
                    instance_id=instance_id,
                    dimension=dimension,
                    error=str(e)
                )
                raise InternalServerError() from e

        logger.info("Search index build requested", instance_id=instance_id, dimension=dimension)

    async def delete_index(self, instance_id: str, dimension: str) -> int:
        """Delete the index of ``instance_id``/``dimension``."""
        with self.tracer.trace_index_operation("delete", instance_id, dimension):
            status = await self.search_index.delete_index(instance_id, dimension)

        logger.info("Search index deleted", instance_id=instance_id, dimension=dimension, status=status)
        return status

    async def health_check(self) -> Dict[str, Any]:
        """Check every dependency; returns a check name to result mapping."""
        checks: Dict[str, Any] = {}

        for name, check in (
            ("dataset_api", self.dataset_api.health_check),
            ("search_index", self.search_index.health_check),
            ("message_bus", self.output_queue.publisher.health_check),
        ):
            try:
                checks[name] = bool(await check())
            except Exception as e:
                logger.error("Health check failed", check=name, error=str(e))
                checks[name] = False

        checks["output_queue"] = self.output_queue.is_running
        return checks

    async def cleanup(self):
        """Drain the output queue and close the downstream clients."""
        try:
            await self.output_queue.stop(drain_timeout=self.config.graceful_shutdown_timeout)
            await self.output_queue.publisher.close()
            await self.search_index.close()
            await self.dataset_api.close()
            logger.info("Search manager cleanup completed")
        except Exception as e:
            logger.error("Search manager cleanup failed", error=str(e))


def create_search_manager(
    config: SearchConfig,
    metrics_collector: Optional[MetricsCollector] = None
) -> SearchManager:
    """Build a search manager with clients for the configured services."""
    dataset_api = DatasetAPIClient(
        config.dataset_api_url,
        timeout=config.request_timeout,
        max_retries=config.request_max_retries,
    )
    search_index = create_search_index_from_config(config)
    output_queue = SearchOutputQueue(
        create_event_publisher(config.redis_url, config.event_channel_prefix),
        topic=config.hierarchy_built_topic,
        maxsize=config.output_queue_size,
        enqueue_timeout=config.output_queue_timeout,
        metrics_collector=metrics_collector,
    )
    return SearchManager(config, dataset_api, search_index, output_queue)
