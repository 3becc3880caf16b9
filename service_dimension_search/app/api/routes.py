"""API routes for the dimension search service."""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
import structlog

from libs.common.auth import CallerIdentity, create_caller_dependency, require_caller
from libs.common.config import SearchConfig
from libs.common.errors import SearchAPIError
from libs.common.metrics import MetricsCollector

from ..models import SearchQuery, SearchResults
from ..search.search_manager import SearchManager
from .errors import outcome_of, to_http_exception

logger = structlog.get_logger("search_service.api")

SEARCH_PATH = "/search/datasets/{dataset_id}/editions/{edition}/versions/{version}/dimensions/{dimension}"
INSTANCE_PATH = "/search/instances/{instance_id}/dimensions/{dimension}"


def get_search_manager(request: Request) -> SearchManager:
    """Get search manager from application state."""
    return request.app.state.search_manager


def get_metrics(request: Request) -> MetricsCollector:
    """Get metrics collector from application state."""
    return request.app.state.metrics_collector


def create_router(config: SearchConfig) -> APIRouter:
    """Create the API router.

    The instance endpoints are registered only when private endpoints are
    enabled; on public deployments those paths do not exist.
    """
    router = APIRouter()
    get_caller = create_caller_dependency(config)

    @router.get(SEARCH_PATH, response_model=SearchResults)
    async def search(
        request: Request,
        dataset_id: str,
        edition: str,
        version: str,
        dimension: str,
        q: str = Query("", description="Search term"),
        limit: Optional[str] = Query(None, description="Maximum number of results"),
        offset: Optional[str] = Query(None, description="Number of results to skip"),
        caller: Optional[CallerIdentity] = Depends(get_caller),
        search_manager: SearchManager = Depends(get_search_manager),
        metrics_collector: MetricsCollector = Depends(get_metrics)
    ):
        """Search the options of a dataset version dimension."""
        start_time = time.time()
        query = SearchQuery(
            dataset_id=dataset_id,
            edition=edition,
            version=version,
            dimension=dimension,
            term=q,
            requested_limit=limit,
            requested_offset=offset,
        )

        try:
            results = await search_manager.search(
                query,
                caller_present=caller is not None,
                headers=request.headers,
            )
        except SearchAPIError as e:
            metrics_collector.record_search(outcome_of(e), time.time() - start_time)
            logger.warning(
                "Search request failed",
                dataset_id=dataset_id,
                dimension=dimension,
                error=e.message,
                status=e.status_code
            )
            raise to_http_exception(e)
        except Exception as e:
            metrics_collector.record_search(outcome_of(e), time.time() - start_time)
            logger.error("Search request failed", dataset_id=dataset_id, dimension=dimension, error=str(e))
            raise to_http_exception(e)

        metrics_collector.record_search("success", time.time() - start_time)
        return results

    if not config.enable_private_endpoints:
        return router

    @router.put(INSTANCE_PATH)
    async def create_search_index(
        instance_id: str,
        dimension: str,
        caller: Optional[CallerIdentity] = Depends(get_caller),
        search_manager: SearchManager = Depends(get_search_manager),
        metrics_collector: MetricsCollector = Depends(get_metrics)
    ):
        """Request a (re)build of a dimension search index."""
        try:
            require_caller(caller)
            await search_manager.create_index(instance_id, dimension)
        except Exception as e:
            metrics_collector.record_index_operation("create", outcome_of(e))
            logger.warning("Create search index failed", instance_id=instance_id, dimension=dimension, error=str(e))
            raise to_http_exception(e)

        metrics_collector.record_index_operation("create", "success")
        return Response(status_code=200)

    @router.delete(INSTANCE_PATH)
    async def delete_search_index(
        instance_id: str,
        dimension: str,
        caller: Optional[CallerIdentity] = Depends(get_caller),
        search_manager: SearchManager = Depends(get_search_manager),
        metrics_collector: MetricsCollector = Depends(get_metrics)
    ):
        """Delete a dimension search index."""
        try:
            require_caller(caller)
            await search_manager.delete_index(instance_id, dimension)
        except Exception as e:
            metrics_collector.record_index_operation("delete", outcome_of(e))
            logger.warning("Delete search index failed", instance_id=instance_id, dimension=dimension, error=str(e))
            raise to_http_exception(e)

        metrics_collector.record_index_operation("delete", "success")
        return Response(status_code=200)

    return router
