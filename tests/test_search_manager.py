"""Tests for the search manager."""

import pytest

from libs.common.config import SearchConfig
from libs.common.errors import (
    EmptySearchTermError,
    InternalServerError,
    MaximumOffsetReachedError,
    VersionNotFoundError,
)
from libs.search_index.opensearch import transform_response
from service_dimension_search.app.models import SearchQuery
from service_dimension_search.app.runtime.output_queue import SearchOutputQueue
from service_dimension_search.app.search.search_manager import SearchManager

from .mocks import INSTANCE_ID, FakeDatasetAPI, FakePublisher, FakeSearchIndex, engine_response_body


def make_manager(dataset_api=None, search_index=None, maxsize=100, **config_overrides):
    config = SearchConfig(**config_overrides)
    output_queue = SearchOutputQueue(FakePublisher(), topic=config.hierarchy_built_topic, maxsize=maxsize, enqueue_timeout=0.01)
    return SearchManager(
        config,
        dataset_api or FakeDatasetAPI(),
        search_index or FakeSearchIndex(),
        output_queue,
    )


def make_query(term="something", limit=None, offset=None):
    return SearchQuery(
        dataset_id="cpih01",
        edition="time-series",
        version="1",
        dimension="aggregate",
        term=term,
        requested_limit=limit,
        requested_offset=offset,
    )


@pytest.mark.asyncio
async def test_search_transforms_hits():
    """Test hits become results with links and snippets."""
    manager = make_manager()

    results = await manager.search(make_query(), caller_present=False)

    assert results.count == 2
    assert results.total_count == 2
    assert results.limit == 50
    assert results.offset == 0

    first, second = results.items
    assert first.code == "frs34g5t98hdd"
    assert first.url == ""
    assert first.dimension_option_url == "http://localhost:8080/testing/1"
    assert first.has_data is True
    assert first.number_of_children == 3
    assert [(s.start, s.end) for s in first.matches.code] == [(1, 13)]
    assert [(s.start, s.end) for s in first.matches.label] == [(1, 9), (13, 19)]

    assert second.matches.code == []
    assert [(s.start, s.end) for s in second.matches.label] == [(1, 9), (19, 25)]


@pytest.mark.asyncio
async def test_count_is_page_size_not_engine_total():
    """Test count reflects the returned items and total the engine total."""
    response = transform_response(engine_response_body(total={"value": 120, "relation": "eq"}))
    manager = make_manager(search_index=FakeSearchIndex(response=response))

    results = await manager.search(make_query(), caller_present=False)

    assert results.count == 2
    assert results.total_count == 120


@pytest.mark.asyncio
async def test_search_queries_instance_index():
    """Test the resolved instance and clamped page reach the engine."""
    search_index = FakeSearchIndex()
    manager = make_manager(search_index=search_index, max_search_results_offset=100)

    results = await manager.search(make_query(limit="30", offset="80"), caller_present=False)

    assert search_index.queries == [{
        "instance_id": INSTANCE_ID,
        "dimension": "aggregate",
        "term": "something",
        "limit": 20,
        "offset": 80,
    }]
    assert results.limit == 20


@pytest.mark.asyncio
async def test_version_not_found_stops_pipeline():
    """Test nothing reaches the engine when the version is unknown."""
    search_index = FakeSearchIndex()
    manager = make_manager(dataset_api=FakeDatasetAPI(error=VersionNotFoundError()), search_index=search_index)

    with pytest.raises(VersionNotFoundError):
        await manager.search(make_query(), caller_present=True)
    assert search_index.queries == []


@pytest.mark.asyncio
async def test_invalid_paging_stops_pipeline():
    """Test paging errors are raised before the engine is called."""
    search_index = FakeSearchIndex()
    manager = make_manager(search_index=search_index)

    with pytest.raises(EmptySearchTermError):
        await manager.search(make_query(term=""), caller_present=False)
    with pytest.raises(MaximumOffsetReachedError):
        await manager.search(make_query(offset="1000"), caller_present=False)
    assert search_index.queries == []


@pytest.mark.asyncio
async def test_search_rewrites_links():
    """Test links move onto the forwarded host when rewriting is enabled."""
    manager = make_manager(enable_url_rewriting=True)

    results = await manager.search(
        make_query(),
        caller_present=False,
        headers={"X-Forwarded-Host": "api.example.com", "X-Forwarded-Path-Prefix": "v1"},
    )

    assert results.items[0].dimension_option_url == "https://api.example.com/v1/testing/1"


@pytest.mark.asyncio
async def test_create_index_queues_request():
    """Test an index build is queued."""
    manager = make_manager()
    await manager.initialize()

    await manager.create_index(INSTANCE_ID, "aggregate")
    await manager.cleanup()

    published = manager.output_queue.publisher.published
    assert len(published) == 1
    assert published[0]["topic"] == "hierarchy-built"


@pytest.mark.asyncio
async def test_create_index_queue_full():
    """Test a full queue is an internal error."""
    manager = make_manager(maxsize=1)

    # Pump not started; the channel fills after one request.
    await manager.create_index(INSTANCE_ID, "aggregate")
    with pytest.raises(InternalServerError):
        await manager.create_index(INSTANCE_ID, "geography")


@pytest.mark.asyncio
async def test_delete_index():
    """Test deletion goes to the search index."""
    search_index = FakeSearchIndex()
    manager = make_manager(search_index=search_index)

    assert await manager.delete_index(INSTANCE_ID, "aggregate") == 200
    assert search_index.deleted == [f"{INSTANCE_ID}_aggregate"]


@pytest.mark.asyncio
async def test_health_check():
    """Test every dependency is checked."""
    search_index = FakeSearchIndex()
    manager = make_manager(search_index=search_index)
    await manager.initialize()

    checks = await manager.health_check()
    assert checks == {"dataset_api": True, "search_index": True, "message_bus": True, "output_queue": True}

    search_index.healthy = False
    assert (await manager.health_check())["search_index"] is False
    await manager.cleanup()


@pytest.mark.asyncio
async def test_cleanup_closes_clients():
    """Test shutdown stops the pump and closes every client."""
    dataset_api = FakeDatasetAPI()
    search_index = FakeSearchIndex()
    manager = make_manager(dataset_api=dataset_api, search_index=search_index)
    await manager.initialize()

    await manager.cleanup()

    assert not manager.output_queue.is_running
    assert manager.output_queue.publisher.closed
    assert search_index.closed
    assert dataset_api.closed
