"""Tests for the OpenSearch search index adapter."""

import json

import pytest
from opensearchpy import exceptions

from libs.common.errors import (
    DeleteIndexNotFoundError,
    IndexNotFoundError,
    InternalServerError,
    MarshallingQueryError,
    UnmarshallingJSONError,
)
from libs.common.config import SearchConfig
from libs.search_index.factory import create_search_index_from_config
from libs.search_index.opensearch import OpenSearchSearchIndex, transform_response

from .mocks import INSTANCE_ID, FakeOpenSearchClient, engine_response_body


def make_index(**kwargs):
    client = FakeOpenSearchClient(**kwargs)
    return OpenSearchSearchIndex(["http://localhost:10200"], client=client), client


def test_transform_response_integer_total():
    """Test an Elasticsearch 6 style total."""
    response = transform_response(engine_response_body(total=7))
    assert response.hits.total == 7


def test_transform_response_object_total():
    """Test an Elasticsearch 7+ style total."""
    response = transform_response(engine_response_body(total={"value": 7, "relation": "eq"}))
    assert response.hits.total == 7


def test_transform_response_from_bytes():
    """Test raw response bodies are decoded."""
    response = transform_response(json.dumps(engine_response_body()).encode("utf-8"))

    first = response.hits.hit_list[0]
    assert first.score == 1.8
    assert first.source.code == "frs34g5t98hdd"
    assert first.source.has_data is True
    assert first.source.number_of_children == 3
    assert first.highlight.label == ["\u0001Ssomething\u0001Eand\u0001Ssomeone\u0001E"]

    second = response.hits.hit_list[1]
    assert second.highlight.code == []


@pytest.mark.parametrize("body", [b"not json", "{\"hits\": {\"total\": \"many\"}}"])
def test_transform_response_invalid(body):
    """Test unreadable bodies are unmarshalling errors."""
    with pytest.raises(UnmarshallingJSONError):
        transform_response(body)


@pytest.mark.asyncio
async def test_query():
    """Test a search is sent to the dimension index."""
    index, client = make_index(response=engine_response_body(total={"value": 2, "relation": "eq"}))

    response = await index.query(INSTANCE_ID, "aggregate", "something", limit=10, offset=5)

    assert response.hits.total == 2
    assert len(response.hits.hit_list) == 2

    request = client.transport.requests[0]
    assert request["method"] == "GET"
    assert request["url"] == f"/{INSTANCE_ID}_aggregate/_search"
    body = json.loads(request["body"])
    assert body["from"] == 5
    assert body["size"] == 10


@pytest.mark.asyncio
async def test_query_index_not_found():
    """Test a missing index is reported as such."""
    error = exceptions.NotFoundError(404, "index_not_found_exception", {})
    index, _ = make_index(query_error=error)

    with pytest.raises(IndexNotFoundError):
        await index.query(INSTANCE_ID, "aggregate", "something", limit=10, offset=0)


@pytest.mark.asyncio
async def test_query_engine_failure():
    """Test other engine failures are internal errors."""
    error = exceptions.TransportError(500, "search_phase_execution_exception", {})
    index, _ = make_index(query_error=error)

    with pytest.raises(InternalServerError) as exc_info:
        await index.query(INSTANCE_ID, "aggregate", "something", limit=10, offset=0)
    assert not isinstance(exc_info.value, IndexNotFoundError)
    assert exc_info.value.upstream_status == 500


@pytest.mark.asyncio
async def test_query_connection_failure():
    """Test an unreachable engine is an internal error."""
    error = exceptions.ConnectionError("N/A", "connection refused", Exception("refused"))
    index, _ = make_index(query_error=error)

    with pytest.raises(InternalServerError) as exc_info:
        await index.query(INSTANCE_ID, "aggregate", "something", limit=10, offset=0)
    assert exc_info.value.upstream_status is None


@pytest.mark.asyncio
async def test_query_marshalling_failure():
    """Test a term that cannot be encoded."""
    index, client = make_index(response=engine_response_body())

    with pytest.raises(MarshallingQueryError):
        await index.query(INSTANCE_ID, "aggregate", object(), limit=10, offset=0)
    assert client.transport.requests == []


@pytest.mark.asyncio
async def test_delete_index():
    """Test the dimension index is deleted."""
    index, client = make_index()

    status = await index.delete_index(INSTANCE_ID, "aggregate")

    assert status == 200
    assert client.indices.deleted == [f"{INSTANCE_ID}_aggregate"]


@pytest.mark.asyncio
async def test_delete_index_not_found():
    """Test deleting a missing index is distinguished from a failure."""
    index, _ = make_index(delete_error=exceptions.NotFoundError(404, "index_not_found_exception", {}))

    with pytest.raises(DeleteIndexNotFoundError):
        await index.delete_index(INSTANCE_ID, "aggregate")


@pytest.mark.asyncio
async def test_delete_index_failure():
    """Test a non-404 delete failure is an internal error."""
    index, _ = make_index(delete_error=exceptions.TransportError(503, "unavailable", {}))

    with pytest.raises(InternalServerError) as exc_info:
        await index.delete_index(INSTANCE_ID, "aggregate")
    assert not isinstance(exc_info.value, DeleteIndexNotFoundError)
    assert exc_info.value.upstream_status == 503


@pytest.mark.asyncio
async def test_health_check_and_close():
    """Test health and shutdown delegate to the client."""
    index, client = make_index()
    assert await index.health_check() is True
    await index.close()
    assert client.closed is True


def test_factory_requires_hosts():
    """Test a search index needs at least one host."""
    with pytest.raises(ValueError):
        create_search_index_from_config(SearchConfig(opensearch_hosts=" , "))
