"""Tests for search query construction."""

import json

from libs.search_index.query import (
    HIGHLIGHT_END_TAG,
    HIGHLIGHT_START_TAG,
    build_search_query,
    index_name,
)


def test_paging_and_sort():
    """Test paging maps to from/size and results sort by score."""
    body = build_search_query("housing", limit=20, offset=40)
    assert body["from"] == 40
    assert body["size"] == 20
    assert body["sort"] == [{"_score": {"order": "desc"}}]


def test_term_matches_label_or_code():
    """Test the term is matched against either searchable field."""
    body = build_search_query("K02000001", limit=10, offset=0)
    assert body["query"] == {
        "bool": {
            "should": [
                {"match": {"label": "K02000001"}},
                {"match": {"code": "K02000001"}},
            ]
        }
    }


def test_highlight_tags():
    """Test both fields are highlighted with the private-use tags."""
    highlight = build_search_query("housing", limit=10, offset=0)["highlight"]
    assert highlight["pre_tags"] == [HIGHLIGHT_START_TAG]
    assert highlight["post_tags"] == [HIGHLIGHT_END_TAG]
    assert set(highlight["fields"]) == {"label", "code"}


def test_query_is_json_serializable():
    """Test the body survives JSON encoding unchanged."""
    body = build_search_query("water", limit=5, offset=0)
    assert json.loads(json.dumps(body)) == body


def test_index_name():
    """Test index addressing by instance and dimension."""
    assert index_name("instance-1", "geography") == "instance-1_geography"
