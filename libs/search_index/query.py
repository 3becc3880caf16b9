"""Search engine query construction."""

from typing import Any, Dict

# Private-use delimiters; they cannot occur in option labels or codes.
HIGHLIGHT_START_TAG = "\u0001S"
HIGHLIGHT_END_TAG = "\u0001E"

SEARCHABLE_FIELDS = ("label", "code")


def build_search_query(term: str, limit: int, offset: int) -> Dict[str, Any]:
    """Build the request body for a dimension option search.

    The term is matched against ``label`` or ``code`` (either counts), both
    fields are highlighted with the private-use tags, and results are sorted
    by relevance only.
    """
    return {
        "from": offset,
        "size": limit,
        "highlight": {
            "pre_tags": [HIGHLIGHT_START_TAG],
            "post_tags": [HIGHLIGHT_END_TAG],
            "fields": {field: {} for field in SEARCHABLE_FIELDS},
        },
        "query": {
            "bool": {
                "should": [{"match": {field: term}} for field in SEARCHABLE_FIELDS],
            },
        },
        "sort": [{"_score": {"order": "desc"}}],
    }


def index_name(instance_id: str, dimension: str) -> str:
    """Name of the search index for one dimension of an instance."""
    return f"{instance_id}_{dimension}"
