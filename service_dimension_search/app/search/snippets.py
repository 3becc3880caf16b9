"""Highlight fragment to snippet offset extraction.

The engine wraps every matched substring of a highlighted field in the
private-use tags from ``libs.search_index.query``. Clients receive the plain
value plus ``(start, end)`` offsets instead of the tagged text, so the tags
never leave the service.

The offsets are the established public contract and must stay as they are:
``start`` is one-based and ``end`` is the one-based position of the last
matched character, both relative to the untagged value. Only the first
fragment of each field is used, and a start tag without a closing tag ends
extraction silently.
"""

from typing import List, Sequence

import structlog

from libs.search_index.query import HIGHLIGHT_END_TAG, HIGHLIGHT_START_TAG

from ..models import Snippet

logger = structlog.get_logger("search_service.snippets")

TAG_LENGTH = len(HIGHLIGHT_START_TAG)


def extract_fragment_snippets(fragment: str) -> List[Snippet]:
    """Extract snippets from one highlighted fragment."""
    snippets: List[Snippet] = []
    remaining = fragment
    prev_end = 0

    while True:
        start = prev_end + remaining.find(HIGHLIGHT_START_TAG) + 1

        end_index = remaining.find(HIGHLIGHT_END_TAG)
        if end_index == -1:
            break

        # Both tags of this match are still in ``remaining``.
        end = prev_end + end_index - TAG_LENGTH

        snippets.append(Snippet(start=start, end=end))
        logger.debug("Added snippet", start=start, end=end)

        prev_end = end
        remaining = remaining[end_index + TAG_LENGTH:]

    return snippets


def extract_snippets(fragments: Sequence[str]) -> List[Snippet]:
    """Extract snippets from the first of a field's highlighted fragments."""
    if not fragments:
        return []
    return extract_fragment_snippets(fragments[0])
