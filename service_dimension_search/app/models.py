"""Request and response models for the dimension search API."""

import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from libs.common.errors import (
    EmptySearchTermError,
    MaximumOffsetReachedError,
    ParsingQueryParametersError,
)

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0

_INTEGER = re.compile(r"\+?[0-9]+")


class SearchQuery(BaseModel):
    """A dimension option search, as received."""

    model_config = ConfigDict(frozen=True)

    dataset_id: str
    edition: str
    version: str
    dimension: str
    term: str = ""
    requested_limit: Optional[str] = None
    requested_offset: Optional[str] = None


class PageVariables(BaseModel):
    """Paging for one search request.

    After ``validate_query_parameters`` succeeds,
    ``offset < default_max_results`` and
    ``offset + limit <= default_max_results``.
    """

    default_max_results: int
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET

    def validate_query_parameters(self, term: str) -> None:
        """Validate the term and paging, reducing ``limit`` if needed."""
        if term == "":
            raise EmptySearchTermError()

        if self.offset >= self.default_max_results:
            raise MaximumOffsetReachedError(self.default_max_results)

        if self.offset + self.limit > self.default_max_results:
            self.limit = self.default_max_results - self.offset


def _parse_non_negative(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    if not _INTEGER.fullmatch(value):
        raise ParsingQueryParametersError()
    return int(value)


def parse_page_parameters(
    requested_limit: Optional[str],
    requested_offset: Optional[str],
) -> Tuple[int, int]:
    """Parse raw ``limit``/``offset`` query values, applying defaults."""
    limit = _parse_non_negative(requested_limit, DEFAULT_LIMIT)
    offset = _parse_non_negative(requested_offset, DEFAULT_OFFSET)
    return limit, offset


class Snippet(BaseModel):
    """Offsets of one matched substring in the untagged value."""

    start: int
    end: int


class Matches(BaseModel):
    """Matched substrings per searchable field."""

    code: List[Snippet] = Field(default_factory=list)
    label: List[Snippet] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A dimension option in the search response.

    ``url`` holds the stored link while the result is assembled and is never
    serialized; clients get ``dimension_option_url``.
    """

    code: str
    url: str = Field(default="", exclude=True)
    dimension_option_url: str = ""
    has_data: bool = False
    label: str = ""
    matches: Matches = Field(default_factory=Matches)
    number_of_children: int = 0


class SearchResults(BaseModel):
    """A page of search results."""

    model_config = ConfigDict(populate_by_name=True)

    count: int = 0
    items: List[SearchResult] = Field(default_factory=list)
    limit: int
    offset: int
    total_count: int = Field(default=0, alias="totalcount")
