"""Search engine response models.

Both Elasticsearch 6 and OpenSearch/Elasticsearch 7+ are supported. They
differ in how ``hits.total`` is encoded: a bare integer in 6, an object
``{"value": n, "relation": "eq"}`` from 7 onwards. ``Hits.total`` accepts
either and always holds an integer.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DimensionOption(BaseModel):
    """A dimension option document as stored in the search index."""

    model_config = ConfigDict(extra="ignore")

    code: str = ""
    url: str = ""
    has_data: bool = False
    label: str = ""
    number_of_children: int = 0


class Highlight(BaseModel):
    """Highlighted fragments per field, wrapped in the highlight tags."""

    code: List[str] = Field(default_factory=list)
    label: List[str] = Field(default_factory=list)


class HitEntry(BaseModel):
    """One search hit."""

    model_config = ConfigDict(populate_by_name=True)

    score: Optional[float] = Field(default=None, alias="_score")
    highlight: Highlight = Field(default_factory=Highlight)
    source: DimensionOption = Field(default_factory=DimensionOption, alias="_source")


class Hits(BaseModel):
    """The ``hits`` section of a search response."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    hit_list: List[HitEntry] = Field(default_factory=list, alias="hits")

    @field_validator("total", mode="before")
    @classmethod
    def normalize_total(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("value", 0)
        return value


class EngineResponse(BaseModel):
    """A search response normalized across engine versions."""

    hits: Hits = Field(default_factory=Hits)
