"""Base search index interface.

Defines the contract the search service depends on, independent of the
backing engine client. Implementations raise the typed errors from
``libs.common.errors``:

- ``IndexNotFoundError`` when querying an index that does not exist
- ``DeleteIndexNotFoundError`` when deleting an index that does not exist
- ``MarshallingQueryError`` / ``UnmarshallingJSONError`` on codec failures
- ``InternalServerError`` for any other failure

No retries happen at this level; a failed call surfaces immediately.
"""

from abc import ABC, abstractmethod

from .models import EngineResponse


class SearchIndex(ABC):
    """Abstract base class for dimension search indexes."""

    @abstractmethod
    async def query(
        self,
        instance_id: str,
        dimension: str,
        term: str,
        limit: int,
        offset: int
    ) -> EngineResponse:
        """Run a dimension option search against ``{instance_id}_{dimension}``."""
        pass

    @abstractmethod
    async def delete_index(self, instance_id: str, dimension: str) -> int:
        """Delete the index; returns the engine's status code."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the engine is reachable."""
        pass

    async def close(self) -> None:
        """Release client resources."""
        pass
