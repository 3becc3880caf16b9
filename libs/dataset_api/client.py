"""HTTP client for the Dataset API.

The Dataset API is the registry of datasets, editions, and versions. The
search service only needs ``GET /datasets/{id}/editions/{edition}/versions/{version}``
to turn a public version reference into the instance id that names its
search indexes.

Not-found responses are reported by the Dataset API as plain-text bodies
(``dataset not found``, ``edition not found``, ``version not found``); the
client turns them into the matching typed errors so callers never inspect
error text.
"""

from typing import Optional
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from libs.common.errors import (
    DatasetNotFoundError,
    EditionNotFoundError,
    UnexpectedStatusCodeError,
    VersionNotFoundError,
)

logger = structlog.get_logger("dataset_api.client")

# Checked in order; the most specific resource wins.
NOT_FOUND_ERRORS = (
    ("version not found", VersionNotFoundError),
    ("edition not found", EditionNotFoundError),
    ("dataset not found", DatasetNotFoundError),
)


class DatasetAPIError(Exception):
    """The Dataset API could not be reached or gave an unusable answer."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VersionDocument(BaseModel):
    """The subset of a version resource the search service relies on."""

    model_config = ConfigDict(extra="allow")

    id: str
    dataset_id: Optional[str] = None
    edition: Optional[str] = None
    version: Optional[int] = None
    state: Optional[str] = None


def classify_error(status_code: int, body: str) -> Exception:
    """Map a failed Dataset API response to a typed error."""
    text = body.lower()
    for marker, error_class in NOT_FOUND_ERRORS:
        if marker in text:
            return error_class()
    return UnexpectedStatusCodeError(upstream_status=status_code)


class DatasetAPIClient:
    """Async client for the Dataset API.

    One instance is shared by all requests; ``httpx.AsyncClient`` pools
    connections and is safe for concurrent use. Connection failures are
    retried by the transport, nothing else is.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            transport=httpx.AsyncHTTPTransport(retries=max_retries),
        )

    async def get_version(
        self,
        dataset_id: str,
        edition: str,
        version: str,
        service_auth_token: Optional[str] = None,
    ) -> VersionDocument:
        """Fetch a version document.

        ``service_auth_token`` is only sent when given; without it the Dataset
        API returns published versions only.

        Raises
        - ``DatasetNotFoundError`` / ``EditionNotFoundError`` /
          ``VersionNotFoundError`` for the corresponding 404s
        - ``UnexpectedStatusCodeError`` for any other non-200 answer
        - ``DatasetAPIError`` when the API cannot be reached or the body is unusable
        """
        url = (
            f"{self.base_url}/datasets/{quote(dataset_id, safe='')}"
            f"/editions/{quote(edition, safe='')}"
            f"/versions/{quote(version, safe='')}"
        )
        log_data = {
            "url": url,
            "dataset_id": dataset_id,
            "edition": edition,
            "version": version,
            "authenticated": bool(service_auth_token),
        }

        headers = {}
        if service_auth_token:
            headers["Authorization"] = f"Bearer {service_auth_token}"

        try:
            response = await self.http_client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Failed to call dataset api", error=str(e), **log_data)
            raise DatasetAPIError(f"failed to call dataset api: {e}") from e

        if response.status_code != httpx.codes.OK:
            error = classify_error(response.status_code, response.text)
            logger.warning(
                "Dataset api returned an error",
                status_code=response.status_code,
                error_type=type(error).__name__,
                **log_data
            )
            raise error

        try:
            document = VersionDocument.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Failed to parse version document", error=str(e), **log_data)
            raise DatasetAPIError("failed to parse version document", response.status_code) from e

        logger.info("Version document retrieved", instance_id=document.id, **log_data)
        return document

    async def health_check(self) -> bool:
        """Check the Dataset API health endpoint answers 2xx."""
        try:
            response = await self.http_client.get(f"{self.base_url}/health")
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning("Dataset api health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.http_client.aclose()
