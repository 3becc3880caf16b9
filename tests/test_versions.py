"""Tests for dataset version resolution."""

import pytest

from libs.common.config import Subnet
from libs.common.errors import (
    DatasetNotFoundError,
    EditionNotFoundError,
    InternalServerError,
    UnexpectedStatusCodeError,
    VersionNotFoundError,
)
from libs.dataset_api.client import DatasetAPIError
from service_dimension_search.app.search.versions import VersionResolver, service_token_for

from .mocks import INSTANCE_ID, FakeDatasetAPI

TOKEN = "service-token"


@pytest.mark.parametrize("subnet, caller_present, expected", [
    (Subnet.PRIVATE, True, TOKEN),
    (Subnet.PRIVATE, False, None),
    (Subnet.PUBLIC, True, None),
    (Subnet.PUBLIC, False, None),
])
def test_service_token_for(subnet, caller_present, expected):
    """Test the credential is only forwarded for callers on private deployments."""
    assert service_token_for(subnet, caller_present, TOKEN) == expected


@pytest.mark.asyncio
async def test_resolve_private_with_caller():
    """Test a private deployment forwards the token for a caller."""
    dataset_api = FakeDatasetAPI()
    resolver = VersionResolver(dataset_api, Subnet.PRIVATE, TOKEN)

    instance_id = await resolver.resolve("cpih01", "time-series", "1", caller_present=True)

    assert instance_id == INSTANCE_ID
    assert dataset_api.calls[0]["service_auth_token"] == TOKEN


@pytest.mark.asyncio
async def test_resolve_public_never_forwards():
    """Test a public deployment calls the registry unauthenticated."""
    dataset_api = FakeDatasetAPI()
    resolver = VersionResolver(dataset_api, Subnet.PUBLIC, TOKEN)

    await resolver.resolve("cpih01", "time-series", "1", caller_present=True)

    assert dataset_api.calls[0]["service_auth_token"] is None


@pytest.mark.parametrize("error_class", [DatasetNotFoundError, EditionNotFoundError, VersionNotFoundError])
@pytest.mark.asyncio
async def test_resolve_not_found_passes_through(error_class):
    """Test not-found errors keep their kind."""
    resolver = VersionResolver(FakeDatasetAPI(error=error_class()), Subnet.PUBLIC, TOKEN)

    with pytest.raises(error_class):
        await resolver.resolve("cpih01", "time-series", "1", caller_present=False)


@pytest.mark.parametrize("error", [
    DatasetAPIError("connection refused"),
    UnexpectedStatusCodeError(upstream_status=502),
    RuntimeError("boom"),
])
@pytest.mark.asyncio
async def test_resolve_other_failures_are_internal(error):
    """Test every other failure becomes a generic internal error."""
    resolver = VersionResolver(FakeDatasetAPI(error=error), Subnet.PUBLIC, TOKEN)

    with pytest.raises(InternalServerError) as exc_info:
        await resolver.resolve("cpih01", "time-series", "1", caller_present=False)
    assert type(exc_info.value) is InternalServerError
