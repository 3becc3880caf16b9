"""Resolution of a public dataset version to its instance id.

This is the trust boundary of the search API. Whether unpublished versions
are visible is enforced by the Dataset API; the resolver's only decision is
whether to present the service credential, which it does only on private
deployments and only for requests that carry a caller identity.
"""

from typing import Optional

import structlog

from libs.common.config import Subnet
from libs.common.errors import (
    DatasetNotFoundError,
    EditionNotFoundError,
    InternalServerError,
    VersionNotFoundError,
)
from libs.dataset_api.client import DatasetAPIClient

logger = structlog.get_logger("search_service.versions")

NOT_FOUND_ERRORS = (DatasetNotFoundError, EditionNotFoundError, VersionNotFoundError)


def service_token_for(subnet: Subnet, caller_present: bool, service_token: str) -> Optional[str]:
    """Return the credential to forward to the Dataset API, if any."""
    if subnet is Subnet.PRIVATE and caller_present:
        return service_token
    return None


class VersionResolver:
    """Resolves dataset/edition/version to an instance id."""

    def __init__(self, dataset_api: DatasetAPIClient, subnet: Subnet, service_auth_token: str):
        self.dataset_api = dataset_api
        self.subnet = subnet
        self.service_auth_token = service_auth_token

    async def resolve(
        self,
        dataset_id: str,
        edition: str,
        version: str,
        caller_present: bool
    ) -> str:
        """Return the instance id of the version.

        Raises the dataset/edition/version not-found errors unchanged and
        ``InternalServerError`` for any other failure.
        """
        token = service_token_for(self.subnet, caller_present, self.service_auth_token)

        try:
            document = await self.dataset_api.get_version(
                dataset_id,
                edition,
                version,
                service_auth_token=token,
            )
        except NOT_FOUND_ERRORS:
            raise
        except Exception as e:
            logger.error(
                "Failed to get version of a dataset from the dataset api",
                dataset_id=dataset_id,
                edition=edition,
                version=version,
                error=str(e)
            )
            raise InternalServerError() from e

        return document.id
