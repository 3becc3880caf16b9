"""Search index factory.

Keeps construction of the concrete ``SearchIndex`` out of service code so
callers depend only on the abstract interface.
"""

import structlog

from libs.common.config import SearchConfig

from .base import SearchIndex
from .opensearch import OpenSearchSearchIndex

logger = structlog.get_logger("search_index.factory")


def create_search_index_from_config(config: SearchConfig) -> SearchIndex:
    """Create the search index client described by ``config``."""
    hosts = config.opensearch_host_list
    if not hosts:
        raise ValueError("OpenSearch requires at least one host in OPENSEARCH_HOSTS")

    logger.info("Creating OpenSearch search index client", hosts=hosts)
    return OpenSearchSearchIndex(
        hosts=hosts,
        username=config.opensearch_username,
        password=config.opensearch_password,
        verify_certs=config.opensearch_verify_certs,
        timeout=config.request_timeout,
    )
