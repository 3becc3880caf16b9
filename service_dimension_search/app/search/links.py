"""Rewriting of stored links onto the externally visible API address.

Dimension option links are stored in the index with whatever host the
indexer saw. When URL rewriting is enabled, the link is rebuilt on the
address the client used, taken from the proxy ``X-Forwarded-*`` headers, or
on the configured API URL when the request did not come through a proxy.
"""

from typing import Mapping
from urllib.parse import urlsplit, urlunsplit

FORWARDED_HOST = "x-forwarded-host"
FORWARDED_PROTO = "x-forwarded-proto"
FORWARDED_PORT = "x-forwarded-port"
FORWARDED_PATH_PREFIX = "x-forwarded-path-prefix"


def external_base_url(headers: Mapping[str, str], default_url: str) -> str:
    """Return the base URL the client reached the API on."""
    lowered = {key.lower(): value for key, value in headers.items()}

    host = lowered.get(FORWARDED_HOST, "")
    if not host:
        return default_url

    scheme = lowered.get(FORWARDED_PROTO) or "https"
    port = lowered.get(FORWARDED_PORT, "")
    if port and ":" not in host:
        host = f"{host}:{port}"

    prefix = lowered.get(FORWARDED_PATH_PREFIX, "").strip("/")
    path = f"/{prefix}" if prefix else ""

    return urlunsplit((scheme, host, path, "", ""))


def rewrite_link(link: str, base_url: str) -> str:
    """Move ``link`` onto ``base_url``, keeping its path and query."""
    if not link:
        return link

    old = urlsplit(link)
    base = urlsplit(base_url)

    path = base.path.rstrip("/") + "/" + old.path.lstrip("/")
    return urlunsplit((base.scheme, base.netloc, path, old.query, ""))
