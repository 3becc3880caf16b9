"""Error taxonomy for the dimension search platform.

Every failure the search pipeline can surface is a ``SearchAPIError``
subclass carrying a fixed, caller-safe ``message`` and the HTTP
``status_code`` it maps to. Errors are raised where they originate
(page validation, Dataset API client, search index client) and converted to
HTTP responses in exactly one place in the API layer.

Downstream error text is never stored in ``message``; keep it on the
exception chain (``raise ... from exc``) and in logs instead.
"""

from typing import Optional


class SearchAPIError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    message: str = "internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# 400 Bad Request

class EmptySearchTermError(SearchAPIError):
    status_code = 400
    message = "empty search term"


class ParsingQueryParametersError(SearchAPIError):
    status_code = 400
    message = "failed to parse query parameters, values must be an integer"


class MaximumOffsetReachedError(SearchAPIError):
    """Requested offset is at or beyond the configured maximum."""

    status_code = 400

    def __init__(self, maximum: int):
        self.maximum = maximum
        super().__init__(
            f"the maximum offset has been reached, the offset cannot be more than {maximum}"
        )


# 401 Unauthorized

class UnauthenticatedRequestError(SearchAPIError):
    status_code = 401
    message = "unauthenticated request"


# 404 Not Found

class DatasetNotFoundError(SearchAPIError):
    status_code = 404
    message = "dataset not found"


class EditionNotFoundError(SearchAPIError):
    status_code = 404
    message = "edition not found"


class VersionNotFoundError(SearchAPIError):
    status_code = 404
    message = "version not found"


class IndexNotFoundError(SearchAPIError):
    status_code = 404
    message = "search index not found"


class DeleteIndexNotFoundError(SearchAPIError):
    status_code = 404
    message = "search index not found"


# 500 Internal Server Error

class InternalServerError(SearchAPIError):
    """Generic failure; also the fallback for anything unmapped.

    ``upstream_status`` records the downstream status code, when there was one.
    """

    def __init__(self, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__()


class MarshallingQueryError(InternalServerError):
    """The engine query could not be serialized."""


class UnmarshallingJSONError(InternalServerError):
    """A downstream response body could not be parsed."""


class UnexpectedStatusCodeError(InternalServerError):
    """A downstream service answered with an unexpected status code."""
