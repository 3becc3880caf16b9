"""Conversion of domain errors to HTTP errors.

The only place an error kind becomes a status code and response message.
Messages are the fixed ones carried by the error classes; text from
downstream services is logged but never returned to the client.
"""

from fastapi import HTTPException

from libs.common.errors import InternalServerError, SearchAPIError


def to_http_exception(error: Exception) -> HTTPException:
    """Map ``error`` to the ``HTTPException`` returned to the client."""
    if not isinstance(error, SearchAPIError):
        error = InternalServerError()
    return HTTPException(status_code=error.status_code, detail=error.message)


def outcome_of(error: Exception) -> str:
    """Metric label for a failed request."""
    if isinstance(error, SearchAPIError):
        return type(error).__name__
    return "InternalServerError"
