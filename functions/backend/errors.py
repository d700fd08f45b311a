"""
Classification of remote failures into ErrorKind values.
"""

from __future__ import annotations

import requests
from google.api_core import exceptions as google_exceptions

from shared.results import ErrorKind

_GOOGLE_ERROR_KINDS: list[tuple[type[Exception], ErrorKind]] = [
    (google_exceptions.NotFound, ErrorKind.NOT_FOUND),
    (google_exceptions.PermissionDenied, ErrorKind.PERMISSION_DENIED),
    (google_exceptions.Unauthenticated, ErrorKind.UNAUTHENTICATED),
    (google_exceptions.Unauthorized, ErrorKind.UNAUTHENTICATED),
    (google_exceptions.Forbidden, ErrorKind.PERMISSION_DENIED),
    (google_exceptions.DeadlineExceeded, ErrorKind.TIMEOUT),
    (google_exceptions.ServiceUnavailable, ErrorKind.UNAVAILABLE),
    (google_exceptions.RetryError, ErrorKind.UNAVAILABLE),
    (google_exceptions.InvalidArgument, ErrorKind.INVALID_ARGUMENT),
    (google_exceptions.BadRequest, ErrorKind.INVALID_ARGUMENT),
]

_HTTP_STATUS_KINDS = {
    400: ErrorKind.INVALID_ARGUMENT,
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.PERMISSION_DENIED,
    404: ErrorKind.NOT_FOUND,
    503: ErrorKind.UNAVAILABLE,
}


def classify_exception(exc: BaseException) -> ErrorKind:
    """Maps an exception raised by a remote call to an ErrorKind."""
    # asyncio.TimeoutError is an alias of TimeoutError on 3.11+.
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT

    for exc_type, kind in _GOOGLE_ERROR_KINDS:
        if isinstance(exc, exc_type):
            return kind

    if isinstance(exc, requests.Timeout):
        return ErrorKind.TIMEOUT
    if isinstance(exc, requests.ConnectionError):
        return ErrorKind.UNAVAILABLE
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return _HTTP_STATUS_KINDS.get(exc.response.status_code, ErrorKind.UNKNOWN)

    if isinstance(exc, ConnectionError):
        return ErrorKind.UNAVAILABLE
    return ErrorKind.UNKNOWN


def describe_exception(exc: BaseException) -> str:
    message = str(exc)
    return message or exc.__class__.__name__
