"""
Failure Classification
======================
Maps a failure to the ``ErrorKind`` tag the retry policy is checked against.
"""

from typing import Optional

import httpx

from ..errors import ErrorKind, ResilienceError

# Upstream statuses that signal a temporarily unavailable service
_UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


def classify_error(exc: BaseException) -> Optional[ErrorKind]:
    """
    Return the error kind of ``exc``, or None when it is not transient.

    An explicit ``kind`` tag always wins. Untagged builtin and httpx
    transport errors are mapped to the closest kind; everything else is
    unclassified and therefore never retried.
    """
    if isinstance(exc, ResilienceError):
        return exc.kind

    kind = getattr(exc, "kind", None)
    if isinstance(kind, ErrorKind):
        return kind

    if isinstance(exc, httpx.TimeoutException):
        return ErrorKind.TIMEOUT
    if isinstance(exc, httpx.NetworkError):
        return ErrorKind.NETWORK
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code in _UNAVAILABLE_STATUSES:
            return ErrorKind.SERVICE_UNAVAILABLE
        return None

    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(exc, ConnectionError):
        return ErrorKind.CONNECTION

    return None
