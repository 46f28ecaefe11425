"""
Exceptions raised by the image auditor.
"""
from __future__ import annotations

import socket
from typing import Iterator, Optional

import requests


class ImageAuditorError(Exception):
    """Base class for all auditor errors."""


class InvalidInputError(ImageAuditorError, ValueError):
    """Raised when the crawl input is missing or malformed. Aborts the run."""


class InvalidURLError(ImageAuditorError, ValueError):
    """Raised when a string cannot be parsed as an absolute URL."""

    def __init__(self, url: str, reason: str = "not a valid URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")


class ParseSkipError(ImageAuditorError):
    """Raised for a malformed image or link reference that should be skipped."""


class FetchError(ImageAuditorError):
    """Raised when an HTTP fetch fails due to network/transport errors or a 5xx reply."""

    def __init__(self, url: str, original: Exception, status_code: Optional[int] = None):
        self.url = url
        self.original = original
        self.status_code = status_code if status_code is not None else classify_failure_status(original)
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class PageFetchError(FetchError):
    """A page could not be fetched. Recorded on the page, the crawl continues."""


class ImageFetchError(FetchError):
    """An image metadata fetch failed. Recorded on the image, the page continues."""


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Walk an exception and everything it wraps (args, reason, cause, context)."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        # urllib3 keeps the underlying error on .reason or in args
        stack.extend(arg for arg in getattr(current, "args", ()) if isinstance(arg, BaseException))
        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            stack.append(reason)
        stack.append(current.__cause__)
        stack.append(current.__context__)


def classify_failure_status(exc: BaseException) -> int:
    """
    Map a failed fetch to an HTTP-like status code.

    - A response attached to the error wins (its status code)
    - DNS failure or connection refused -> 404
    - Timeout -> 408
    - Connection reset -> 503
    - Anything else -> 500
    """
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None):
        return int(response.status_code)

    causes = list(_iter_causes(exc))
    if any(isinstance(c, (socket.gaierror, ConnectionRefusedError)) for c in causes):
        return 404
    if any(isinstance(c, (requests.exceptions.Timeout, socket.timeout, TimeoutError)) for c in causes):
        return 408
    if any(isinstance(c, ConnectionResetError) for c in causes):
        return 503
    return 500
