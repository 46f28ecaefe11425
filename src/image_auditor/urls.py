"""
URL normalization, reference resolution and origin helpers.
"""
from __future__ import annotations

import re
from typing import List, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from image_auditor.errors import InvalidURLError, ParseSkipError

# RFC 3986 scheme prefix, e.g. "https:" or "data:"
SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

DEFAULT_PORTS = {"http": 80, "https": 443}


def remove_dot_segments(path: str) -> str:
    """Resolve "." and ".." segments of a path (RFC 3986, section 5.2.4)."""
    if not path:
        return path
    output: List[str] = []
    for segment in path.split("/"):
        if segment == "..":
            if len(output) > 1:
                output.pop()
        elif segment != ".":
            output.append(segment)
    # A trailing "." or ".." still denotes a directory
    if path.endswith(("/.", "/..")):
        output.append("")
    resolved = "/".join(output)
    if path.startswith("/") and not resolved.startswith("/"):
        resolved = "/" + resolved
    return resolved


def normalize_url(url: str) -> str:
    """
    Normalize an absolute URL into a stable deduplication key.

    - Lower-cases scheme and host
    - Removes default ports (:80, :443)
    - Drops fragments (#...)
    - Resolves "." and ".." path segments
    - Uses "/" as the path of a bare origin
    - Keeps querystrings (they matter for uniqueness)

    Raises InvalidURLError when the input has no scheme or host.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError(str(url), "empty")

    try:
        parsed = urlsplit(url.strip())
        port = parsed.port
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e

    scheme = parsed.scheme.lower()
    hostname = (parsed.hostname or "").lower()
    if not scheme or not hostname:
        raise InvalidURLError(url, "missing scheme or host")

    if ":" in hostname:
        hostname = f"[{hostname}]"
    netloc = hostname
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{hostname}:{port}"
    if parsed.username is not None:
        userinfo = parsed.username
        if parsed.password is not None:
            userinfo = f"{userinfo}:{parsed.password}"
        netloc = f"{userinfo}@{netloc}"

    path = remove_dot_segments(parsed.path) or "/"
    return urlunsplit((scheme, netloc, path, parsed.query, ""))


def is_data_uri(url: str) -> bool:
    return url[:5].lower() == "data:"


def resolve_reference(ref: str, base_url: str) -> str:
    """
    Resolve an href/src attribute value against the page URL.

    Absolute references (with a scheme) and data URIs are returned as-is,
    origin-relative and relative references are joined onto `base_url`.
    Raises ParseSkipError for references that cannot be resolved.
    """
    ref = (ref or "").strip()
    if not ref:
        raise ParseSkipError("empty reference")
    if is_data_uri(ref) or SCHEME_RE.match(ref):
        return ref
    try:
        return urljoin(base_url, ref)
    except ValueError as e:
        raise ParseSkipError(f"cannot resolve {ref!r} against {base_url}: {e}") from e


def origin_of(url: str) -> Tuple[str, str]:
    """Return the (scheme, netloc) origin of a URL in normalized form."""
    parts = urlsplit(normalize_url(url))
    return parts.scheme, parts.netloc


def is_local(url: str, origin: Tuple[str, str]) -> bool:
    """Check if URL has the same scheme and netloc as `origin`."""
    try:
        return origin_of(url) == origin
    except InvalidURLError:
        return False


def hostname_of(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""
