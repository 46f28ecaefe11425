"""Image metadata: content-type sniffing, data URIs and HEAD probes."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlsplit

from image_auditor.errors import ImageFetchError, ParseSkipError
from image_auditor.fetcher import HttpResponse
from image_auditor.models import round_half_up
from image_auditor.urls import is_data_uri, resolve_reference

logger = logging.getLogger(__name__)

UNKNOWN_IMAGE_TYPE = "image/unknown"

EXTENSION_TYPES = (
    ((".jpg", ".jpeg"), "image/jpeg"),
    ((".png",), "image/png"),
    ((".gif",), "image/gif"),
    ((".webp",), "image/webp"),
    ((".svg",), "image/svg+xml"),
    ((".bmp",), "image/bmp"),
    ((".ico",), "image/x-icon"),
    ((".tiff", ".tif"), "image/tiff"),
)

DATA_URI_MIME_RE = re.compile(r"^data:([^;,]+)", re.IGNORECASE)


class MetadataFetcher(Protocol):
    def fetch_metadata(self, url: str) -> HttpResponse: ...


@dataclass(frozen=True, slots=True)
class ImageProbe:
    """What the inspector learned about one image URL."""
    image_url: str
    content_type: str
    size_bytes: int = 0
    status_code: int = 200
    error: Optional[str] = None


def content_type_from_extension(image_url: str) -> str:
    """Guess an image MIME type from the URL path's file extension."""
    try:
        path = urlsplit(image_url).path.lower()
    except ValueError:
        return UNKNOWN_IMAGE_TYPE
    for extensions, content_type in EXTENSION_TYPES:
        if path.endswith(extensions):
            return content_type
    return UNKNOWN_IMAGE_TYPE


def parse_data_uri(uri: str) -> ImageProbe:
    """
    Read the declared MIME type and payload size of a data URI.

    The size assumes a base64 payload: every 4 characters carry 3 bytes.
    """
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ParseSkipError(f"data URI without payload: {uri[:40]!r}")
    match = DATA_URI_MIME_RE.match(header)
    content_type = match.group(1).strip().lower() if match else UNKNOWN_IMAGE_TYPE
    size_bytes = round_half_up(len(payload) * 3 / 4)
    return ImageProbe(image_url=uri, content_type=content_type, size_bytes=size_bytes)


def _content_length(response: HttpResponse) -> int:
    raw = response.header("Content-Length")
    try:
        return max(int(raw), 0) if raw else 0
    except ValueError:
        return 0


class ImageInspector:
    """Resolves an image reference and works out its type and size."""

    def __init__(self, fetcher: Optional[MetadataFetcher] = None, size_analysis: bool = True):
        self.fetcher = fetcher
        self.size_analysis = size_analysis and fetcher is not None

    def inspect(self, raw_src: str, base_url: str) -> ImageProbe:
        """
        Build an ImageProbe for one <img src>.

        Raises ParseSkipError when the reference cannot be resolved. Network
        failures never raise; they are recorded on the probe.
        """
        image_url = resolve_reference(raw_src, base_url)

        if not self.size_analysis:
            return ImageProbe(image_url=image_url, content_type=content_type_from_extension(image_url))

        if is_data_uri(image_url):
            return parse_data_uri(image_url)

        return self.probe(image_url)

    def probe(self, image_url: str) -> ImageProbe:
        """HEAD the image; fall back to extension sniffing when that fails."""
        try:
            response = self.fetcher.fetch_metadata(image_url)
        except ImageFetchError as e:
            logger.warning("Image metadata fetch failed for %s: %s", image_url, e.original)
            return ImageProbe(
                image_url=image_url,
                content_type=content_type_from_extension(image_url),
                size_bytes=0,
                status_code=e.status_code,
                error=str(e.original),
            )

        content_type = response.content_type or content_type_from_extension(image_url)
        return ImageProbe(
            image_url=image_url,
            content_type=content_type,
            size_bytes=_content_length(response),
            status_code=response.status_code,
        )
