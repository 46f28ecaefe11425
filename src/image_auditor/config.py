"""Crawl input options and their defaults."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from image_auditor.errors import InvalidInputError, InvalidURLError
from image_auditor.urls import normalize_url

UNLIMITED = -1
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEO-Image-Optimization-Checker/1.0)"

# Keys of the JSON input document mapped onto CrawlOptions fields
INPUT_KEYS = {
    "startUrl": "start_url",
    "crawlUrls": "crawl_enabled",
    "maxPages": "max_pages",
    "maxImagesPerPage": "max_images_per_page",
    "includeImageSizeAnalysis": "size_analysis",
    "includeAltTextAnalysis": "alt_analysis",
    "userAgent": "user_agent",
    "requestTimeoutMs": "request_timeout_ms",
    "maxRedirects": "max_redirects",
    "imageTimeoutMs": "image_timeout_ms",
    "imageMaxRedirects": "image_max_redirects",
}


def _is_int(value: Any) -> bool:
    """bool is an int subclass, but never a valid count or duration."""
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class CrawlOptions:
    """Settings for one crawl invocation."""

    start_url: Optional[str] = None
    crawl_enabled: bool = False
    max_pages: int = 5
    max_images_per_page: Optional[int] = UNLIMITED
    size_analysis: bool = True
    alt_analysis: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_ms: int = 30_000
    max_redirects: int = 5
    image_timeout_ms: int = 10_000
    image_max_redirects: int = 3

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CrawlOptions":
        """Build options from an input document (camelCase or field names)."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = INPUT_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

    @property
    def effective_max_pages(self) -> int:
        return self.max_pages if self.crawl_enabled else 1

    @property
    def image_limit(self) -> Optional[int]:
        """Per-page image cap, or None when unlimited."""
        if self.max_images_per_page is None or self.max_images_per_page == UNLIMITED:
            return None
        return self.max_images_per_page

    @property
    def request_timeout_s(self) -> float:
        return self.request_timeout_ms / 1000

    @property
    def image_timeout_s(self) -> float:
        return self.image_timeout_ms / 1000

    def validate(self) -> str:
        """
        Check the options and return the normalized start URL.

        Raises InvalidInputError on anything that would make the crawl meaningless.
        """
        if not self.start_url:
            raise InvalidInputError("start_url is required")
        try:
            seed = normalize_url(self.start_url)
        except InvalidURLError as e:
            raise InvalidInputError(f"Invalid start URL: {self.start_url}") from e
        if not seed.startswith(("http://", "https://")):
            raise InvalidInputError(f"Start URL must use http or https: {self.start_url}")

        for name in ("crawl_enabled", "size_analysis", "alt_analysis"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidInputError(f"{name} must be true or false, got {getattr(self, name)!r}")
        if not isinstance(self.user_agent, str) or not self.user_agent.strip():
            raise InvalidInputError("user_agent must be a non-empty string")

        if not _is_int(self.max_pages) or self.max_pages < 1:
            raise InvalidInputError(f"max_pages must be >= 1, got {self.max_pages!r}")
        limit = self.max_images_per_page
        if limit is not None and limit != UNLIMITED and (not _is_int(limit) or limit < 1):
            raise InvalidInputError(
                f"max_images_per_page must be >= 1 or {UNLIMITED} (unlimited), got {limit!r}"
            )
        for name in ("request_timeout_ms", "image_timeout_ms"):
            value = getattr(self, name)
            if not _is_int(value) or value <= 0:
                raise InvalidInputError(f"{name} must be a positive integer, got {value!r}")
        for name in ("max_redirects", "image_max_redirects"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise InvalidInputError(f"{name} must be a non-negative integer, got {value!r}")
        return seed
