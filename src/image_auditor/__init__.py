"""
Website image auditor: crawls a site breadth-first from a start URL and reports
alt-text coverage, image types and image payload per page and per domain.
"""
__version__ = "1.0.0"

from image_auditor.config import CrawlOptions
from image_auditor.core import CrawlFrontier, CrawlState, crawl
from image_auditor.errors import (
    ImageFetchError,
    InvalidInputError,
    InvalidURLError,
    PageFetchError,
    ParseSkipError,
)
from image_auditor.models import CrawlReport, ImageRecord, PageResult
from image_auditor.summary import DomainSummary, summarize_domain
from image_auditor.urls import normalize_url

__all__ = [
    "crawl",
    "CrawlFrontier",
    "CrawlOptions",
    "CrawlReport",
    "CrawlState",
    "DomainSummary",
    "ImageFetchError",
    "ImageRecord",
    "InvalidInputError",
    "InvalidURLError",
    "PageFetchError",
    "PageResult",
    "ParseSkipError",
    "normalize_url",
    "summarize_domain",
]
