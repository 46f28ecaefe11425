"""
Result records produced by the auditor.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from image_auditor.summary import DomainSummary


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def round_half_up(value: float, digits: int = 0):
    """Round like a report reader expects (2.5 -> 3), not banker's rounding."""
    exponent = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def bytes_to_kb(size_bytes: float) -> float:
    return round_half_up(size_bytes / 1000, 2)


def subtype_of(content_type: str) -> str:
    """Histogram key for a content type: "image/svg+xml; q=1" -> "svg+xml"."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    _, _, subtype = media_type.partition("/")
    return subtype or "unknown"


@dataclass(frozen=True, slots=True)
class ImageRecord:
    """One analyzed <img> element."""
    image_url: str
    index: int
    alt_text: str = ""
    title_text: str = ""
    width: str = ""
    height: str = ""
    content_type: str = "image/unknown"
    size_bytes: int = 0
    status_code: int = 200
    error: Optional[str] = None

    @property
    def has_alt(self) -> bool:
        return bool(self.alt_text.strip())

    @property
    def has_title(self) -> bool:
        return bool(self.title_text.strip())

    @property
    def image_type(self) -> str:
        return subtype_of(self.content_type)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "imageUrl": self.image_url,
            "imageIndex": self.index,
            "alt": self.alt_text,
            "title": self.title_text,
            "width": self.width,
            "height": self.height,
            "hasAlt": self.has_alt,
            "hasTitle": self.has_title,
            "contentType": self.content_type,
            "sizeInBytes": self.size_bytes,
            "sizeInKb": bytes_to_kb(self.size_bytes),
            "statusCode": self.status_code,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True, slots=True)
class MissingAlt:
    """Pointer to an image that lacks alt text."""
    image_url: str
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"imageUrl": self.image_url, "imageIndex": self.index}


@dataclass(frozen=True, slots=True)
class PageResult:
    """Result data for a single visited page."""
    url: str
    title: str = ""
    domain: str = ""
    images: Tuple[ImageRecord, ...] = ()
    images_without_alt: Tuple[MissingAlt, ...] = ()
    total_images_found: int = 0
    status_code: Optional[int] = None
    error: Optional[str] = None
    analyzed_at: Optional[str] = None
    # Same-origin links discovered on the page; feeds the frontier, never reported
    internal_links: Tuple[str, ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def failed(cls, url: str, error: str, status_code: int) -> "PageResult":
        return cls(url=url, error=error, status_code=status_code, analyzed_at=utc_now_iso())

    @property
    def ok(self) -> bool:
        """True for a page that was fetched with a 2xx status and no error."""
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300

    @property
    def is_error(self) -> bool:
        return self.error is not None or (self.status_code is not None and self.status_code >= 400)

    @property
    def images_analyzed(self) -> int:
        return len(self.images)

    @property
    def images_without_alt_count(self) -> int:
        return len(self.images_without_alt)

    @property
    def images_with_alt_count(self) -> int:
        return self.images_analyzed - self.images_without_alt_count

    @property
    def total_image_size(self) -> int:
        return sum(image.size_bytes for image in self.images)

    @property
    def average_image_size(self) -> int:
        if not self.images:
            return 0
        return round_half_up(self.total_image_size / self.images_analyzed)

    @property
    def image_types(self) -> Dict[str, int]:
        return dict(Counter(image.image_type for image in self.images))

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {
                "url": self.url,
                "error": self.error,
                "statusCode": self.status_code,
                "analysis_date": self.analyzed_at,
            }
        return {
            "url": self.url,
            "title": self.title,
            "domain": self.domain,
            "images": [image.to_dict() for image in self.images],
            "imagesWithoutAlt": [missing.to_dict() for missing in self.images_without_alt],
            "imagesWithoutAltCount": self.images_without_alt_count,
            "imagesWithAltCount": self.images_with_alt_count,
            "totalImagesFound": self.total_images_found,
            "imagesAnalyzed": self.images_analyzed,
            "averageImageSize": self.average_image_size,
            "totalImageSize": self.total_image_size,
            "imageTypes": self.image_types,
            "statusCode": self.status_code,
            "analysis_date": self.analyzed_at,
        }


@dataclass(slots=True)
class CrawlReport:
    """Everything one crawl invocation produced."""
    domain: "DomainSummary"
    pages: List[PageResult]
    pages_analyzed: int
    completed_at: str
    engine_version: str = ""
    data_format_version: str = "1.0"

    @property
    def total_pages_processed(self) -> int:
        return len(self.pages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain.to_dict(),
            "pages": [page.to_dict() for page in self.pages],
            "meta": {
                "total_pages_processed": self.total_pages_processed,
                "pages_analyzed": self.pages_analyzed,
                "analysis_completed_at": self.completed_at,
                "engine_version": self.engine_version,
                "data_format_version": self.data_format_version,
            },
        }
