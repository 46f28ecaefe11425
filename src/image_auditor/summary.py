"""
Domain-level rollup of per-page results.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence

from image_auditor.models import PageResult, bytes_to_kb, round_half_up
from image_auditor.urls import hostname_of

logger = logging.getLogger(__name__)


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, 0 when there is nothing to divide by."""
    if not whole:
        return 0
    return round_half_up(part * 100 / whole)


def most_common_type(image_types: Dict[str, int]) -> str:
    """Highest count wins; equal counts go to the alphabetically first type."""
    if not image_types:
        return "unknown"
    return min(image_types.items(), key=lambda item: (-item[1], item[0]))[0]


@dataclass(frozen=True, slots=True)
class DomainSummary:
    """Domain-wide statistics. A pure function of the page results."""
    domain_name: str = ""
    total_pages_analyzed: int = 0
    pages_with_successful_status: int = 0
    pages_with_error_status: int = 0
    total_images_found: int = 0
    total_images_analyzed: int = 0
    total_images_without_alt: int = 0
    total_image_size_bytes: int = 0
    image_types: Dict[str, int] = field(default_factory=dict)

    @property
    def pages_with_successful_status_percentage(self) -> int:
        return percentage(self.pages_with_successful_status, self.total_pages_analyzed)

    @property
    def pages_with_error_status_percentage(self) -> int:
        return percentage(self.pages_with_error_status, self.total_pages_analyzed)

    @property
    def total_images_without_alt_percentage(self) -> int:
        return percentage(self.total_images_without_alt, self.total_images_analyzed)

    @property
    def average_images_per_page(self) -> float:
        if not self.total_pages_analyzed:
            return 0
        return round_half_up(self.total_images_found / self.total_pages_analyzed, 2)

    @property
    def average_image_size_bytes(self) -> int:
        if not self.total_images_analyzed:
            return 0
        return round_half_up(self.total_image_size_bytes / self.total_images_analyzed)

    @property
    def most_common_image_type(self) -> str:
        return most_common_type(self.image_types)

    @property
    def needs_alt_text_optimization(self) -> bool:
        return self.total_images_without_alt > 0

    def to_dict(self) -> Dict[str, Any]:
        total_size_kb = bytes_to_kb(self.total_image_size_bytes)
        average_size_kb = bytes_to_kb(self.average_image_size_bytes)
        return {
            "domain_name": self.domain_name,
            "total_pages_analyzed": self.total_pages_analyzed,
            "pages_with_successful_status": self.pages_with_successful_status,
            "pages_with_successful_status_percentage": self.pages_with_successful_status_percentage,
            "pages_with_error_status": self.pages_with_error_status,
            "pages_with_error_status_percentage": self.pages_with_error_status_percentage,
            "total_images_found": self.total_images_found,
            "total_images_analyzed": self.total_images_analyzed,
            "total_images_without_alt": self.total_images_without_alt,
            "total_images_without_alt_percentage": self.total_images_without_alt_percentage,
            "total_image_size_bytes": self.total_image_size_bytes,
            "total_image_size_kb": total_size_kb,
            "average_images_per_page": self.average_images_per_page,
            "average_image_size_bytes": self.average_image_size_bytes,
            "average_image_size_kb": average_size_kb,
            "image_types": dict(self.image_types),
            "most_common_image_type": self.most_common_image_type,
            "optimization_recommendations": {
                "images_without_alt": self.total_images_without_alt,
                "images_without_alt_percentage": self.total_images_without_alt_percentage,
                "needs_alt_text_optimization": self.needs_alt_text_optimization,
                "total_size_kb": total_size_kb,
                "average_size_kb": average_size_kb,
            },
        }


def summarize_domain(pages: Sequence[PageResult]) -> DomainSummary:
    """Reduce the crawl's page results into one DomainSummary."""
    image_types: Counter = Counter()
    for page in pages:
        image_types.update(page.image_types)

    summary = DomainSummary(
        domain_name=hostname_of(pages[0].url) if pages else "",
        total_pages_analyzed=len(pages),
        pages_with_successful_status=sum(1 for page in pages if page.ok),
        pages_with_error_status=sum(1 for page in pages if page.is_error),
        total_images_found=sum(page.total_images_found for page in pages),
        total_images_analyzed=sum(page.images_analyzed for page in pages),
        total_images_without_alt=sum(page.images_without_alt_count for page in pages),
        total_image_size_bytes=sum(page.total_image_size for page in pages),
        image_types=dict(image_types),
    )
    logger.info(
        "Domain %s: %d images found, %d without alt (%d%%), %.2f per page",
        summary.domain_name,
        summary.total_images_found,
        summary.total_images_without_alt,
        summary.total_images_without_alt_percentage,
        summary.average_images_per_page,
    )
    return summary
