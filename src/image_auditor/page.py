"""
Per-page analysis: image extraction and enrichment, internal link discovery.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from image_auditor.errors import InvalidURLError, ParseSkipError
from image_auditor.images import ImageInspector
from image_auditor.models import ImageRecord, MissingAlt, PageResult, utc_now_iso
from image_auditor.urls import hostname_of, is_local, origin_of, resolve_reference

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def is_html(content_type: Optional[str]) -> bool:
    """Missing content type is treated as HTML; servers often omit it."""
    if not content_type:
        return True
    return any(kind in content_type.lower() for kind in HTML_CONTENT_TYPES)


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return ""
    return soup.title.get_text().strip()


def extract_internal_links(soup: BeautifulSoup, page_url: str) -> List[str]:
    """Resolve every <a href> and keep those on the page's own origin, in document order."""
    try:
        origin = origin_of(page_url)
    except InvalidURLError:
        return []

    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        try:
            target = resolve_reference(anchor["href"], page_url)
        except ParseSkipError:
            continue
        if is_local(target, origin):
            links.append(target)
    return links


class PageAnalyzer:
    """Turns one fetched document into a PageResult."""

    def __init__(
        self,
        inspector: ImageInspector,
        max_images_per_page: Optional[int] = None,
        alt_analysis: bool = True,
    ):
        self.inspector = inspector
        self.max_images_per_page = max_images_per_page
        self.alt_analysis = alt_analysis

    def analyze(
        self,
        page_url: str,
        html: str,
        status_code: int = 200,
        content_type: Optional[str] = None,
    ) -> PageResult:
        domain = hostname_of(page_url)
        if not is_html(content_type):
            logger.info("Not parsing %s: content type %s", page_url, content_type)
            return PageResult(
                url=page_url, domain=domain, status_code=status_code, analyzed_at=utc_now_iso()
            )

        soup = parse_document(html)
        images, missing_alt, total_found = self.analyze_images(soup, page_url)
        return PageResult(
            url=page_url,
            title=extract_title(soup),
            domain=domain,
            images=tuple(images),
            images_without_alt=tuple(missing_alt),
            total_images_found=total_found,
            status_code=status_code,
            analyzed_at=utc_now_iso(),
            internal_links=tuple(extract_internal_links(soup, page_url)),
        )

    def analyze_images(
        self, soup: BeautifulSoup, page_url: str
    ) -> Tuple[List[ImageRecord], List[MissingAlt], int]:
        """
        Enrich the page's <img src> elements in document order.

        Only the first `max_images_per_page` elements are considered; the rest
        still count towards the total found. An element whose source cannot be
        resolved is skipped but keeps its position number.
        """
        elements = soup.find_all("img", src=True)
        total_found = len(elements)
        limit = total_found if self.max_images_per_page is None else min(total_found, self.max_images_per_page)

        images: List[ImageRecord] = []
        missing_alt: List[MissingAlt] = []
        for position, element in enumerate(elements[:limit], start=1):
            try:
                probe = self.inspector.inspect(element.get("src", ""), page_url)
            except ParseSkipError as e:
                logger.debug("Skipping image %d on %s: %s", position, page_url, e)
                continue

            record = ImageRecord(
                image_url=probe.image_url,
                index=position,
                alt_text=element.get("alt", ""),
                title_text=element.get("title", ""),
                width=element.get("width", ""),
                height=element.get("height", ""),
                content_type=probe.content_type,
                size_bytes=probe.size_bytes,
                status_code=probe.status_code,
                error=probe.error,
            )
            images.append(record)
            if self.alt_analysis and not record.has_alt:
                missing_alt.append(MissingAlt(record.image_url, record.index))

        return images, missing_alt, total_found
