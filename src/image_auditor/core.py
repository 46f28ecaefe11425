"""
Breadth-first crawl of same-origin pages, feeding each page to the analyzer.
"""
from __future__ import annotations

import enum
import logging
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Protocol, Set

from image_auditor import __version__
from image_auditor.config import CrawlOptions
from image_auditor.errors import InvalidURLError, PageFetchError
from image_auditor.fetcher import HttpFetcher, HttpResponse
from image_auditor.images import ImageInspector
from image_auditor.models import CrawlReport, PageResult, utc_now_iso
from image_auditor.page import PageAnalyzer
from image_auditor.summary import summarize_domain
from image_auditor.urls import is_local, normalize_url, origin_of

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch_document(self, url: str) -> HttpResponse: ...

    def fetch_metadata(self, url: str) -> HttpResponse: ...


class FrontierStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINED = "drained"


@dataclass(slots=True)
class CrawlState:
    """Traversal bookkeeping for one crawl. Owned by a single CrawlFrontier."""
    visited: Set[str] = field(default_factory=set)
    queue: Deque[str] = field(default_factory=deque)
    queued: Set[str] = field(default_factory=set)
    processed_count: int = 0
    pages_analyzed: int = 0

    def enqueue(self, url: str) -> bool:
        """Queue a normalized URL unless it was already visited or queued."""
        if url in self.visited or url in self.queued:
            return False
        self.queue.append(url)
        self.queued.add(url)
        return True

    def pop(self) -> str:
        url = self.queue.popleft()
        self.queued.discard(url)
        return url


def print_progress(processed: int, discovered: int, queue_size: int, max_pages: int) -> None:
    """Print real-time progress to stderr."""
    progress = f"\r\033[K[{processed}/{max_pages}] Visited: {processed} | Discovered: {discovered} | Queue: {queue_size}"
    sys.stderr.write(progress)
    sys.stderr.flush()


def print_scan_line(result: PageResult, new_links: int) -> None:
    """Print single scan result line."""
    status_str = str(result.status_code) if result.error is None else f"ERR {result.status_code}"
    sys.stderr.write(
        f"\n  → {status_str} {result.url} "
        f"({result.images_analyzed}/{result.total_images_found} images, +{new_links} links)"
    )
    sys.stderr.flush()


class CrawlFrontier:
    """
    Bounded breadth-first traversal starting at a seed URL.

    Pages are visited in discovery order. The page cap counts every attempt,
    failed fetches included, and a failed page never stops the crawl.
    """

    def __init__(
        self,
        seed_url: str,
        fetcher: Fetcher,
        analyzer: PageAnalyzer,
        max_pages: int = 1,
        follow_links: bool = False,
        verbose: bool = False,
    ):
        self.seed_url = normalize_url(seed_url)
        self.origin = origin_of(self.seed_url)
        self.fetcher = fetcher
        self.analyzer = analyzer
        self.max_pages = max_pages if follow_links else 1
        self.follow_links = follow_links
        self.verbose = verbose
        self.state = CrawlState()
        self.state.enqueue(self.seed_url)
        self.results: List[PageResult] = []
        self.status = FrontierStatus.IDLE

    @property
    def done(self) -> bool:
        return not self.state.queue or self.state.processed_count >= self.max_pages

    def step(self) -> Optional[PageResult]:
        """
        Visit the next queued URL.

        Returns the page result, or None when the URL was already visited
        or the frontier is drained.
        """
        if self.done:
            self.status = FrontierStatus.DRAINED
            return None
        self.status = FrontierStatus.RUNNING

        state = self.state
        url = state.pop()
        if url in state.visited:
            logger.debug("Skipping (visited) %s", url)
            return None
        state.visited.add(url)

        if self.verbose:
            print_progress(state.processed_count, len(state.visited) + len(state.queue), len(state.queue), self.max_pages)

        new_links = 0
        try:
            response = self.fetcher.fetch_document(url)
        except PageFetchError as e:
            logger.warning("Error fetching %s: %s", url, e.original)
            result = PageResult.failed(url, str(e.original), e.status_code)
        else:
            result = self.analyzer.analyze(
                url, response.text, response.status_code, response.content_type
            )
            state.pages_analyzed += 1
            logger.info(
                "Analyzed %s (status %s): %d images found, %d analyzed, %d without alt",
                url, result.status_code, result.total_images_found,
                result.images_analyzed, result.images_without_alt_count,
            )
            if self.follow_links:
                new_links = self.enqueue_links(result.internal_links)

        state.processed_count += 1
        self.results.append(result)
        if self.verbose:
            print_scan_line(result, new_links)
        if self.done:
            self.status = FrontierStatus.DRAINED
        return result

    def enqueue_links(self, links) -> int:
        """Normalize and queue same-origin links. Returns how many were new."""
        added = 0
        for link in links:
            try:
                target = normalize_url(link)
            except InvalidURLError:
                continue
            if not is_local(target, self.origin):
                continue
            if self.state.enqueue(target):
                logger.debug("Added to crawl queue: %s", target)
                added += 1
        return added

    def run(self) -> List[PageResult]:
        """Step until the queue is empty or the page cap is reached."""
        while not self.done:
            self.step()
        self.status = FrontierStatus.DRAINED
        if self.verbose:
            sys.stderr.write("\n\n")
        return self.results


def crawl(
    options: CrawlOptions,
    fetcher: Optional[Fetcher] = None,
    verbose: bool = False,
) -> CrawlReport:
    """
    Crawl a site from `options.start_url` and audit the images on every page.

    Args:
        options: Crawl input (seed URL, limits, analysis switches, HTTP settings).
        fetcher: Page/metadata fetcher. Defaults to a requests-backed HttpFetcher.
        verbose: Whether to print progress information.

    Returns:
        CrawlReport with the domain summary and the pages in visit order.

    Raises:
        InvalidInputError: the options are missing a usable seed URL or have bad limits.
    """
    seed = options.validate()
    fetcher = fetcher or HttpFetcher.from_options(options)

    inspector = ImageInspector(fetcher, size_analysis=options.size_analysis)
    analyzer = PageAnalyzer(
        inspector,
        max_images_per_page=options.image_limit,
        alt_analysis=options.alt_analysis,
    )
    frontier = CrawlFrontier(
        seed,
        fetcher,
        analyzer,
        max_pages=options.effective_max_pages,
        follow_links=options.crawl_enabled,
        verbose=verbose,
    )

    if verbose:
        sys.stderr.write(f"Starting crawl from: {seed}\n")
        sys.stderr.write(f"Max pages: {frontier.max_pages}\n\n")

    pages = frontier.run()
    report = CrawlReport(
        domain=summarize_domain(pages),
        pages=pages,
        pages_analyzed=frontier.state.pages_analyzed,
        completed_at=utc_now_iso(),
        engine_version=__version__,
    )
    logger.info(
        "Crawl finished: %d pages processed, %d analyzed",
        report.total_pages_processed, report.pages_analyzed,
    )
    return report
