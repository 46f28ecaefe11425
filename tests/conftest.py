import pytest

from image_auditor.errors import PageFetchError
from image_auditor.fetcher import HttpResponse


class FakeFetcher:
    """In-memory stand-in for HttpFetcher.

    `pages` maps URL -> html string, HttpResponse, or an exception to raise.
    `images` maps URL -> HttpResponse or an exception to raise.
    """

    def __init__(self, pages=None, images=None):
        self.pages = dict(pages or {})
        self.images = dict(images or {})
        self.document_calls = []
        self.metadata_calls = []

    def fetch_document(self, url):
        self.document_calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise PageFetchError(url, ConnectionRefusedError(111, "Connection refused"))
        if isinstance(page, Exception):
            raise page
        if isinstance(page, HttpResponse):
            return page
        return HttpResponse(200, page, {"Content-Type": "text/html; charset=utf-8"})

    def fetch_metadata(self, url):
        self.metadata_calls.append(url)
        image = self.images.get(url)
        if image is None:
            return HttpResponse(404, "", {})
        if isinstance(image, Exception):
            raise image
        return image


def html_page(body, title="Test page"):
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


@pytest.fixture
def fetcher_factory():
    """Build a FakeFetcher: fetcher_factory(pages={...}, images={...})."""
    return FakeFetcher


@pytest.fixture
def page_html():
    """Wrap a body snippet in a minimal HTML document: page_html(body, title=...)."""
    return html_page
