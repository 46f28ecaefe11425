"""
HTTP access for pages and image metadata, built on a requests session.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Type

import requests

from image_auditor.errors import FetchError, ImageFetchError, PageFetchError

logger = logging.getLogger(__name__)

PAGE_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
IMAGE_ACCEPT = "image/*"

NO_HEADERS: Mapping[str, str] = MappingProxyType({})

# Replies below this status are handed back to the caller, the rest are failures
ACCEPT_STATUS_BELOW = 500


class HttpResponse(NamedTuple):
    """Response from an HTTP fetch operation."""
    status_code: int
    text: str = ""
    headers: Mapping[str, str] = NO_HEADERS

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> Optional[str]:
        return self.header("Content-Type")


class HttpFetcher:
    """
    Fetch pages (GET) and image metadata (HEAD) with bounded timeouts and redirects.

    `session` may be injected so tests never touch the network.
    """

    def __init__(
        self,
        user_agent: str,
        timeout_s: float = 30.0,
        max_redirects: int = 5,
        image_timeout_s: float = 10.0,
        image_max_redirects: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self.max_redirects = max_redirects
        self.image_timeout_s = image_timeout_s
        self.image_max_redirects = image_max_redirects
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    @classmethod
    def from_options(cls, options, session: Optional[requests.Session] = None) -> "HttpFetcher":
        return cls(
            user_agent=options.user_agent,
            timeout_s=options.request_timeout_s,
            max_redirects=options.max_redirects,
            image_timeout_s=options.image_timeout_s,
            image_max_redirects=options.image_max_redirects,
            session=session,
        )

    def fetch_document(self, url: str) -> HttpResponse:
        """GET a page. Raises PageFetchError on transport failure or a 5xx reply."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": PAGE_ACCEPT,
            "Accept-Language": "en-US,en;q=0.9",
        }
        resp = self._request(
            "GET", url, headers, self.timeout_s, self.max_redirects, PageFetchError
        )
        return HttpResponse(resp.status_code, resp.text, resp.headers)

    def fetch_metadata(self, url: str) -> HttpResponse:
        """HEAD an image (no body download). Raises ImageFetchError on failure."""
        headers = {"User-Agent": self.user_agent, "Accept": IMAGE_ACCEPT}
        resp = self._request(
            "HEAD", url, headers, self.image_timeout_s, self.image_max_redirects, ImageFetchError
        )
        return HttpResponse(resp.status_code, "", resp.headers)

    def _request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        timeout_s: float,
        max_redirects: int,
        error_cls: Type[FetchError],
    ) -> requests.Response:
        # Session.max_redirects is the only knob requests offers for the redirect bound
        self.session.max_redirects = max_redirects
        try:
            resp = self.session.request(
                method, url, headers=headers, timeout=timeout_s, allow_redirects=True
            )
        except requests.exceptions.RequestException as e:
            raise error_cls(url, e) from e

        if resp.status_code >= ACCEPT_STATUS_BELOW:
            logger.debug("%s %s -> %s", method, url, resp.status_code)
            try:
                resp.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise error_cls(url, e, status_code=resp.status_code) from e
            # raise_for_status ignores non-standard codes such as 999
            raise error_cls(
                url, RuntimeError(f"Request failed with status code {resp.status_code}"),
                status_code=resp.status_code,
            )
        return resp
