"""Page link harvesting: fetch a page and collect the links it references."""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import List, Optional
from urllib.parse import urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from sitecheck.crawler.fetcher import fetch_document
from sitecheck.crawler.models import Link
from sitecheck.crawler.registry import Registries

logger = logging.getLogger(__name__)

_FETCHABLE_SCHEMES = frozenset({"http", "https"})


# ---------------------------------------------------------------------------
# URL normalisation
# ---------------------------------------------------------------------------

def normalize_url(href: str, page_url: str, keep_query: bool = False) -> Optional[str]:
    """Return the absolute, comparable form of *href* as found on *page_url*.

    The href is resolved against the page, cut at the first ``#`` and, unless
    *keep_query* is set, cut at the first ``?``.  Returns ``None`` for empty or
    fragment-only hrefs and for anything that is not an ``http(s)`` URL
    (``mailto:``, ``tel:``, ``javascript:`` …).
    """
    href = href.strip()
    if not href or href.startswith("#"):
        return None

    try:
        absolute = urljoin(page_url, href)
        scheme = urlsplit(absolute).scheme.lower()
    except ValueError:
        return None

    if scheme not in _FETCHABLE_SCHEMES:
        return None

    absolute = absolute.split("#", 1)[0]
    if not keep_query:
        absolute = absolute.split("?", 1)[0]
    return absolute


def anchor_text(tag) -> str:
    """Return the visible text of an ``<a>`` tag with whitespace collapsed."""
    return " ".join(tag.get_text(" ").split())


# ---------------------------------------------------------------------------
# Harvester
# ---------------------------------------------------------------------------

class PageLinkHarvester:
    """Collect newly discovered links from crawled pages.

    Each accepted target URL is registered in ``registries.links`` before the
    link is returned, so two pages harvested at the same time can never both
    report the same target.
    """

    def __init__(
        self,
        client: httpx.Client,
        registries: Registries,
        keep_query: bool = False,
        delay: float = 0.0,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self._client = client
        self._registries = registries
        self._keep_query = keep_query
        self._delay = max(0.0, delay)
        self._cancel = cancel or threading.Event()

    def harvest(self, page_url: str) -> List[Link]:
        """Fetch *page_url* and return the links on it not seen before.

        Raises:
            FetchError: If the page cannot be retrieved or answers non-2xx.
        """
        if self._cancel.is_set():
            return []

        if self._delay:
            time.sleep(random.uniform(0, self._delay))

        logger.info("Link scraping: %s", page_url)
        response = fetch_document(self._client, page_url)

        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type.lower():
            logger.debug("Not HTML (%s), no links taken from %s", content_type, page_url)
            return []

        return self.extract_links(page_url, response.text, base_url=str(response.url))

    def extract_links(self, page_url: str, html: str, base_url: Optional[str] = None) -> List[Link]:
        """Return the new links found in *html*, registering each target."""
        soup = BeautifulSoup(html, "html.parser")
        links: List[Link] = []
        for tag in soup.find_all("a", href=True):
            target = normalize_url(tag["href"], base_url or page_url, self._keep_query)
            if target is None:
                continue
            if not self._registries.links.add(target):
                continue
            links.append(
                Link(origin_page_url=page_url, origin_anchor_text=anchor_text(tag), target_url=target)
            )
        return links
