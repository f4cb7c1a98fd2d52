"""Sitemap resolution: turns an entrypoint sitemap into a flat list of page URLs.

Sitemap indexes are expanded recursively, each child sitemap resolved in its
own worker thread.  Every sitemap node and page URL passes through the run's
page registry before it is dispatched, which both removes duplicates and stops
cycles between indexes.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Iterator, List, Optional

import httpx
from bs4 import BeautifulSoup

from sitecheck.errors import FetchError, ParseError
from sitecheck.crawler.fetcher import fetch_document
from sitecheck.crawler.registry import Registries

logger = logging.getLogger(__name__)


def _locations(entries: Iterable) -> Iterator[str]:
    """Yield the trimmed ``<loc>`` text of each ``<sitemap>``/``<url>`` entry."""
    for entry in entries:
        loc = entry.find("loc", recursive=False)
        if loc is None:
            continue
        text = loc.get_text(strip=True)
        if text:
            yield text


class SitemapResolver:
    """Resolve sitemap documents into page URLs.

    Args:
        client: Shared HTTP client of the run.
        registries: The run's dedup registries; only ``registries.pages`` is used.
        concurrency: Maximum number of sitemap documents fetched at once, and
            the worker count used when expanding an index.
        cancel: Optional cancellation token.  Once set, unresolved branches
            contribute nothing.
    """

    def __init__(
        self,
        client: httpx.Client,
        registries: Registries,
        concurrency: int,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self._client = client
        self._registries = registries
        self._concurrency = max(1, concurrency)
        self._gate = threading.BoundedSemaphore(self._concurrency)
        self._cancel = cancel or threading.Event()

    def resolve_entrypoint(self, url: str) -> List[str]:
        """Register *url* as visited and resolve it.

        Raises:
            FetchError: If the entrypoint document cannot be retrieved.
            ParseError: If it is neither a sitemap index nor a URL set.
        """
        self._registries.pages.add(url)
        return self.resolve(url)

    def resolve(self, url: str) -> List[str]:
        """Fetch the sitemap at *url* and return the page URLs it leads to.

        Raises:
            FetchError: If the document cannot be retrieved.
            ParseError: If it is neither a sitemap index nor a URL set.
        """
        if self._cancel.is_set():
            return []

        with self._gate:
            logger.info("Fetching sitemap %s", url)
            response = fetch_document(self._client, url)
            content = response.content

        return self._parse(url, content)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse(self, url: str, content: bytes) -> List[str]:
        doc = BeautifulSoup(content, "xml")

        sitemaps = doc.find_all("sitemap")
        if sitemaps:
            children = [loc for loc in _locations(sitemaps) if self._registries.pages.add(loc)]
            logger.info("Sitemap index %s lists %d new child sitemap(s)", url, len(children))
            return self._resolve_children(children)

        urls = doc.find_all("url")
        if urls:
            pages = [loc for loc in _locations(urls) if self._registries.pages.add(loc)]
            logger.info("Sitemap %s lists %d new page(s)", url, len(pages))
            return pages

        raise ParseError(url, "document has neither <sitemap> nor <url> entries")

    def _resolve_children(self, children: List[str]) -> List[str]:
        if not children:
            return []

        pages: List[str] = []
        with ThreadPoolExecutor(max_workers=min(self._concurrency, len(children))) as pool:
            future_to_url = {pool.submit(self.resolve, child): child for child in children}
            for future in as_completed(future_to_url):
                child = future_to_url[future]
                try:
                    pages.extend(future.result())
                except (FetchError, ParseError) as exc:
                    logger.warning("Skipping sitemap branch %s: %s", child, exc)
        return pages
