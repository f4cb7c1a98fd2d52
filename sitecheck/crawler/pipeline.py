"""The crawl-and-verify run.

:class:`CrawlRun` owns everything a single run needs (the HTTP client, the
dedup registries, the cancellation token and the timings) and sequences the
phases with hard barriers between them:

1. resolve the sitemap into page URLs;
2. harvest links from every page **in parallel**;
3. verify every link (``HEAD`` pass, then ``GET`` retry pass);
4. aggregate the results and write the error log.

A run object is meant to be used once and discarded::

    with CrawlRun("https://example.com/sitemap.xml") as run:
        summary = run.run()
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlsplit

import httpx

from sitecheck.config import Settings, settings as default_settings
from sitecheck.errors import CrawlCancelled, FetchError, InvalidEntrypoint, ParseError
from sitecheck.crawler.fetcher import build_client
from sitecheck.crawler.harvester import PageLinkHarvester
from sitecheck.crawler.models import Link, RunSummary, VerificationResult
from sitecheck.crawler.registry import Registries
from sitecheck.crawler.report import aggregate, write_error_log
from sitecheck.crawler.sitemap import SitemapResolver
from sitecheck.crawler.verifier import LinkVerifier

logger = logging.getLogger(__name__)

# Called with the discovered pages and links before verification starts;
# returning False stops the run.
ConfirmCallback = Callable[[List[str], List[Link]], bool]


def entrypoint_host(url: str) -> str:
    """Return the host of *url*, validating it as an absolute http(s) URL.

    Raises:
        InvalidEntrypoint: If *url* has no http(s) scheme or no host.
    """
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except ValueError as exc:
        raise InvalidEntrypoint(url) from exc
    if parts.scheme.lower() not in {"http", "https"} or not host:
        raise InvalidEntrypoint(url)
    return host


class CrawlRun:
    """A single crawl of one site, from sitemap to report.

    Args:
        entrypoint: URL of the sitemap (or sitemap index) to start from.
        settings: Run configuration; defaults to the module-level settings.
        client: Optional pre-built HTTP client.  When omitted the run builds
            its own and closes it on exit.
    """

    def __init__(
        self,
        entrypoint: str,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.entrypoint = entrypoint.strip()
        self.host = entrypoint_host(self.entrypoint)
        self.settings = settings or replace(default_settings)
        self.registries = Registries()
        self.started_at = datetime.now()

        self._cancel = threading.Event()
        self._client = client
        self._owns_client = client is None
        self._clock = time.monotonic()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> "CrawlRun":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = build_client(self.settings)
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this run created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def cancel(self) -> None:
        """Ask the run to stop; pending fetches are skipped."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._clock

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def discover_pages(self) -> List[str]:
        """Resolve the entrypoint sitemap into the list of pages to crawl.

        Raises:
            FetchError: If the entrypoint itself cannot be fetched.
            CrawlCancelled: If the run was cancelled meanwhile.
        """
        resolver = SitemapResolver(
            self.client,
            self.registries,
            concurrency=self.settings.page_concurrency,
            cancel=self._cancel,
        )
        try:
            pages = resolver.resolve_entrypoint(self.entrypoint)
        except ParseError as exc:
            logger.warning("Empty result: %s", exc)
            pages = []

        self._raise_if_cancelled()
        logger.info("Sitemap resolved to %d page(s)", len(pages))
        return pages

    def harvest_links(self, pages: Sequence[str]) -> List[Link]:
        """Harvest links from *pages* in parallel.

        A page that cannot be fetched is logged and contributes no links.
        """
        harvester = PageLinkHarvester(
            self.client,
            self.registries,
            keep_query=self.settings.keep_query,
            delay=self.settings.page_delay,
            cancel=self._cancel,
        )
        links: List[Link] = []
        if pages:
            workers = min(self.settings.page_concurrency, len(pages))
            with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
                future_to_page = {pool.submit(harvester.harvest, page): page for page in pages}
                for future in as_completed(future_to_page):
                    page = future_to_page[future]
                    try:
                        links.extend(future.result())
                    except FetchError as exc:
                        logger.warning("Skipping page %s: %s", page, exc)

        self._raise_if_cancelled()
        logger.info("Harvested %d new link(s) from %d page(s)", len(links), len(pages))
        return links

    def verify_links(self, links: Sequence[Link]) -> List[VerificationResult]:
        """Verify *links*; every link yields exactly one result."""
        verifier = LinkVerifier(self.client, self.settings.concurrency, cancel=self._cancel)
        results = verifier.verify(links)
        self._raise_if_cancelled()
        return results

    def summarize(
        self,
        pages: Sequence[str],
        links: Sequence[Link],
        results: Sequence[VerificationResult],
    ) -> RunSummary:
        """Aggregate *results* and write the error log when there are failures.

        Raises:
            OSError: If the error log cannot be written.
        """
        report = aggregate(results)
        log_path = write_error_log(report, self.settings.logs_dir, self.host, self.started_at)
        return RunSummary(
            entrypoint=self.entrypoint,
            pages=list(pages),
            links=list(links),
            results=list(results),
            report=report,
            elapsed=self.elapsed,
            log_path=log_path,
        )

    def run(self, confirm: Optional[ConfirmCallback] = None) -> RunSummary:
        """Run every phase in order and return the summary.

        Args:
            confirm: Optional gate called between harvesting and
                verification.  Returning ``False`` cancels the run.

        Raises:
            FetchError: If the entrypoint cannot be fetched.
            CrawlCancelled: If the run was cancelled or *confirm* declined.
            OSError: If the error log cannot be written.
        """
        pages = self.discover_pages()
        links = self.harvest_links(pages)

        if confirm is not None and not confirm(pages, links):
            self.cancel()
            raise CrawlCancelled("verification declined")

        logger.info("Verifying %d link(s)", len(links))
        results = self.verify_links(links)
        return self.summarize(pages, links, results)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _raise_if_cancelled(self) -> None:
        if self._cancel.is_set():
            raise CrawlCancelled("run cancelled")
