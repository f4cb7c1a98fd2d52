"""Two-phase link verification.

Every link first gets a ``HEAD`` request.  A response of any status is final:
2xx is healthy, anything else an HTTP error.  A link whose ``HEAD`` fails at
the transport level (timeout, DNS, refused connection, TLS …) is retried with a
full ``GET`` once the whole ``HEAD`` pass has drained; a failure there is final
and recorded as a network error.

Worker threads never touch shared state.  Each task returns its own result and
the calling thread collects them through ``as_completed``.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import httpx

from sitecheck.crawler.fetcher import TRANSPORT_ERRORS, describe_error
from sitecheck.crawler.models import Link, VerificationResult

logger = logging.getLogger(__name__)

_CANCELLED = object()


class LinkVerifier:
    """Verify links with a bounded number of requests in flight.

    Args:
        client: Shared HTTP client of the run.
        concurrency: Worker count for each of the two passes.
        cancel: Optional cancellation token.  Links not yet started when it is
            set produce no result.
    """

    def __init__(
        self,
        client: httpx.Client,
        concurrency: int,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self._client = client
        self._concurrency = max(1, concurrency)
        self._cancel = cancel or threading.Event()

    def verify(self, links: Sequence[Link]) -> List[VerificationResult]:
        """Return one :class:`VerificationResult` per distinct target URL.

        Results are listed in the order they were settled; a link that needed
        the ``GET`` retry is therefore listed after every ``HEAD`` result.
        """
        results: Dict[str, VerificationResult] = {}
        retry: List[Link] = []

        for link, result in self._run_pass(links, self.check):
            if result is None:
                retry.append(link)
            else:
                results.setdefault(link.target_url, result)

        if retry:
            logger.info("Retrying %d link(s) with GET", len(retry))

        for link, result in self._run_pass(retry, self.fetch):
            results[link.target_url] = result

        return list(results.values())

    def check(self, link: Link) -> Optional[VerificationResult]:
        """Issue the ``HEAD`` existence check for *link*.

        Returns ``None`` when no response was obtained, meaning the link must
        go through the ``GET`` retry.
        """
        try:
            response = self._client.head(link.target_url)
        except TRANSPORT_ERRORS as exc:
            logger.debug("HEAD error for %s: %s", link.target_url, describe_error(exc))
            return None

        logger.debug("HEAD response %d for %s", response.status_code, link.target_url)
        return VerificationResult.from_status(link, response.status_code, "HEAD")

    def fetch(self, link: Link) -> VerificationResult:
        """Issue the fallback ``GET`` for *link*; the outcome is always final."""
        try:
            with self._client.stream("GET", link.target_url) as response:
                for _ in response.iter_raw():
                    pass
                status_code = response.status_code
        except TRANSPORT_ERRORS as exc:
            error = describe_error(exc)
            logger.debug("GET error for %s: %s", link.target_url, error)
            return VerificationResult.from_error(link, error, "GET")

        logger.debug("GET response %d for %s", status_code, link.target_url)
        return VerificationResult.from_status(link, status_code, "GET")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_pass(
        self,
        links: Sequence[Link],
        task: Callable[[Link], Optional[VerificationResult]],
    ) -> Iterator[Tuple[Link, Optional[VerificationResult]]]:
        """Run *task* over *links* in a bounded pool, yielding as each settles.

        The pool is fully drained before this generator is exhausted.
        """
        if not links:
            return

        def guarded(link: Link):
            if self._cancel.is_set():
                return _CANCELLED
            return task(link)

        with ThreadPoolExecutor(max_workers=min(self._concurrency, len(links))) as pool:
            future_to_link = {pool.submit(guarded, link): link for link in links}
            for future in as_completed(future_to_link):
                result = future.result()
                if result is _CANCELLED:
                    continue
                yield future_to_link[future], result
