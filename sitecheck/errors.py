"""Exception types raised by the crawl pipeline."""

from __future__ import annotations


class SiteCheckError(Exception):
    """Base class for every error raised by :mod:`sitecheck`."""


class InvalidEntrypoint(SiteCheckError):
    """The entrypoint is not an absolute ``http(s)`` URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"invalid entrypoint URL {url!r}: expected an absolute http(s) URL")
        self.url = url


class FetchError(SiteCheckError):
    """A sitemap or page document could not be retrieved."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class HttpError(FetchError):
    """The transport succeeded but the server answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"HTTP {status_code}")
        self.status_code = status_code


class NetworkError(FetchError):
    """A transport-level failure (timeout, DNS, refused connection, TLS)."""


class ParseError(SiteCheckError):
    """A sitemap document is neither a sitemap index nor a URL set."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to parse {url}: {reason}")
        self.url = url
        self.reason = reason


class CrawlCancelled(SiteCheckError):
    """The run was cancelled through its cancellation token."""
