"""HTTP helpers shared by the sitemap resolver, harvester and verifier."""

from __future__ import annotations

import httpx

from sitecheck.config import Settings
from sitecheck.errors import HttpError, NetworkError
from sitecheck.crawler.models import is_healthy_status

# Errors that mean "no usable response came back".  ``InvalidURL`` is not an
# ``httpx.HTTPError`` subclass but is raised by the client for malformed URLs;
# a host that fails IDNA encoding (``https://xn--/``) surfaces as ``UnicodeError``.
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, UnicodeError)


def build_client(settings: Settings) -> httpx.Client:
    """Return a client carrying the crawler user-agent and request timeout.

    The client is thread-safe and is shared by every task of a run; its
    connection pool is sized to the larger of the two concurrency limits.
    """
    pool_size = max(settings.concurrency, settings.page_concurrency)
    return httpx.Client(
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout,
        follow_redirects=True,
        limits=httpx.Limits(max_connections=pool_size, max_keepalive_connections=pool_size),
    )


def describe_error(exc: Exception) -> str:
    """Return a one-line description of a transport failure."""
    detail = str(exc).strip()
    name = type(exc).__name__
    return f"{name}: {detail}" if detail else name


def fetch_document(client: httpx.Client, url: str) -> httpx.Response:
    """GET *url* and return the fully-read response.

    Raises:
        NetworkError: On any transport-level failure.
        HttpError: If the server answers with a non-2xx status code.
    """
    try:
        response = client.get(url)
    except TRANSPORT_ERRORS as exc:
        raise NetworkError(url, describe_error(exc)) from exc

    if not is_healthy_status(response.status_code):
        raise HttpError(url, response.status_code)
    return response
