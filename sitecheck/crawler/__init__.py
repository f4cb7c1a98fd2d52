"""Crawler package: sitemap resolution, link harvesting & verification."""

from sitecheck.crawler.harvester import PageLinkHarvester, normalize_url
from sitecheck.crawler.models import (
    STATUS_NONE,
    Link,
    Outcome,
    Report,
    RunSummary,
    VerificationResult,
)
from sitecheck.crawler.pipeline import CrawlRun
from sitecheck.crawler.report import aggregate, write_error_log
from sitecheck.crawler.sitemap import SitemapResolver
from sitecheck.crawler.verifier import LinkVerifier

__all__ = [
    "CrawlRun",
    "SitemapResolver",
    "PageLinkHarvester",
    "LinkVerifier",
    "normalize_url",
    "aggregate",
    "write_error_log",
    "Link",
    "VerificationResult",
    "Outcome",
    "Report",
    "RunSummary",
    "STATUS_NONE",
]
