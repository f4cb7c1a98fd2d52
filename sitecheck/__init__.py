"""SiteCheck: sitemap-driven broken link checker."""

__version__ = "1.0.0"
