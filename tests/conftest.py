"""Shared fixtures for the SiteCheck test-suite."""

from __future__ import annotations

from typing import Iterator

import httpx
import pytest

from sitecheck.config import DEFAULT_USER_AGENT, Settings
from sitecheck.crawler.registry import Registries


@pytest.fixture
def registries() -> Registries:
    return Registries()


@pytest.fixture
def client() -> Iterator[httpx.Client]:
    with httpx.Client(headers={"User-Agent": DEFAULT_USER_AGENT}, timeout=5.0) as c:
        yield c


@pytest.fixture
def fast_settings(tmp_path) -> Settings:
    """Settings with no page delay and logs written under ``tmp_path``."""
    return Settings(
        concurrency=4,
        page_concurrency=4,
        request_timeout=5.0,
        user_agent=DEFAULT_USER_AGENT,
        page_delay=0.0,
        keep_query=False,
        logs_dir=tmp_path / "logs",
    )
