"""Data models for the crawl pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

# Status recorded when no HTTP response was ever obtained.
STATUS_NONE = 0


class Outcome(str, Enum):
    HEALTHY = "healthy"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


def is_healthy_status(status_code: int) -> bool:
    """Return ``True`` for any status in the inclusive 2xx range."""
    return 200 <= status_code <= 299


@dataclass(frozen=True)
class Link:
    """A hyperlink discovered on a crawled page."""

    origin_page_url: str
    origin_anchor_text: str
    target_url: str


@dataclass(frozen=True)
class VerificationResult:
    """The final liveness verdict for one distinct target URL."""

    origin_page_url: str
    origin_anchor_text: str
    target_url: str
    status_code: int
    outcome: Outcome
    method: str = "HEAD"
    error: str = ""

    @classmethod
    def from_status(cls, link: Link, status_code: int, method: str) -> "VerificationResult":
        outcome = Outcome.HEALTHY if is_healthy_status(status_code) else Outcome.HTTP_ERROR
        return cls(
            origin_page_url=link.origin_page_url,
            origin_anchor_text=link.origin_anchor_text,
            target_url=link.target_url,
            status_code=status_code,
            outcome=outcome,
            method=method,
        )

    @classmethod
    def from_error(cls, link: Link, error: str, method: str) -> "VerificationResult":
        return cls(
            origin_page_url=link.origin_page_url,
            origin_anchor_text=link.origin_anchor_text,
            target_url=link.target_url,
            status_code=STATUS_NONE,
            outcome=Outcome.NETWORK_ERROR,
            method=method,
            error=error,
        )

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.HEALTHY


@dataclass
class Report:
    """Aggregated verification results."""

    healthy: List[VerificationResult] = field(default_factory=list)
    errors: List[VerificationResult] = field(default_factory=list)
    error_lines: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.healthy) + len(self.errors)

    @property
    def healthy_count(self) -> int:
        return len(self.healthy)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass
class RunSummary:
    """Everything a caller needs after a completed run."""

    entrypoint: str
    pages: List[str]
    links: List[Link]
    results: List[VerificationResult]
    report: Report
    elapsed: float
    log_path: Optional[Path] = None
