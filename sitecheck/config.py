"""Centralised settings for SiteCheck.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  The CLI applies its
per-run overrides on top with :func:`dataclasses.replace`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

DEFAULT_USER_AGENT = "SiteCheck Link Crawler/1.0"


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Concurrency
    # ------------------------------------------------------------------
    concurrency: int = field(
        default_factory=lambda: int(os.environ.get("SITECHECK_CONCURRENCY", "10"))
    )
    page_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("SITECHECK_PAGE_CONCURRENCY", "50"))
    )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SITECHECK_REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("SITECHECK_USER_AGENT", DEFAULT_USER_AGENT)
    )
    page_delay: float = field(
        default_factory=lambda: float(os.environ.get("SITECHECK_PAGE_DELAY", "3.0"))
    )

    # ------------------------------------------------------------------
    # Link normalisation
    # ------------------------------------------------------------------
    keep_query: bool = field(
        default_factory=lambda: _env_bool("SITECHECK_KEEP_QUERY", "false")
    )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    logs_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("SITECHECK_LOGS_DIR", "logs"))
    )


# Module-level singleton, import this everywhere:
#   from sitecheck.config import settings
settings = Settings()
