"""Aggregation of verification results and the persisted error log."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from sitecheck.crawler.models import Outcome, Report, VerificationResult


def format_error_line(result: VerificationResult) -> str:
    """Render one failing result as a single human-readable line."""
    if result.outcome is Outcome.HTTP_ERROR:
        label = f"HTTP {result.status_code}"
    else:
        label = result.error or "network error"
    return (
        f"{label} for {result.target_url} "
        f"(linked from {result.origin_page_url} with text {result.origin_anchor_text})"
    )


def aggregate(results: Iterable[VerificationResult]) -> Report:
    """Partition *results* into healthy and failing, keeping arrival order."""
    report = Report()
    for result in results:
        if result.is_ok:
            report.healthy.append(result)
        else:
            report.errors.append(result)
            report.error_lines.append(format_error_line(result))
    return report


def log_file_path(logs_dir: Path, host: str, started_at: datetime) -> Path:
    """Return ``<logs_dir>/result_<host>_<unix timestamp>.log``."""
    return Path(logs_dir) / f"result_{host}_{int(started_at.timestamp())}.log"


def write_error_log(
    report: Report,
    logs_dir: Path,
    host: str,
    started_at: datetime,
) -> Optional[Path]:
    """Append the report's error lines to the run's log file.

    Returns the log path, or ``None`` without touching the filesystem when the
    report has no errors.

    Raises:
        OSError: If the log directory or file cannot be created.
    """
    if not report.errors:
        return None

    path = log_file_path(logs_dir, host, started_at)
    path.parent.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now().strftime("%Y/%m/%d %H:%M:%S")
    with path.open("a", encoding="utf-8") as fh:
        for line in report.error_lines:
            fh.write(f"{stamp} {line}\n")
    return path
