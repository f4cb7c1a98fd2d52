"""SiteCheck CLI: entry-point for crawl-and-verify runs.

Usage:
    python cli/main.py --help
    python cli/main.py check --url https://example.com/sitemap.xml

The ``check`` command resolves the sitemap, harvests every link from the
listed pages, asks for confirmation (unless ``--no-verify``) and then checks
each link, printing a summary and writing failures to the logs directory.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from sitecheck.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
from dataclasses import replace
from typing import Any, Optional

import typer

from sitecheck.config import settings
from sitecheck.crawler import CrawlRun, Link, RunSummary
from sitecheck.errors import CrawlCancelled, FetchError, InvalidEntrypoint
from sitecheck.logger import setup_logging

app = typer.Typer(
    name="sitecheck",
    help="Crawl a site from its sitemap and verify every link.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """SiteCheck: sitemap-driven broken link checker."""


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _print_summary(summary: RunSummary) -> None:
    report = summary.report
    if report.error_lines:
        typer.echo("\nErrors found while checking URLs:")
        for line in report.error_lines:
            typer.echo(f"  {line}")
    if summary.log_path is not None:
        typer.echo(f"\nHTTP errors found. Check logfile ({summary.log_path}) for results.")
    typer.echo(
        f"\nA total of {report.total} links on {len(summary.pages)} pages was checked "
        f"and {report.error_count} produced errors of some sort."
    )
    typer.echo(f"\nTotal execution time: {summary.elapsed:.2f}s")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("check")
def check(
    url: Optional[str] = typer.Option(None, "--url", help="Entrypoint sitemap URL."),
    limit: Optional[int] = typer.Option(
        None, "--limit", min=1, help="Concurrent link checks (default from settings)."
    ),
    page_limit: Optional[int] = typer.Option(
        None, "--page-limit", min=1, help="Concurrent sitemap/page fetches."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.1, help="Timeout for each request, in seconds."
    ),
    delay: Optional[float] = typer.Option(
        None, "--delay", min=0.0, help="Maximum random delay before each page fetch."
    ),
    verify: bool = typer.Option(
        True, "--verify/--no-verify", help="Ask before verifying the discovered links."
    ),
    keep_query: Optional[bool] = typer.Option(
        None, "--keep-query/--strip-query", help="Keep query strings in link URLs."
    ),
    logs_dir: Optional[Path] = typer.Option(None, "--logs-dir", help="Directory for error logs."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request."),
) -> None:
    """Crawl the sitemap at URL and check every link on its pages."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    if not url:
        url = typer.prompt("Enter sitemap URL")

    overrides: dict[str, Any] = {
        "concurrency": limit,
        "page_concurrency": page_limit,
        "request_timeout": timeout,
        "page_delay": delay,
        "keep_query": keep_query,
        "logs_dir": logs_dir,
    }
    run_settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    try:
        run = CrawlRun(url, settings=run_settings)
    except InvalidEntrypoint as exc:
        typer.echo(f"[check] {exc}", err=True)
        raise typer.Exit(1)

    def confirm(pages: list[str], links: list[Link]) -> bool:
        typer.echo(f"A total of {len(links)} links were found in {len(pages)} pages")
        if not verify:
            return True
        return typer.confirm("Continue verifying URLs?", default=False)

    try:
        with run:
            summary = run.run(confirm=confirm)
    except FetchError as exc:
        typer.echo(f"[check] {exc}", err=True)
        raise typer.Exit(1)
    except CrawlCancelled:
        typer.echo("[check] Verification cancelled.")
        raise typer.Exit(1)
    except OSError as exc:
        typer.echo(f"[check] Could not write error log: {exc}", err=True)
        raise typer.Exit(1)

    _print_summary(summary)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
