"""Tests for recursive sitemap resolution.

All sitemap documents are served through ``respx``; no real network calls are
made.
"""

from __future__ import annotations

import threading

import httpx
import pytest
import respx

from sitecheck.crawler.sitemap import SitemapResolver
from sitecheck.errors import FetchError, HttpError, NetworkError, ParseError

_ROOT = "https://example.com/sitemap.xml"


def _resolver(client, registries, concurrency: int = 4, cancel=None) -> SitemapResolver:
    return SitemapResolver(client, registries, concurrency=concurrency, cancel=cancel)


def _xml(body: str) -> httpx.Response:
    return httpx.Response(200, content=body.encode(), headers={"Content-Type": "application/xml"})


def _urlset(*locs: str) -> str:
    """Return a leaf sitemap listing *locs*."""
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def _sitemap_index(*locs: str) -> str:
    """Return a sitemap index pointing at the child sitemaps *locs*."""
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )


class TestLeafSitemap:
    def test_returns_page_urls(self, client, registries) -> None:
        with respx.mock:
            respx.get(_ROOT).mock(
                return_value=_xml(_urlset("https://example.com/", "https://example.com/about"))
            )
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert pages == ["https://example.com/", "https://example.com/about"]

    def test_duplicate_locs_dropped(self, client, registries) -> None:
        with respx.mock:
            respx.get(_ROOT).mock(
                return_value=_xml(_urlset("https://example.com/a", "https://example.com/a"))
            )
            pages = _resolver(client, registries).resolve(_ROOT)

        assert pages == ["https://example.com/a"]

    def test_loc_whitespace_trimmed_and_empty_skipped(self, client, registries) -> None:
        body = _urlset("  https://example.com/a\n", "")
        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(body))
            pages = _resolver(client, registries).resolve(_ROOT)

        assert pages == ["https://example.com/a"]

    def test_pages_registered_as_visited(self, client, registries) -> None:
        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(_urlset("https://example.com/a")))
            _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert _ROOT in registries.pages
        assert "https://example.com/a" in registries.pages


class TestSitemapIndex:
    def test_index_of_two_leaves_resolves_six_pages(self, client, registries) -> None:
        leaf_a = "https://example.com/sitemap-a.xml"
        leaf_b = "https://example.com/sitemap-b.xml"
        a_pages = [f"https://example.com/a/{i}" for i in range(3)]
        b_pages = [f"https://example.com/b/{i}" for i in range(3)]

        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(_sitemap_index(leaf_a, leaf_b)))
            respx.get(leaf_a).mock(return_value=_xml(_urlset(*a_pages)))
            respx.get(leaf_b).mock(return_value=_xml(_urlset(*b_pages)))
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert len(pages) == 6
        assert set(pages) == set(a_pages + b_pages)

    def test_page_listed_in_two_leaves_returned_once(self, client, registries) -> None:
        leaf_a = "https://example.com/sitemap-a.xml"
        leaf_b = "https://example.com/sitemap-b.xml"
        shared = "https://example.com/shared"

        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(_sitemap_index(leaf_a, leaf_b)))
            respx.get(leaf_a).mock(return_value=_xml(_urlset(shared, "https://example.com/a")))
            respx.get(leaf_b).mock(return_value=_xml(_urlset(shared, "https://example.com/b")))
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert sorted(pages) == sorted([shared, "https://example.com/a", "https://example.com/b"])

    def test_nested_indexes_resolved(self, client, registries) -> None:
        middle = "https://example.com/sitemap-middle.xml"
        leaf = "https://example.com/sitemap-leaf.xml"

        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(_sitemap_index(middle)))
            respx.get(middle).mock(return_value=_xml(_sitemap_index(leaf)))
            respx.get(leaf).mock(return_value=_xml(_urlset("https://example.com/deep")))
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert pages == ["https://example.com/deep"]

    def test_cycle_between_indexes_terminates(self, client, registries) -> None:
        child = "https://example.com/sitemap-child.xml"
        leaf = "https://example.com/sitemap-leaf.xml"
        documents = {
            _ROOT: _sitemap_index(child),
            child: _sitemap_index(_ROOT, leaf),
            leaf: _urlset("https://example.com/p"),
        }
        fetched: list[str] = []
        lock = threading.Lock()

        def serve(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            with lock:
                fetched.append(url)
            return _xml(documents[url])

        with respx.mock as router:
            for url in documents:
                router.get(url).mock(side_effect=serve)
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert pages == ["https://example.com/p"]
        assert sorted(fetched) == sorted(documents)

    def test_failing_branch_does_not_abort_siblings(self, client, registries) -> None:
        broken = "https://example.com/sitemap-broken.xml"
        missing = "https://example.com/sitemap-missing.xml"
        garbage = "https://example.com/sitemap-garbage.xml"
        good = "https://example.com/sitemap-good.xml"

        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(_sitemap_index(broken, missing, garbage, good)))
            respx.get(broken).mock(side_effect=httpx.ConnectTimeout)
            respx.get(missing).mock(return_value=httpx.Response(404))
            respx.get(garbage).mock(return_value=_xml("<html><body>oops</body></html>"))
            respx.get(good).mock(return_value=_xml(_urlset("https://example.com/ok")))
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert pages == ["https://example.com/ok"]

    def test_malformed_child_host_skipped(self, client, registries) -> None:
        """A child sitemap whose host fails IDNA decoding is a failed branch."""
        good = "https://example.com/sitemap-good.xml"

        with respx.mock as router:
            router.get(_ROOT).mock(return_value=_xml(_sitemap_index("https://xn--/s.xml", good)))
            router.get(good).mock(return_value=_xml(_urlset("https://example.com/ok")))
            pages = _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert pages == ["https://example.com/ok"]

    def test_single_worker_still_resolves_everything(self, client, registries) -> None:
        leaves = [f"https://example.com/sitemap-{i}.xml" for i in range(4)]

        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml(_sitemap_index(*leaves)))
            for i, leaf in enumerate(leaves):
                respx.get(leaf).mock(return_value=_xml(_urlset(f"https://example.com/{i}")))
            pages = _resolver(client, registries, concurrency=1).resolve_entrypoint(_ROOT)

        assert sorted(pages) == [f"https://example.com/{i}" for i in range(4)]


class TestResolveErrors:
    def test_root_transport_failure_raises(self, client, registries) -> None:
        with respx.mock:
            respx.get(_ROOT).mock(side_effect=httpx.ConnectError)
            with pytest.raises(NetworkError):
                _resolver(client, registries).resolve_entrypoint(_ROOT)

    def test_root_http_error_raises(self, client, registries) -> None:
        with respx.mock:
            respx.get(_ROOT).mock(return_value=httpx.Response(404))
            with pytest.raises(HttpError) as exc_info:
                _resolver(client, registries).resolve_entrypoint(_ROOT)

        assert isinstance(exc_info.value, FetchError)
        assert exc_info.value.status_code == 404

    def test_unrecognised_document_raises_parse_error(self, client, registries) -> None:
        with respx.mock:
            respx.get(_ROOT).mock(return_value=_xml("<feed><entry>not a sitemap</entry></feed>"))
            with pytest.raises(ParseError):
                _resolver(client, registries).resolve(_ROOT)

    def test_cancelled_resolver_fetches_nothing(self, client, registries) -> None:
        cancel = threading.Event()
        cancel.set()
        with respx.mock(assert_all_called=False) as router:
            route = router.get(_ROOT).mock(return_value=_xml(_urlset("https://example.com/")))
            pages = _resolver(client, registries, cancel=cancel).resolve_entrypoint(_ROOT)

            assert not route.called

        assert pages == []
