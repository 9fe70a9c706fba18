"""Shared test fixtures for novel-retrieval tests."""

import io
from collections.abc import Callable

import httpx
import pytest
from rich.console import Console

from novel_retrieval.config import FetcherConfig
from novel_retrieval.fetcher import HttpFetcher
from novel_retrieval.sites import SiteAdapter, SiteRegistry, SiteRules

BASE = "https://novels.test"

Route = str | bytes | int | httpx.Response | Callable[[httpx.Request], httpx.Response]


class PagedAdapter(SiteAdapter):
    """Adapter for the synthetic test site used across the suite."""

    rules = SiteRules(
        name="paged",
        display_name="Paged Test Site",
        hosts=("novels.test",),
        toc_link_selector="ul.chapters a",
        toc_next_selector="a.next-page",
        book_title_selector="h1.book",
        author_selector="p.author",
        author_strip=("作者：",),
        chapter_title_selector="h2.chapter",
        chapter_body_selector="div.body",
        chapter_next_selector="a.more",
        remove_selectors=("div.ad",),
        max_concurrent=4,
    )


def toc_html(
    links: list[tuple[str, str]],
    next_href: str | None = None,
    title: str = "測試之書",
    author: str = "作者：無名",
) -> str:
    """Render a table-of-contents page for the test site."""
    items = "".join(f'<li><a href="{href}">{text}</a></li>' for href, text in links)
    nav = f'<a class="next-page" href="{next_href}">下一頁</a>' if next_href else ""
    return (
        '<html><head><meta charset="utf-8"></head><body>'
        f'<h1 class="book">{title}</h1><p class="author">{author}</p>'
        f'<ul class="chapters">{items}</ul>{nav}</body></html>'
    )


def chapter_html(title: str, paragraphs: list[str], next_href: str | None = None) -> str:
    """Render a chapter page for the test site."""
    body = "<br>".join(paragraphs)
    more = f'<a class="more" href="{next_href}">續</a>' if next_href else ""
    return (
        '<html><head><meta charset="utf-8"><script>var x = 1;</script></head><body>'
        f'<h2 class="chapter">{title}</h2>'
        f'<div class="body">{body}<div class="ad">廣告</div></div>{more}'
        "</body></html>"
    )


class MockSite:
    """Routes for ``httpx.MockTransport`` plus a log of requested URLs."""

    def __init__(self, routes: dict[str, Route] | None = None):
        self.routes: dict[str, Route] = dict(routes or {})
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404)
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, int):
            return httpx.Response(route)
        content = route.encode("utf-8") if isinstance(route, str) else route
        return httpx.Response(200, content=content, headers={"content-type": "text/html"})

    def count(self, url: str) -> int:
        return self.requests.count(url)

    def fetcher(self, config: FetcherConfig | None = None) -> HttpFetcher:
        config = config or FetcherConfig(max_retries=1, retry_base_delay=0.0)
        return HttpFetcher(config, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fetcher_config() -> FetcherConfig:
    """Fetcher config that retries without sleeping."""
    return FetcherConfig(max_retries=2, retry_base_delay=0.0)


@pytest.fixture
def adapter() -> PagedAdapter:
    return PagedAdapter()


@pytest.fixture
def registry(adapter) -> SiteRegistry:
    return SiteRegistry([adapter])


@pytest.fixture
def quiet_console() -> Console:
    """Console writing to a buffer instead of the terminal."""
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def ten_chapter_site() -> MockSite:
    """A one-page ToC listing ten chapters, all served successfully."""
    links = [(f"/book/{i}.html", f"第{i + 1}章") for i in range(10)]
    routes: dict[str, Route] = {f"{BASE}/book/": toc_html(links)}
    for i in range(10):
        routes[f"{BASE}/book/{i}.html"] = chapter_html(
            f"第{i + 1}章 標題{i}", [f"第{i + 1}章第一段", f"第{i + 1}章第二段"]
        )
    return MockSite(routes)
