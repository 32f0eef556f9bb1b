"""Shared fixtures: an in-memory fetcher serving canned HTML."""

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional, Union

import pytest

from catalog_crawler.config import CrawlConfig
from catalog_crawler.errors import ContentTimeout, NavigationError, NavigationTimeout

BASE = "https://example.test"

Response = Union[str, BaseException, Callable[[], str]]


def listing_html(cards: List[Dict[str, str]], pagination: Optional[List[str]] = None) -> str:
    parts = ["<html><body>"]
    if pagination is not None:
        parts.append('<div class="pagination"><ul>')
        for label in pagination:
            if label.startswith("!"):
                parts.append(f'<li class="active"><span>{label[1:]}</span></li>')
            else:
                parts.append(f'<li><a href="#">{label}</a></li>')
        parts.append("</ul></div>")
    for card in cards:
        title_attr = f' title="{card["title_attr"]}"' if "title_attr" in card else ""
        href = f' href="{card["href"]}"' if "href" in card else ""
        image = f'<img src="{card["img"]}">' if "img" in card else ""
        parts.append(
            f'<div class="span4">{image}<h3><a{href}{title_attr}>{card.get("text", "")}</a></h3></div>'
        )
    parts.append("</body></html>")
    return "".join(parts)


def detail_html(title: str = "", category: str = "", doc_title: str = "") -> str:
    heading = f"<h1>{title}</h1>" if title else ""
    return (
        f"<html><head><title>{doc_title}</title></head><body>{heading}"
        '<div class="span5"><table><tbody>'
        f"<tr><td>Category</td><td>{category}</td></tr>"
        "<tr><td>Theme</td><td>Other</td></tr>"
        "</tbody></table></div></body></html>"
    )


class FakePage:
    def __init__(self, fetcher: "FakeFetcher") -> None:
        self._fetcher = fetcher
        self.url = ""
        self._html = ""
        self.closed = False

    async def navigate(self, url, wait_until="domcontentloaded", timeout=None):
        self.url = url
        self._fetcher.visits.append(url)
        delay = self._fetcher.delays.get(url, self._fetcher.delay)
        if delay:
            await asyncio.sleep(delay)
        response = self._fetcher.responses.get(url)
        if response is None:
            raise NavigationError(url, "net::ERR_NAME_NOT_RESOLVED")
        if isinstance(response, BaseException):
            raise response
        self._html = response() if callable(response) else response

    async def wait_for_selector(self, selector, timeout=None):
        # Good enough for class selectors like ".span4" and ".pagination ul li".
        token = selector.split()[0].lstrip(".")
        if f'class="{token}' not in self._html:
            raise ContentTimeout(selector, timeout or 0.0)

    async def content(self):
        return self._html


class FakeFetcher:
    """Maps URLs to HTML strings, exceptions, or callables producing HTML."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None, delay: float = 0.0) -> None:
        self.responses: Dict[str, Response] = dict(responses or {})
        self.delay = delay
        self.delays: Dict[str, float] = {}
        self.visits: List[str] = []
        self.opened = 0
        self.closed = 0
        self.in_flight = 0
        self.max_in_flight = 0

    @asynccontextmanager
    async def open_page(self):
        self.opened += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        page = FakePage(self)
        try:
            yield page
        finally:
            page.closed = True
            self.in_flight -= 1
            self.closed += 1


@pytest.fixture
def config(tmp_path):
    return CrawlConfig(
        output_path=tmp_path / "catalog.json",
        progress_path=tmp_path / "catalog-progress.json",
        base_url=BASE,
        batch_delay=0.0,
        navigation_timeout=1.0,
        content_timeout=0.5,
    )


@pytest.fixture
def timeout_error():
    def make(url):
        return NavigationTimeout(url, "timed out after 15.0s")

    return make
