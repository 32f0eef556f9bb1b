"""Playwright-backed page fetcher shared by every stage of the crawl."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page as PlaywrightPage,
    Playwright,
    Route,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import CrawlConfig
from .errors import (
    ContentTimeout,
    FetcherUnavailable,
    NavigationError,
    NavigationTimeout,
)

logger = logging.getLogger("catalog_crawler.fetcher")


class FetchedPage:
    """One browser tab, scoped to a single extraction or enrichment call."""

    def __init__(self, page: PlaywrightPage, config: CrawlConfig) -> None:
        self._page = page
        self._config = config

    @property
    def url(self) -> str:
        return self._page.url

    def _translate(self, exc: PlaywrightError, url: str) -> Exception:
        browser = self._page.context.browser
        if browser is not None and not browser.is_connected():
            return FetcherUnavailable(str(exc))
        return NavigationError(url, str(exc))

    async def navigate(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
        timeout: Optional[float] = None,
    ) -> None:
        timeout = self._config.navigation_timeout if timeout is None else timeout
        try:
            await self._page.goto(url, wait_until=wait_until, timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(url, f"timed out after {timeout:.1f}s") from exc
        except PlaywrightError as exc:
            raise self._translate(exc, url) from exc

    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> None:
        timeout = self._config.content_timeout if timeout is None else timeout
        try:
            await self._page.wait_for_selector(selector, state="attached", timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise ContentTimeout(selector, timeout) from exc
        except PlaywrightError as exc:
            raise self._translate(exc, self._page.url) from exc

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as exc:
            raise self._translate(exc, self._page.url) from exc


class PlaywrightFetcher:
    """Owns the Chromium instance and hands out short-lived pages.

    Use as an async context manager; every ``open_page`` call gets its own
    tab inside one shared browser context and the tab is closed on exit
    whether or not the caller raised.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "PlaywrightFetcher":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
        self._context = await self._browser.new_context()
        logger.debug("Launched Chromium (headless=%s)", self.config.headless)

    async def close(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as exc:
                logger.warning("Error closing browser: %s", exc)
            self._browser = None
            self._context = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _block_resources(self, route: Route) -> None:
        if route.request.resource_type in self.config.blocked_resources:
            await route.abort()
        else:
            await route.continue_()

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[FetchedPage]:
        if self._context is None or self._browser is None or not self._browser.is_connected():
            raise FetcherUnavailable("Browser is not running")
        try:
            page = await self._context.new_page()
        except PlaywrightError as exc:
            raise FetcherUnavailable(str(exc)) from exc
        page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
        try:
            if self.config.blocked_resources:
                await page.route("**/*", self._block_resources)
            yield FetchedPage(page, self.config)
        finally:
            try:
                await page.close()
            except PlaywrightError as exc:
                logger.error("Error closing page: %s", exc)
