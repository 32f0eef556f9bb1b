"""Listing page extraction."""

from __future__ import annotations

import logging
from typing import List

from .config import CrawlConfig
from .content import extract_stubs
from .errors import ContentTimeout, NoContent
from .models import ItemStub

logger = logging.getLogger("catalog_crawler.listing")


async def extract_listing_page(fetcher, page_number: int, config: CrawlConfig) -> List[ItemStub]:
    """Load one listing page and return its item stubs in page order.

    Raises :class:`NoContent` when no item card appears within the content
    timeout, which marks the end of the listing. Navigation failures
    propagate as :class:`NavigationError`.
    """
    url = config.listing_url(page_number)
    async with fetcher.open_page() as page:
        await page.navigate(url)
        try:
            await page.wait_for_selector(config.card_selector)
        except ContentTimeout as exc:
            raise NoContent(page_number) from exc
        html = await page.content()

    stubs = extract_stubs(html, config)
    logger.debug("Extracted %d stubs from %s", len(stubs), url)
    return stubs
