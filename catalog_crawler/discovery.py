"""Page-count discovery from the listing root's pagination control."""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional

from .config import CrawlConfig
from .content import extract_pagination_labels
from .errors import ContentTimeout, DiscoveryError, NavigationError

logger = logging.getLogger("catalog_crawler.discovery")

PaginationStrategy = Callable[[List[Optional[str]]], Optional[int]]

_INTEGER = re.compile(r"^\d+$")


def _as_int(label: Optional[str]) -> Optional[int]:
    if label is None:
        return None
    label = label.strip().replace(",", "")
    return int(label) if _INTEGER.match(label) else None


def second_to_last_label(labels: List[Optional[str]]) -> Optional[int]:
    """Read the entry before the trailing "next" control."""
    if len(labels) < 2:
        return None
    return _as_int(labels[-2])


def max_numeric_label(labels: List[Optional[str]]) -> Optional[int]:
    """Take the largest integer label anywhere in the control."""
    numbers = [n for n in (_as_int(label) for label in labels) if n is not None]
    return max(numbers) if numbers else None


STRATEGIES: Dict[str, PaginationStrategy] = {
    "second-to-last": second_to_last_label,
    "max-numeric": max_numeric_label,
}


def resolve_strategy(name: str) -> PaginationStrategy:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown pagination strategy {name!r}; choose from {', '.join(sorted(STRATEGIES))}"
        ) from None


async def discover_page_count(
    fetcher,
    config: CrawlConfig,
    strategy: Optional[PaginationStrategy] = None,
) -> Optional[int]:
    """Return the total number of listing pages.

    ``None`` means the root has no pagination control and the caller should
    iterate until a listing page comes back empty. A control that exists but
    does not yield a page number, or a root that cannot be loaded, raises
    :class:`DiscoveryError`.
    """
    strategy = strategy or resolve_strategy(config.pagination_strategy)
    url = config.root_url()
    async with fetcher.open_page() as page:
        try:
            await page.navigate(url)
        except NavigationError as exc:
            raise DiscoveryError(f"Could not load listing root: {exc}") from exc
        try:
            await page.wait_for_selector(config.pagination_selector)
        except ContentTimeout:
            logger.info("No pagination control on %s", url)
            return None
        html = await page.content()

    labels = extract_pagination_labels(html, config)
    if labels is None:
        logger.info("No pagination control on %s", url)
        return None
    count = strategy(labels)
    if count is None or count < 1:
        raise DiscoveryError(f"Pagination control on {url} has no usable page number: {labels}")
    return count
