"""Detail-page enrichment in bounded concurrent batches."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .config import CrawlConfig
from .content import extract_detail
from .errors import FetcherUnavailable
from .models import EnrichedItem, ItemStub

logger = logging.getLogger("catalog_crawler.enrichment")


@dataclass
class EnrichmentResult:
    """Outcome for one stub; ``degraded`` items carry the stub's own title."""

    item: EnrichedItem
    degraded: bool = False
    error: Optional[str] = None


def chunked(stubs: Sequence[ItemStub], size: int) -> Iterator[Sequence[ItemStub]]:
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(stubs), size):
        yield stubs[start : start + size]


async def enrich_item(fetcher, stub: ItemStub, config: CrawlConfig) -> EnrichmentResult:
    """Visit ``stub.canonical_url`` and fill in category and full title.

    Any failure other than the browser going away yields a degraded result
    instead of raising.
    """
    if not stub.canonical_url:
        return EnrichmentResult(EnrichedItem.from_stub(stub), True, "missing detail URL")
    try:
        async with fetcher.open_page() as page:
            await page.navigate(stub.canonical_url)
            html = await page.content()
        fields = extract_detail(html, config)
    except FetcherUnavailable:
        raise
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error getting data for %s: %s", stub.canonical_url, exc)
        return EnrichmentResult(EnrichedItem.from_stub(stub), True, str(exc))
    item = EnrichedItem.from_stub(stub, title=fields.full_title, category=fields.category)
    return EnrichmentResult(item)


async def enrich_results(
    fetcher,
    stubs: Sequence[ItemStub],
    config: CrawlConfig,
    batch_size: Optional[int] = None,
) -> List[EnrichmentResult]:
    """Enrich ``stubs`` batch by batch, returning results in stub order."""
    size = batch_size or config.batch_size
    batches = list(chunked(stubs, size))
    results: List[EnrichmentResult] = []
    for index, batch in enumerate(batches, start=1):
        logger.info("  Processing batch %d/%d (%d items)", index, len(batches), len(batch))
        outcomes = await asyncio.gather(
            *(enrich_item(fetcher, stub, config) for stub in batch),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        results.extend(outcomes)
        if index < len(batches) and config.batch_delay > 0:
            await asyncio.sleep(config.batch_delay)
    return results


async def enrich(
    fetcher,
    stubs: Sequence[ItemStub],
    config: CrawlConfig,
    batch_size: Optional[int] = None,
) -> List[EnrichedItem]:
    results = await enrich_results(fetcher, stubs, config, batch_size)
    return [result.item for result in results]
