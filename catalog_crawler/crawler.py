"""High-level orchestration: discover, extract, enrich and checkpoint each page."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .checkpoint import CheckpointStore
from .config import CrawlConfig
from .discovery import discover_page_count
from .enrichment import enrich_results
from .errors import CheckpointNotFound, DiscoveryError, FetcherUnavailable, NoContent
from .fetcher import PlaywrightFetcher
from .listing import extract_listing_page
from .models import Catalog, Page

logger = logging.getLogger("catalog_crawler")

STOP_NO_CONTENT = "no-content"
STOP_PAGE_LIMIT = "page-limit"
STOP_FAILURES = "consecutive-failures"
STOP_ERROR = "error"


@dataclass
class CrawlResult:
    """Summary of a crawl run."""

    catalog: Catalog
    completed: bool
    stop_reason: str
    page_count: Optional[int] = None
    pages_processed: List[int] = field(default_factory=list)
    pages_skipped: List[int] = field(default_factory=list)
    degraded_items: int = 0
    total_seconds: float = 0.0
    error: Optional[BaseException] = None


def _last_page(config: CrawlConfig, page_count: Optional[int]) -> Optional[int]:
    last = page_count
    if config.max_pages is not None:
        limit = config.start_page + config.max_pages - 1
        last = limit if last is None else min(last, limit)
    return last


async def crawl_pages(
    fetcher,
    config: CrawlConfig,
    store: CheckpointStore,
    catalog: Catalog,
    result: CrawlResult,
) -> str:
    """Run the sequential page loop and return why it stopped.

    Only :class:`FetcherUnavailable` and unexpected faults outside the
    per-page handlers escape; everything page-scoped is logged and skipped.
    """
    try:
        result.page_count = await discover_page_count(fetcher, config)
    except DiscoveryError as exc:
        logger.warning("Page count discovery failed, crawling until an empty page: %s", exc)
    logger.info("Total pages: %s", result.page_count or "unknown")

    last = _last_page(config, result.page_count)
    total_label = str(last) if last is not None else "?"
    page_number = config.start_page
    failures = 0

    while last is None or page_number <= last:
        logger.info("Processing page %d/%s", page_number, total_label)
        try:
            stubs = await extract_listing_page(fetcher, page_number, config)
        except NoContent:
            logger.info("No content found on page %d, likely reached the end", page_number)
            return STOP_NO_CONTENT
        except FetcherUnavailable:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Error processing page %d: %s", page_number, exc)
            result.pages_skipped.append(page_number)
            failures += 1
            if (
                last is None
                and config.max_consecutive_failures
                and failures >= config.max_consecutive_failures
            ):
                logger.error("Giving up after %d consecutive failed pages", failures)
                return STOP_FAILURES
            page_number += 1
            continue
        failures = 0

        if not stubs:
            logger.info("No items found on page %d", page_number)
            page_number += 1
            continue

        logger.info("  Fetching details for %d items...", len(stubs))
        enriched = await enrich_results(fetcher, stubs, config)
        degraded = sum(1 for entry in enriched if entry.degraded)
        result.degraded_items += degraded
        catalog.add(Page(page_number, [entry.item for entry in enriched]))
        result.pages_processed.append(page_number)
        logger.info(
            "Found %d items on page %d (%d without details)",
            len(enriched),
            page_number,
            degraded,
        )

        try:
            store.append_page(catalog)
            logger.info(
                "Checkpoint updated after page %d (%d total items)",
                page_number,
                catalog.total_items,
            )
        except OSError as exc:
            logger.error("Error saving after page %d: %s", page_number, exc)
        page_number += 1

    return STOP_PAGE_LIMIT


def recover_partial(store: CheckpointStore, catalog: Catalog) -> None:
    """Fold the latest on-disk snapshot into ``catalog`` (memory wins)."""
    logger.info("Attempting to recover partial results...")
    try:
        snapshot = store.load_latest()
    except CheckpointNotFound as exc:
        logger.error("Could not recover progress file: %s", exc)
        return
    catalog.merge(snapshot)
    logger.info("Recovered partial results (%d pages)", len(catalog))


def persist_final(store: CheckpointStore, catalog: Catalog) -> bool:
    """Make one last attempt to write ``catalog``; never raises ``OSError``."""
    if not catalog and store.checkpoint_is_valid():
        logger.info("No results to save")
        return False
    try:
        store.append_page(catalog)
    except OSError as exc:
        logger.error("Error writing final file: %s", exc)
        return False
    logger.info("Results saved to %s", store.path)
    logger.info("Total items scraped: %d", catalog.total_items)
    logger.info("Total pages scraped: %d", len(catalog))
    return True


async def run_crawler(
    config: CrawlConfig,
    fetcher=None,
    store: Optional[CheckpointStore] = None,
    catalog: Optional[Catalog] = None,
) -> CrawlResult:
    """Crawl every listing page and return the final catalog.

    A fetcher is launched and closed here unless one is passed in. However
    the loop ends, the catalog is written one final time; when an error
    escaped the loop the latest snapshot is merged in first.
    """
    store = store or CheckpointStore(config.output_path, config.progress_path)
    catalog = catalog if catalog is not None else Catalog()
    result = CrawlResult(catalog=catalog, completed=False, stop_reason=STOP_ERROR)
    start = time.perf_counter()
    try:
        if fetcher is None:
            async with PlaywrightFetcher(config) as owned:
                result.stop_reason = await crawl_pages(owned, config, store, catalog, result)
        else:
            result.stop_reason = await crawl_pages(fetcher, config, store, catalog, result)
        result.completed = result.stop_reason != STOP_FAILURES
        logger.info("Scraping finished (%s)", result.stop_reason)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Error during scraping")
        result.error = exc
        recover_partial(store, catalog)
    finally:
        persist_final(store, catalog)
        result.total_seconds = time.perf_counter() - start
    return result
