"""Command-line entry point for the catalog crawler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Iterable, Sequence

from .checkpoint import CheckpointStore
from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_BATCH_SIZE,
    DEFAULT_OUTPUT,
    DEFAULT_PROGRESS,
    CrawlConfig,
)
from .crawler import run_crawler
from .discovery import STRATEGIES
from .errors import CheckpointNotFound
from .models import Catalog

logger = logging.getLogger("catalog_crawler.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return ("crawl",)
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("crawl", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT,
        type=Path,
        help="Checkpoint file holding the catalog JSON",
    )
    parser.add_argument(
        "--progress",
        default=DEFAULT_PROGRESS,
        type=Path,
        help="Fallback snapshot read when the checkpoint cannot be loaded",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_crawl_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common_arguments(parser)
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help="Site origin that listing and detail links are resolved against",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help="Maximum number of detail pages loaded concurrently",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.5,
        help="Seconds to pause between detail batches of the same listing page",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--content-timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for item cards before treating a page as empty",
    )
    parser.add_argument(
        "--start-page",
        type=int,
        default=1,
        help="First listing page to crawl",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Stop after this many listing pages",
    )
    parser.add_argument(
        "--pagination-strategy",
        choices=sorted(STRATEGIES),
        default="second-to-last",
        help="How to read the page count from the pagination control",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Continue after the highest page already in the checkpoint",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a paginated listing site into a checkpointed JSON catalog.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl listing pages, enrich items and checkpoint after each page"
    )
    _add_crawl_arguments(crawl_parser)

    inspect_parser = subparsers.add_parser(
        "inspect", help="Summarise the latest checkpoint"
    )
    _add_common_arguments(inspect_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def build_config(args: argparse.Namespace) -> CrawlConfig:
    return CrawlConfig(
        output_path=args.output,
        progress_path=args.progress,
        base_url=args.base_url,
        batch_size=args.batch_size,
        batch_delay=args.delay,
        navigation_timeout=args.timeout,
        content_timeout=args.content_timeout,
        start_page=args.start_page,
        max_pages=args.max_pages,
        pagination_strategy=args.pagination_strategy,
        headless=not args.headed,
    )


def _run_crawl(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    if args.batch_size < 1:
        logger.error("--batch-size must be at least 1")
        return 2
    config = build_config(args)
    store = CheckpointStore(config.output_path, config.progress_path)

    catalog = Catalog()
    if args.resume:
        try:
            catalog = store.load_latest()
        except CheckpointNotFound as exc:
            logger.info("Nothing to resume from: %s", exc)
        else:
            config.start_page = max(config.start_page, catalog.last_page_number + 1)
            logger.info(
                "Resuming at page %d with %d pages already saved",
                config.start_page,
                len(catalog),
            )

    result = asyncio.run(run_crawler(config, store=store, catalog=catalog))
    logger.info(
        "Finished in %.2fs (%d pages processed, %d skipped, %d items without details)",
        result.total_seconds,
        len(result.pages_processed),
        len(result.pages_skipped),
        result.degraded_items,
    )
    if result.pages_skipped:
        logger.info("Skipped pages: %s", ", ".join(str(p) for p in result.pages_skipped))
    return 0 if result.completed else 1


def _run_inspect(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    store = CheckpointStore(args.output, args.progress)
    try:
        catalog = store.load_latest()
    except CheckpointNotFound as exc:
        logger.error("%s", exc)
        return 1

    numbers = catalog.page_numbers
    logger.info("Pages: %d, items: %d", len(catalog), catalog.total_items)
    if numbers:
        missing = sorted(set(range(numbers[0], numbers[-1] + 1)) - set(numbers))
        logger.info("Page range: %d-%d", numbers[0], numbers[-1])
        if missing:
            logger.warning("Missing pages: %s", ", ".join(str(p) for p in missing))

    categories = Counter(item.category or "Uncategorized" for page in catalog for item in page.items)
    for category, count in categories.most_common():
        logger.info("  %-30s %d", category, count)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "crawl":
        code = _run_crawl(args)
    else:
        code = _run_inspect(args)
    sys.exit(code)


if __name__ == "__main__":
    main()
