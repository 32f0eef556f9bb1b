"""Configuration objects and constants for the catalog crawler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_BASE_URL = "https://www.minecraft-schematics.com"
DEFAULT_OUTPUT = Path("minecraft-schematics.json")
DEFAULT_PROGRESS = Path("minecraft-schematics-progress.json")
DEFAULT_BATCH_SIZE = 18


@dataclass
class CrawlConfig:
    """Top-level settings that control discovery, extraction and enrichment."""

    output_path: Path = DEFAULT_OUTPUT
    progress_path: Optional[Path] = DEFAULT_PROGRESS
    base_url: str = DEFAULT_BASE_URL
    listing_root: str = "/latest/"
    listing_path: str = "/latest/{page}/"
    download_template: str = "/download/{id}/"
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = 0.5
    navigation_timeout: float = 15.0
    content_timeout: float = 10.0
    start_page: int = 1
    max_pages: Optional[int] = None
    max_consecutive_failures: int = 10
    pagination_strategy: str = "second-to-last"
    headless: bool = True
    blocked_resources: Tuple[str, ...] = ("image", "stylesheet", "font", "media")
    card_selector: str = ".span4"
    title_link_selector: str = "h3 a"
    image_selector: str = "img"
    pagination_selector: str = ".pagination ul li"
    category_selector: str = ".span5 table tbody tr:first-child td:nth-child(2)"
    title_selectors: Tuple[str, ...] = ("h1", ".page-header h1", ".schematic-title")
    title_separator: str = "|"

    def listing_url(self, page_number: int) -> str:
        return self.base_url.rstrip("/") + self.listing_path.format(page=page_number)

    def root_url(self) -> str:
        return self.base_url.rstrip("/") + self.listing_root
