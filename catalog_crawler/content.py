"""HTML extraction routines for listing, detail and pagination markup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from .config import CrawlConfig
from .models import ItemStub


@dataclass
class DetailFields:
    """Fields read from an item's own page."""

    category: str
    full_title: str


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return element.get_text().strip()


def derive_download_link(href: str, config: CrawlConfig) -> str:
    """Map ``/schematic/<id>/...`` to the site's download URL, or ``""``."""
    parts = urlparse(href).path.split("/")
    if len(parts) >= 3 and parts[1] == "schematic" and parts[2]:
        return config.base_url.rstrip("/") + config.download_template.format(id=parts[2])
    return ""


def _image_source(card: Tag, config: CrawlConfig) -> str:
    image = card.select_one(config.image_selector)
    if image is None:
        return ""
    src = image.get("src") or ""
    if not src or src.startswith("data:"):
        src = image.get("data-src") or src
    return urljoin(config.base_url, src) if src else ""


def extract_stubs(html: str, config: CrawlConfig) -> List[ItemStub]:
    """Return one stub per item card that carries a title link, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    stubs: List[ItemStub] = []
    for card in soup.select(config.card_selector):
        link = card.select_one(config.title_link_selector)
        if link is None:
            continue
        href = (link.get("href") or "").strip()
        title = (link.get("title") or "").strip() or _text(link)
        stubs.append(
            ItemStub(
                title=title,
                detail_link=derive_download_link(href, config) if href else "",
                image_ref=_image_source(card, config),
                canonical_url=urljoin(config.base_url, href) if href else "",
                source_href=href,
            )
        )
    return stubs


def extract_detail(html: str, config: CrawlConfig) -> DetailFields:
    """Read the category cell and the untruncated title from a detail page."""
    soup = BeautifulSoup(html, "html.parser")
    category = _text(soup.select_one(config.category_selector))

    full_title = ""
    for selector in config.title_selectors:
        full_title = _text(soup.select_one(selector))
        if full_title:
            break
    if not full_title and soup.title is not None:
        full_title = soup.title.get_text().split(config.title_separator)[0].strip()
    return DetailFields(category=category, full_title=full_title)


def extract_pagination_labels(html: str, config: CrawlConfig) -> Optional[List[Optional[str]]]:
    """Return the link label of each pagination entry.

    Entries without a link (the current page, ellipses) yield ``None``.
    Returns ``None`` when the page has no pagination control at all.
    """
    soup = BeautifulSoup(html, "html.parser")
    entries = soup.select(config.pagination_selector)
    if not entries:
        return None
    labels: List[Optional[str]] = []
    for entry in entries:
        link = entry.find("a")
        labels.append(_text(link) if link is not None else None)
    return labels
