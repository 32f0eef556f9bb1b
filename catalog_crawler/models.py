"""Data models used throughout the catalog pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List


@dataclass(frozen=True)
class ItemStub:
    """Listing-page record captured before detail enrichment."""

    title: str
    detail_link: str
    image_ref: str
    canonical_url: str
    source_href: str


@dataclass
class EnrichedItem:
    """Catalog record after its detail page has been visited."""

    title: str
    download_link: str
    image_ref: str
    canonical_url: str
    category: str = ""

    @classmethod
    def from_stub(cls, stub: ItemStub, title: str = "", category: str = "") -> "EnrichedItem":
        return cls(
            title=title or stub.title,
            download_link=stub.detail_link,
            image_ref=stub.image_ref,
            canonical_url=stub.canonical_url,
            category=category or "",
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "downloadLink": self.download_link,
            "imageSrc": self.image_ref,
            "fullUrl": self.canonical_url,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnrichedItem":
        return cls(
            title=str(data.get("title") or ""),
            download_link=str(data.get("downloadLink") or ""),
            image_ref=str(data.get("imageSrc") or ""),
            canonical_url=str(data.get("fullUrl") or ""),
            category=str(data.get("category") or ""),
        )


@dataclass
class Page:
    """Enriched items of one listing page, in listing order."""

    page_number: int
    items: List[EnrichedItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page_number,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        return cls(
            page_number=int(data["page"]),
            items=[EnrichedItem.from_dict(item) for item in data.get("items", [])],
        )


class Catalog:
    """Accumulated pages, kept sorted by page number without duplicates.

    The orchestrator is the only writer. Adding a page whose number is
    already present replaces the earlier copy, which is what happens when a
    resumed run re-extracts a page.
    """

    def __init__(self, pages: List[Page] | None = None) -> None:
        self._pages: Dict[int, Page] = {}
        for page in pages or []:
            self.add(page)

    def add(self, page: Page) -> None:
        self._pages[page.page_number] = page

    def merge(self, other: "Catalog") -> None:
        """Add pages from ``other`` that this catalog does not already hold."""
        for page in other:
            self._pages.setdefault(page.page_number, page)

    @property
    def pages(self) -> List[Page]:
        return [self._pages[number] for number in sorted(self._pages)]

    @property
    def page_numbers(self) -> List[int]:
        return sorted(self._pages)

    @property
    def last_page_number(self) -> int:
        return max(self._pages) if self._pages else 0

    @property
    def total_items(self) -> int:
        return sum(len(page.items) for page in self._pages.values())

    def __iter__(self) -> Iterator[Page]:
        return iter(self.pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __bool__(self) -> bool:
        return bool(self._pages)

    def to_json(self) -> str:
        payload = [page.to_dict() for page in self.pages]
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_json(cls, text: str) -> "Catalog":
        payload = json.loads(text)
        if not isinstance(payload, list):
            raise ValueError("Catalog JSON root must be an array of pages")
        return cls([Page.from_dict(entry) for entry in payload])
