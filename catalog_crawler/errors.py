"""Exception types raised by the catalog pipeline."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for crawler errors."""


class DiscoveryError(CatalogError):
    """The pagination control was found but could not be read."""


class NoContent(CatalogError):
    """A listing page has no item cards: the listing is exhausted."""

    def __init__(self, page_number: int) -> None:
        super().__init__(f"No content on listing page {page_number}")
        self.page_number = page_number


class NavigationError(CatalogError):
    """Loading a URL failed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class NavigationTimeout(NavigationError):
    """Loading a URL did not finish within its timeout."""


class ContentTimeout(CatalogError):
    """A selector did not appear within its timeout."""

    def __init__(self, selector: str, timeout: float) -> None:
        super().__init__(f"Selector {selector!r} not found within {timeout:.1f}s")
        self.selector = selector
        self.timeout = timeout


class FetcherUnavailable(CatalogError):
    """The shared browser is gone; no further page can be loaded."""


class CheckpointNotFound(CatalogError, FileNotFoundError):
    """No readable checkpoint or progress file exists."""
