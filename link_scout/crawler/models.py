"""
Data models for the LinkScout crawler.

Pages form an arena keyed by canonical address: a :class:`Link` never holds
a reference to a :class:`Page`, only the address of its source and target.
"""
from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional, Union

__all__ = (
    "DEAD_PAGE_TITLE",
    "HostMatch",
    "LinkKind",
    "Link",
    "Page",
    "Fetched",
    "Unreachable",
    "TimedOut",
    "FetchFailed",
    "FetchOutcome",
    "CrawlResult",
    "LinkScoutError",
    "SeedError",
)

#: Title given to every page that answered with a non-2xx status or timed out.
DEAD_PAGE_TITLE = "404 NOT FOUND"


class LinkScoutError(Exception):
    """Base class for errors raised by LinkScout."""


class SeedError(LinkScoutError):
    """The seed URL is unparsable, unreachable or did not answer with 2xx."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason


class HostMatch(str, enum.Enum):
    """Policy deciding whether a resolved host belongs to the crawled site."""

    EXACT = "exact"
    IGNORE_CASE = "ignore_case"
    SUBDOMAINS = "subdomains"


class LinkKind(str, enum.Enum):
    MALFORMED = "malformed"
    FRAGMENT = "fragment"
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(slots=True)
class Link:
    """One ``<a href>`` found on a page."""

    source: Optional[str]
    raw: str
    address: Optional[str] = None
    text: str = ""
    internal: bool = False
    fragment: bool = False
    malformed: bool = False
    dead: bool = False
    target: Optional[str] = None

    @property
    def kind(self) -> LinkKind:
        if self.malformed:
            return LinkKind.MALFORMED
        if self.fragment:
            return LinkKind.FRAGMENT
        return LinkKind.INTERNAL if self.internal else LinkKind.EXTERNAL

    @property
    def followable(self) -> bool:
        """True for links the crawler hands to the work queue."""
        return self.kind is LinkKind.INTERNAL and self.address is not None

    def attach(self, page: Page) -> None:
        """Point the link at its fetched target page."""
        self.target = page.address
        self.dead = page.dead


@dataclass(slots=True)
class Page:
    """A fetched (or dead) resource, identified by its canonical address."""

    address: str
    title: str = ""
    links: List[Link] = field(default_factory=list)
    status: Optional[int] = None
    dead: bool = False

    @classmethod
    def dead_page(cls, address: str, status: Optional[int] = None) -> Page:
        return cls(address=address, title=DEAD_PAGE_TITLE, status=status, dead=True)


# --------------------------------------------------------------------------- #
#                               Fetch outcomes                                #
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class Fetched:
    page: Page


@dataclass(slots=True, frozen=True)
class Unreachable:
    address: str
    status: int


@dataclass(slots=True, frozen=True)
class TimedOut:
    address: str


@dataclass(slots=True, frozen=True)
class FetchFailed:
    address: str
    error: BaseException


FetchOutcome = Union[Fetched, Unreachable, TimedOut, FetchFailed]


# --------------------------------------------------------------------------- #
#                                Crawl result                                 #
# --------------------------------------------------------------------------- #


class CrawlResult(Mapping):
    """Read-only ``canonical address -> Page`` mapping produced by one crawl."""

    def __init__(
        self,
        seed: str,
        pages: Dict[str, Page],
        *,
        cancelled: bool = False,
        failed: FrozenSet[str] = frozenset(),
    ) -> None:
        self.seed = seed
        self.cancelled = cancelled
        self.failed = failed
        self._pages = pages

    def __getitem__(self, address: str) -> Page:
        return self._pages[address]

    def __iter__(self) -> Iterator[str]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __repr__(self) -> str:
        return f"CrawlResult(seed={self.seed!r}, pages={len(self)}, cancelled={self.cancelled})"

    @property
    def start_page(self) -> Optional[Page]:
        return self._pages.get(self.seed)

    def target_of(self, link: Link) -> Optional[Page]:
        """The page *link* points to, if it was crawled."""
        if link.target is None:
            return None
        return self._pages.get(link.target)

    def links(self) -> Iterator[Link]:
        """Every link of every page, in page then document order."""
        for page in self._pages.values():
            yield from page.links
