"""
Visited store: the per-crawl arena of pages with a single-flight claim.
"""
from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Set

from link_scout.crawler.models import Page

__all__ = ("ClaimState", "Claim", "VisitedStore")


class ClaimState(enum.Enum):
    OWNER = "owner"
    WAITER = "waiter"
    STORED = "stored"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(slots=True)
class Claim:
    """Answer of :meth:`VisitedStore.claim` for one address.

    Only an ``OWNER`` may fetch; it must finish with ``store`` or ``abandon``.
    Everyone else calls :meth:`wait` to get the page (or ``None``).
    """

    address: str
    state: ClaimState
    page: Optional[Page] = None
    _pending: Optional[asyncio.Future] = None

    async def wait(self) -> Optional[Page]:
        if self._pending is None:
            return self.page
        # shielded: a cancelled waiter must not cancel the shared result
        return await asyncio.shield(self._pending)


class VisitedStore:
    """Maps canonical addresses to pages, with at most one fetch per address.

    ``claim`` looks up and reserves an address without suspending in
    between, so two tasks can never both become its owner.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit
        self._pages: Dict[str, Page] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._failed: Set[str] = set()

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, address: object) -> bool:
        return address in self._pages

    @property
    def claimed(self) -> int:
        """Distinct addresses admitted so far, whatever became of them."""
        return len(self._pages) + len(self._inflight) + len(self._failed)

    @property
    def failed(self) -> FrozenSet[str]:
        return frozenset(self._failed)

    def resolve(self, address: str) -> Optional[Page]:
        return self._pages.get(address)

    def claim(self, address: str) -> Claim:
        page = self._pages.get(address)
        if page is not None:
            return Claim(address, ClaimState.STORED, page=page)
        if address in self._failed:
            return Claim(address, ClaimState.FAILED)
        pending = self._inflight.get(address)
        if pending is not None:
            return Claim(address, ClaimState.WAITER, _pending=pending)
        if self.limit is not None and self.claimed >= self.limit:
            return Claim(address, ClaimState.REJECTED)
        self._inflight[address] = asyncio.get_running_loop().create_future()
        return Claim(address, ClaimState.OWNER)

    def store(self, page: Page) -> Page:
        """Insert *page* unless its address is already stored; wake waiters."""
        stored = self._pages.setdefault(page.address, page)
        pending = self._inflight.pop(page.address, None)
        if pending is not None and not pending.done():
            pending.set_result(stored)
        return stored

    def abandon(self, address: str) -> None:
        """Give up on *address* for the rest of the crawl; waiters get ``None``."""
        self._failed.add(address)
        pending = self._inflight.pop(address, None)
        if pending is not None and not pending.done():
            pending.set_result(None)

    def snapshot(self) -> Dict[str, Page]:
        return dict(self._pages)
