from __future__ import annotations

import asyncio
import time
from typing import List, Optional

from aiohttp import ClientSession, ClientTimeout

from link_scout.crawler.classifier import LinkClassifier, canonicalize
from link_scout.crawler.fetcher import Fetcher
from link_scout.crawler.link_extractor import LinkExtractor
from link_scout.crawler.models import (
    CrawlResult,
    FetchFailed,
    Fetched,
    FetchOutcome,
    Link,
    Page,
    SeedError,
    TimedOut,
    Unreachable,
)
from link_scout.crawler.store import ClaimState, VisitedStore
from link_scout.logger import get_logger

__all__ = ("LinkCrawler", "PendingWork")

logger = get_logger(__name__)


class PendingWork:
    """Counter of units of work not yet completed, with a wait-for-zero barrier.

    Children are added before their parent is marked done, so the counter
    only reaches zero once nothing can add work any more.
    """

    def __init__(self) -> None:
        self._count = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def count(self) -> int:
        return self._count

    def add(self, n: int = 1) -> None:
        self._count += n
        self._idle.clear()

    def done(self) -> None:
        if self._count <= 0:
            raise ValueError("done() called more times than add()")
        self._count -= 1
        if self._count == 0:
            self._idle.set()

    async def wait(self) -> None:
        await self._idle.wait()


class LinkCrawler:
    """Breadth-first link crawler with a fixed pool of worker tasks.

    Every internal address is fetched at most once; pages and links are
    collected into a :class:`CrawlResult`.
    """

    def __init__(self, config, session: Optional[ClientSession] = None) -> None:
        self.config = config
        try:
            self.classifier = LinkClassifier.from_config(config)
            self.seed = canonicalize(str(config.seed_url))
        except ValueError as exc:
            raise SeedError(str(config.seed_url), "error parsing seed URL") from exc
        self.store = VisitedStore(limit=config.max_pages)
        self.session = session
        self.fetcher: Optional[Fetcher] = None
        self._own_session = session is None
        self._queue: asyncio.Queue[Link] = asyncio.Queue()
        self._pending = PendingWork()
        self._cancelled = False

    async def __aenter__(self) -> LinkCrawler:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.fetch_timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        self.fetcher = Fetcher(self.session, LinkExtractor(self.classifier), self.config.chunk_size)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._own_session and self.session and not self.session.closed:
            await self.session.close()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop taking on new work; in-flight fetches are allowed to finish."""
        if not self._cancelled:
            logger.info("Crawl cancelled, draining %d pending unit(s)", self._pending.count)
            self._cancelled = True

    async def crawl(self) -> CrawlResult:
        if self.fetcher is None:
            raise RuntimeError("Session not initialized")
        logger.info("Crawl started: %s", self.seed)
        start = time.monotonic()

        seed = Link(source=None, raw=str(self.config.seed_url), address=self.seed, internal=True)
        if self.config.validate_seed:
            await self._start_from_seed(seed)
        else:
            self._submit(seed)

        workers = [
            asyncio.create_task(self._worker(), name=f"link-scout-worker-{i}")
            for i in range(self.config.worker_count)
        ]
        idle = asyncio.create_task(self._pending.wait())
        try:
            await asyncio.wait([idle, *workers], return_when=asyncio.FIRST_COMPLETED)
        finally:
            idle.cancel()
            for w in workers:
                w.cancel()
            outcomes = await asyncio.gather(*workers, return_exceptions=True)
        errors: List[Exception] = [o for o in outcomes if isinstance(o, Exception)]
        if errors:
            raise errors[0]

        result = CrawlResult(
            self.seed,
            self.store.snapshot(),
            cancelled=self._cancelled,
            failed=self.store.failed,
        )
        duration = time.monotonic() - start
        logger.info("Finished: %d pages in %.2f s", len(result), duration)
        return result

    # ------------------------------------------------------------------ workers

    async def _worker(self) -> None:
        while True:
            link = await self._queue.get()
            try:
                if not self._cancelled:
                    await self._process(link)
            finally:
                self._pending.done()

    async def _process(self, link: Link) -> None:
        claim = self.store.claim(link.address)
        if claim.state is ClaimState.OWNER:
            page = self._complete(link.address, await self.fetcher.fetch(link.address))
        elif claim.state is ClaimState.REJECTED:
            logger.debug("Page limit reached, not following %s", link.address)
            return
        else:
            page = await claim.wait()
        if page is not None:
            link.attach(page)

    async def _start_from_seed(self, seed: Link) -> None:
        """Fetch the seed once, failing fast on anything but a 2xx answer."""
        url = str(self.config.seed_url)
        self.store.claim(seed.address)
        outcome = await self.fetcher.fetch(seed.address)
        if isinstance(outcome, TimedOut):
            raise SeedError(url, "timeout while getting seed URL")
        if isinstance(outcome, FetchFailed):
            raise SeedError(url, f"error getting seed URL ({outcome.error})") from outcome.error
        if isinstance(outcome, Unreachable):
            raise SeedError(url, f"unexpected status code {outcome.status} for seed URL")
        seed.attach(self._complete(seed.address, outcome))

    def _complete(self, address: str, outcome: FetchOutcome) -> Optional[Page]:
        """Store the page for a claimed *address* and queue its internal links."""
        if isinstance(outcome, Fetched):
            page = outcome.page
        elif isinstance(outcome, Unreachable):
            logger.debug("Dead page %s (HTTP %d)", address, outcome.status)
            page = Page.dead_page(address, outcome.status)
        elif isinstance(outcome, TimedOut):
            logger.debug("Dead page %s (timeout)", address)
            page = Page.dead_page(address)
        else:
            logger.warning("Error visiting page: %s |> %s", address, outcome.error)
            self.store.abandon(address)
            return None

        page = self.store.store(page)
        for child in page.links:
            if child.followable:
                self._submit(child)
        return page

    def _submit(self, link: Link) -> None:
        if self._cancelled:
            return
        page = self.store.resolve(link.address)
        if page is not None:
            link.attach(page)
            return
        self._pending.add()
        self._queue.put_nowait(link)
