"""
Fetcher module: one bounded-timeout GET per address, no retries.
"""
from __future__ import annotations

import asyncio

from aiohttp import ClientError, ClientSession

from link_scout.crawler.link_extractor import LinkExtractor
from link_scout.crawler.models import (
    FetchFailed,
    Fetched,
    FetchOutcome,
    Page,
    TimedOut,
    Unreachable,
)
from link_scout.logger import get_logger

__all__ = ("Fetcher",)

logger = get_logger(__name__)


class Fetcher:
    """Retrieves a page and streams its body through the extractor.

    The request timeout lives on the session (``ClientTimeout``).
    """

    def __init__(self, session: ClientSession, extractor: LinkExtractor, chunk_size: int = 8192) -> None:
        self.session = session
        self.extractor = extractor
        self.chunk_size = chunk_size

    async def fetch(self, address: str) -> FetchOutcome:
        """
        GET *address* and describe what happened.

        Returns ``Fetched`` for a 2xx answer, ``Unreachable`` for any other
        status, ``TimedOut`` when no response arrived in time and
        ``FetchFailed`` for every other transport error.
        """
        try:
            async with self.session.get(address) as resp:
                if not 200 <= resp.status <= 299:
                    return Unreachable(address, resp.status)
                if "html" not in resp.content_type:
                    logger.debug("Not following %s resource %s", resp.content_type, address)
                    return Fetched(Page(address=address, status=resp.status))
                page = await self.extractor.extract(
                    address,
                    resp.content.iter_chunked(self.chunk_size),
                    encoding=resp.charset,
                    status=resp.status,
                    base=str(resp.url),
                )
                return Fetched(page)
        # must precede OSError: asyncio.TimeoutError is an OSError subclass on 3.11+
        except asyncio.TimeoutError:
            return TimedOut(address)
        except (ClientError, OSError) as exc:
            return FetchFailed(address, exc)
