"""link_scout.engine: запуск обхода из CLI и кода."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from pydantic import ValidationError

from link_scout.config import CrawlerConfig
from link_scout.crawler.crawler import LinkCrawler
from link_scout.crawler.models import CrawlResult, SeedError

__all__ = ["start_crawl", "crawl_site"]


async def start_crawl(config: CrawlerConfig, crawl_timeout: Optional[float] = None) -> CrawlResult:
    """
    Запускает LinkCrawler в контексте и возвращает граф страниц.

    Если задан crawl_timeout, по его истечении обход отменяется: новые ссылки
    больше не берутся, незавершённые запросы дорабатывают, результат помечается
    как cancelled.
    """
    async with LinkCrawler(config) as crawler:
        timer = None
        if crawl_timeout is not None:
            timer = asyncio.get_running_loop().call_later(crawl_timeout, crawler.cancel)
        try:
            return await crawler.crawl()
        finally:
            if timer is not None:
                timer.cancel()


async def crawl_site(seed_url: str, **options: Any) -> CrawlResult:
    """Обход по одному URL без файла конфигурации; некорректный URL даёт SeedError."""
    crawl_timeout = options.pop("crawl_timeout", None)
    try:
        config = CrawlerConfig(seed_url=seed_url, **options)
    except ValidationError as exc:
        if any(err["loc"] == ("seed_url",) for err in exc.errors()):
            raise SeedError(str(seed_url), "error parsing seed URL") from exc
        raise
    return await start_crawl(config, crawl_timeout=crawl_timeout)

