"""Crawling core: classification, fetching, extraction, dedup and coordination."""
from link_scout.crawler.classifier import LinkClassifier, canonicalize
from link_scout.crawler.crawler import LinkCrawler, PendingWork
from link_scout.crawler.fetcher import Fetcher
from link_scout.crawler.link_extractor import LinkExtractor
from link_scout.crawler.models import (
    DEAD_PAGE_TITLE,
    CrawlResult,
    HostMatch,
    Link,
    LinkKind,
    LinkScoutError,
    Page,
    SeedError,
)
from link_scout.crawler.store import Claim, ClaimState, VisitedStore

__all__ = [
    "DEAD_PAGE_TITLE",
    "Claim",
    "ClaimState",
    "CrawlResult",
    "Fetcher",
    "HostMatch",
    "Link",
    "LinkClassifier",
    "LinkCrawler",
    "LinkExtractor",
    "LinkKind",
    "LinkScoutError",
    "Page",
    "PendingWork",
    "SeedError",
    "VisitedStore",
    "canonicalize",
]
