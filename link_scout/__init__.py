"""
LinkScout package initializer.
Defines package version and exposes the crawling API.
"""
__version__ = "0.1.0"

from link_scout.crawler import CrawlResult, Link, LinkCrawler, Page, SeedError
from link_scout.engine import crawl_site, start_crawl

__all__ = [
    "__version__",
    "CrawlResult",
    "Link",
    "LinkCrawler",
    "Page",
    "SeedError",
    "crawl_site",
    "start_crawl",
]
