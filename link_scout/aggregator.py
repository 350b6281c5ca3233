"""link_scout.aggregator: Сводный отчёт по результатам обхода ссылок."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import List, Optional, TypedDict

from link_scout.crawler.models import CrawlResult, Link, LinkKind

__all__ = ["PageInfo", "LinkInfo", "CrawlReport", "aggregate_results"]


class PageInfo(TypedDict):
    """Информация о посещённой странице."""

    address: str
    title: str
    status: Optional[int]
    dead: bool
    links: int


class LinkInfo(TypedDict):
    """Информация о ссылке, попавшей в отчёт."""

    source: Optional[str]
    raw: str
    address: Optional[str]
    text: str


@dataclass(slots=True)
class CrawlReport:
    """Итог обхода: страницы и проблемные ссылки."""

    seed: str
    pages: List[PageInfo] = field(default_factory=list)
    dead_links: List[LinkInfo] = field(default_factory=list)
    external_links: List[LinkInfo] = field(default_factory=list)
    malformed_links: List[LinkInfo] = field(default_factory=list)
    unresolved_links: List[LinkInfo] = field(default_factory=list)
    cancelled: bool = False

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(asdict(self), ensure_ascii=False, indent=2 if pretty else None)

    def summary(self) -> str:
        """Однострочная сводка для лога."""
        return (
            f"{len(self.pages)} pages, {len(self.dead_links)} dead, "
            f"{len(self.external_links)} external, {len(self.malformed_links)} malformed, "
            f"{len(self.unresolved_links)} unresolved links"
            + (" (cancelled)" if self.cancelled else "")
        )


def _link_info(link: Link) -> LinkInfo:
    return {"source": link.source, "raw": link.raw, "address": link.address, "text": link.text}


def aggregate_results(result: CrawlResult) -> CrawlReport:
    """Собирает CrawlReport из графа страниц."""
    report = CrawlReport(seed=result.seed, cancelled=result.cancelled)
    for page in result.values():
        report.pages.append(
            {
                "address": page.address,
                "title": page.title,
                "status": page.status,
                "dead": page.dead,
                "links": len(page.links),
            }
        )
    for link in result.links():
        kind = link.kind
        if kind is LinkKind.MALFORMED:
            report.malformed_links.append(_link_info(link))
        elif kind is LinkKind.EXTERNAL:
            report.external_links.append(_link_info(link))
        elif kind is LinkKind.INTERNAL:
            if link.target is None:
                report.unresolved_links.append(_link_info(link))
            elif link.dead:
                report.dead_links.append(_link_info(link))
    return report
