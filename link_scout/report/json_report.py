# link_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта LinkScout.

Сериализация графа страниц (CrawlResult) в файл или строку.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from link_scout.crawler.models import CrawlResult, Link, Page


def _link_data(link: Link) -> Dict[str, Any]:
    return {
        "text": link.text,
        "target": link.raw,
        "address": link.address,
        "internal": link.internal,
        "fragment": link.fragment,
        "malformed": link.malformed,
        "dead": link.dead,
        "resolved": link.target is not None,
    }


def _page_data(page: Page) -> Dict[str, Any]:
    return {
        "title": page.title,
        "status": page.status,
        "dead": page.dead,
        "links": [_link_data(link) for link in page.links],
    }


def to_json_data(result: CrawlResult) -> Dict[str, Any]:
    """Граф в виде словаря ``{address: {title, status, dead, links}}``."""
    return {address: _page_data(page) for address, page in result.items()}


def render_json(result: CrawlResult, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет граф страниц в формате JSON по указанному пути.

    :param result: результат обхода
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        json.dump(to_json_data(result), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
