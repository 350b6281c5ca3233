"""link_scout.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from link_scout.aggregator import CrawlReport

#: Папка со встроенным шаблоном report.html.j2.
DEFAULT_TEMPLATE_DIR = Path(__file__).with_name("templates")


def render_html(
    report: CrawlReport,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        report: объект CrawlReport.
        template_dir: директория с шаблоном report.html.j2 (None — встроенный).
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    template_dir = Path(template_dir) if template_dir is not None else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    context: dict[str, Any] = {
        "seed": report.seed,
        "pages": report.pages,
        "dead_links": report.dead_links,
        "external_links": report.external_links,
        "malformed_links": report.malformed_links,
        "unresolved_links": report.unresolved_links,
        "cancelled": report.cancelled,
        "summary": report.summary(),
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
