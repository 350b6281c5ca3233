"""link_scout.report: Генерация отчётов (JSON и HTML) для CLI и тестов."""

from link_scout.report.html_report import render_html
from link_scout.report.json_report import render_json, to_json_data

__all__ = ["render_json", "render_html", "to_json_data"]
