#!/usr/bin/env python3
"""
Точка входа для запуска краулера LinkScout через командную строку.

Команды:
  crawl URL   Обойти сайт начиная с URL и вывести/сохранить граф ссылок
  config      Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (необязательно)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --workers INT       Число параллельных воркеров
  --timeout SEC       Таймаут одного запроса
  --max-pages INT     Лимит различных адресов
  --host-match MODE   exact | ignore_case | subdomains
  --ignore-port       Считать внутренними ссылки на другой порт того же хоста
  --no-validate-seed  Не проверять стартовый URL перед обходом
  --json PATH         Сохранить JSON-граф в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблоном report.html.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --crawl-timeout SEC Остановить обход через SEC секунд

Пример:
  link_scout crawl https://example.com --json graph.json --pretty
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from link_scout import __version__
from link_scout.aggregator import aggregate_results
from link_scout.config import load_config
from link_scout.crawler.models import HostMatch, SeedError
from link_scout.engine import start_crawl
from link_scout.logger import DEFAULT_FORMAT, init_logging, logger
from link_scout.report.html_report import render_html
from link_scout.report.json_report import render_json, to_json_data

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LinkScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд LinkScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


def _build_config(ctx, **overrides):
    try:
        return load_config(ctx.obj['config_path'], **overrides)
    except ValidationError as e:
        print_error(f'Некорректная конфигурация: {e}')
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.option('--workers', '-w', 'worker_count', type=click.IntRange(min=1), default=None,
              help='Число параллельных воркеров')
@click.option('--timeout', 'fetch_timeout', type=float, default=None,
              help='Таймаут одного запроса (секунд)')
@click.option('--max-pages', 'max_pages', type=click.IntRange(min=1), default=None,
              help='Лимит различных адресов за обход')
@click.option('--host-match', 'host_match', default=None,
              type=click.Choice([m.value for m in HostMatch]),
              help='Правило сравнения хоста для внутренних ссылок')
@click.option('--ignore-port', is_flag=True,
              help='Не учитывать порт при сравнении хоста')
@click.option('--no-validate-seed', 'no_validate_seed', is_flag=True,
              help='Не проверять стартовый URL перед обходом')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-граф в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном report.html.j2 (по умолчанию встроенный)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--crawl-timeout', 'crawl_timeout', type=float, default=None,
              help='Остановить обход через SEC секунд и вывести собранное')
@click.pass_context
def crawl(ctx, url, worker_count, fetch_timeout, max_pages, host_match, ignore_port,
          no_validate_seed, json_output, html_output, template_dir, pretty, crawl_timeout):
    """Обойти сайт и сгенерировать отчёты."""
    cfg = _build_config(
        ctx,
        seed_url=url,
        worker_count=worker_count,
        fetch_timeout=fetch_timeout,
        max_pages=max_pages,
        host_match=host_match,
        match_port=False if ignore_port else None,
        validate_seed=False if no_validate_seed else None,
    )
    try:
        result = asyncio.run(start_crawl(cfg, crawl_timeout=crawl_timeout))
    except SeedError as e:
        print_error(f'Некорректный стартовый URL: {e}')

    report = aggregate_results(result)
    logger.info('Crawl summary: %s', report.summary())

    # Если не сохраняем в файл — печатаем в stdout
    if not json_output and not html_output:
        indent = 2 if pretty else None
        click.echo(json.dumps(to_json_data(result), ensure_ascii=False, indent=indent))
        return

    if json_output:
        try:
            saved_json = render_json(result, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except OSError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.pass_context
def show_config(ctx, url):
    """Показать итоговую конфигурацию в JSON."""
    cfg = _build_config(ctx, seed_url=url)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
