"""
Модуль для загрузки и валидации конфигурации краулера LinkScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

from link_scout.crawler.models import HostMatch

__all__ = ["CrawlerConfig", "load_config", "ValidationError"]


class CrawlerConfig(BaseModel):
    """Конфигурация для одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    seed_url: HttpUrl = Field(..., description="Стартовый URL обхода.")
    worker_count: int = Field(20, ge=1, le=512, description="Число параллельных воркеров.")
    fetch_timeout: float = Field(3.0, gt=0, description="Таймаут на один запрос (секунд).")
    max_pages: Optional[int] = Field(
        None, ge=1, description="Лимит различных адресов за обход (None — без ограничения)."
    )
    user_agent: str = Field("LinkScout/0.1", min_length=1, description="Заголовок User-Agent.")
    host_match: HostMatch = Field(
        HostMatch.IGNORE_CASE, description="Правило сравнения хоста для внутренних ссылок."
    )
    match_port: bool = Field(True, description="Учитывать порт при сравнении хоста.")
    validate_seed: bool = Field(True, description="Проверять стартовый URL до начала обхода.")
    chunk_size: int = Field(8192, ge=256, description="Размер блока чтения тела ответа (байт).")
    seed_text: Optional[str] = Field(
        None, exclude=True, repr=False,
        description="Стартовый URL в исходном написании (для host_match=exact).",
    )

    @model_validator(mode="before")
    @classmethod
    def _keep_seed_text(cls, data: Any) -> Any:
        # HttpUrl приводит хост к нижнему регистру и punycode
        if isinstance(data, dict) and isinstance(data.get("seed_url"), str):
            data = {**data, "seed_text": data["seed_url"].strip()}
        return data

    @field_validator("seed_url", mode="before")
    def _strip_seed(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """Читает YAML или JSON и возвращает сырые данные конфига без проверки схемы."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> CrawlerConfig:
    """
    Собирает проверенный CrawlerConfig из файла (YAML/JSON) и явных переопределений.

    Переопределения со значением None игнорируются, поэтому CLI может
    передавать все свои опции как есть.
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return CrawlerConfig(**data)
