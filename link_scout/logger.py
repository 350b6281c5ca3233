"""Logging for **LinkScout**.

Every module logs through a child of the ``LinkScout`` logger, named after
the component::

      from link_scout.logger import get_logger
      logger = get_logger(__name__)      # -> "LinkScout.crawler.fetcher"

Only the ``LinkScout`` logger carries handlers; children propagate to it, so
one :func:`configure` call sets level and destinations for the whole crawl.
Console output goes to *stderr*: the CLI prints the crawl graph on *stdout*.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Optional, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "LinkScout"

# rotation of --log-file
MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
LOG_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """Return the project logger, or its child for *component*.

    Module names are accepted as-is: ``"link_scout.crawler.store"`` and
    ``"crawler.store"`` give the same ``LinkScout.crawler.store`` logger.
    """
    if not component:
        return logging.getLogger(LOGGER_NAME)
    component = component.removeprefix("link_scout.")
    if component == "link_scout":
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{component}")


def _handlers(log_file: str | Path | None) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                filename=str(log_file),
                maxBytes=MAX_LOG_BYTES,
                backupCount=LOG_BACKUPS,
                encoding="utf-8",
            )
        )
    return handlers


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the project logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (``"debug"`` works too).
    log_file
        Rotating logfile in addition to stderr. *None* → stderr only.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        *True* – close and drop handlers from a previous call.
    """
    root = get_logger()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if replace_handlers:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(log_format)
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.propagate = False
    return root


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Called once by the CLI before any command runs."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = get_logger()

__all__ = ["logger", "get_logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
