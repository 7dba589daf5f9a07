from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from src.core.runtime_paths import logs_dir


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL_ENV = "SHORTHAND_LOG_LEVEL"


def default_log_file() -> Path:
    return logs_dir() / "shorthand.log"


def resolve_log_level(value: str | None = None) -> int:
    name = (value if value is not None else os.getenv(LOG_LEVEL_ENV, "")).strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def configure_logging(log_file: Path | None = None, console: bool = False) -> Path:
    target = log_file or default_log_file()
    target.parent.mkdir(parents=True, exist_ok=True)

    shorthand_logger = logging.getLogger("shorthand")
    shorthand_logger.setLevel(resolve_log_level())

    if any(
        isinstance(handler, RotatingFileHandler)
        and Path(handler.baseFilename) == Path(os.path.abspath(target))
        for handler in shorthand_logger.handlers
    ):
        return target

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    file_handler = RotatingFileHandler(
        filename=target,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    shorthand_logger.addHandler(file_handler)
    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        shorthand_logger.addHandler(stream_handler)
    return target
