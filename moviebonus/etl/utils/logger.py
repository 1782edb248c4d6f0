"""Logging configuration with console and optional file handlers."""

import logging
import sys
from datetime import datetime
from pathlib import Path

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOG_DATE_FORMAT = "%H:%M:%S"
_LOGGERS_CACHE: dict[str, logging.Logger] = {}


def setup_logger(
    name: str,
    level: int | str = logging.INFO,
    log_dir: Path | str | None = None,
) -> logging.Logger:
    """Configure and return a logger with console and file handlers.

    Args:
        name: Logger name (e.g., 'moviebonus' or 'etl.pipeline').
        level: Logging level, as int or name (default INFO).
        log_dir: Directory for log files. If None, logs to console only.

    Returns:
        Configured logger instance.
    """
    if name in _LOGGERS_CACHE:
        return _LOGGERS_CACHE[name]

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(_LOG_FORMAT, _LOG_DATE_FORMAT)
    logger.addHandler(_create_console_handler(formatter, level))

    if log_dir is not None:
        file_handler = _create_file_handler(name, formatter, level, Path(log_dir))
        if file_handler:
            logger.addHandler(file_handler)

    _LOGGERS_CACHE[name] = logger
    return logger


def _create_console_handler(
    formatter: logging.Formatter,
    level: int,
) -> logging.StreamHandler:
    """Create console stream handler.

    Args:
        formatter: Log formatter.
        level: Logging level.

    Returns:
        Configured StreamHandler.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _create_file_handler(
    name: str,
    formatter: logging.Formatter,
    level: int,
    log_dir: Path,
) -> logging.FileHandler | None:
    """Create a file handler writing to a dated log file.

    Returns:
        Configured FileHandler or None when the file cannot be opened.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        safe_name = name.replace(".", "_").replace("/", "_")
        date_suffix = datetime.now().strftime("%Y%m%d")
        handler = logging.FileHandler(log_dir / f"{safe_name}_{date_suffix}.log", encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler
    except OSError as e:
        print(f"Warning: Could not create log file: {e}", file=sys.stderr)
        return None
