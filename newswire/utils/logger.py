"""
Logging configuration for Newswire.
Uses loguru for structured logging with rotation and formatting.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

# Remove default handler
logger.remove()

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logger(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    app_name: str = "newswire",
) -> None:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files. If None, logs only to console.
        app_name: Application name for log file naming.
    """
    # Console handler with color formatting
    logger.add(
        sys.stderr,
        level=log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        _add_file_sink(log_path / f"{app_name}.log", log_level)
        _add_file_sink(log_path / f"{app_name}_error.log", "ERROR")

        # Provider fetches and cache lifecycle only
        _add_file_sink(
            log_path / f"{app_name}_news.log",
            "INFO",
            fmt="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
            rotation="1 day",
            filter=_is_news_record,
        )


def _add_file_sink(path: Path, level: str, fmt: str = FILE_FORMAT, rotation: str = "10 MB", **kwargs) -> None:
    logger.add(path, level=level, format=fmt, rotation=rotation, encoding="utf-8", **kwargs)


def _is_news_record(record) -> bool:
    return "news" in record["extra"] or "cache" in record["extra"]


def get_logger(name: str = "newswire"):
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (module name)

    Returns:
        Logger instance bound with the name.
    """
    return logger.bind(name=name)


def news_log(message: str, **kwargs) -> None:
    """
    Log a news collection-related message.

    Args:
        message: Log message
        **kwargs: Additional context to include in the log
    """
    logger.bind(news=True).info(f"[NEWS] {message}", **kwargs)


def cache_log(message: str, **kwargs) -> None:
    """
    Log a cache lifecycle message (hits, writes, sweeps).

    Args:
        message: Log message
        **kwargs: Additional context to include in the log
    """
    logger.bind(cache=True).info(f"[CACHE] {message}", **kwargs)


__all__ = [
    "logger",
    "setup_logger",
    "get_logger",
    "news_log",
    "cache_log",
]
