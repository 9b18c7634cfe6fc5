"""
Logging configuration for the ingestion pipeline (loguru).

Besides the console and an optional rotating file, duplicate-detection
decisions can be kept in their own audit file: every fuzzy merge is logged
at WARNING by ``pipeline.deduplication`` and is the only trace left of a
wrong merge.
"""

import os
import sys
from pathlib import Path

from loguru import logger

from pipeline.config import settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def _dedup_records(record) -> bool:
    return record["name"].startswith("pipeline.deduplication")


def _file_sink(path: str | Path, **options) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, format=FILE_FORMAT, compression="gz", **options)


def setup_logging(
    level: str | None = None,
    log_file: str | Path | None = None,
    audit_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> None:
    """
    Configure loguru sinks.

    Args:
        level: Console and log file level, defaults to LOG_LEVEL
        log_file: Rotating log file, defaults to LOG_FILE (none when unset)
        audit_file: File receiving WARNING+ duplicate-detection records,
            defaults to AUDIT_LOG_FILE (none when unset)
        rotation: Rotation for both files (e.g. "10 MB", "1 day")
        retention: Retention for the main log file
    """
    level = level or settings.pipeline.log_level
    log_file = log_file or settings.pipeline.log_file
    audit_file = audit_file or settings.pipeline.audit_log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        _file_sink(log_file, level=level, rotation=rotation, retention=retention)

    if audit_file:
        _file_sink(audit_file, level="WARNING", filter=_dedup_records, rotation=rotation, retention="6 months")

    logger.debug(f"Logging configured: level={level}")


if os.environ.get("DISABLE_LOGGING") != "1":
    setup_logging()
