"""Process-wide logging setup.

All handlers write to stderr or a file. Stdout is reserved for the stdio tool
channel when running as a tool server.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pitchdeck.config.settings import LoggingSettings


def configure_logging(settings: LoggingSettings) -> None:
    """Apply level, format and optional rotating file output."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_path,
                maxBytes=settings.max_file_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=settings.level,
        format=settings.format,
        handlers=handlers,
        force=True,
    )
