"""
Logging configuration with rotating file handlers.

Usage:
    from mapnav.logging_config import setup_logging
    setup_logging()  # Call once at application startup
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 5 MB per file, 5 backups
MAX_LOG_SIZE_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5


def setup_logging(
    log_dir: Union[str, Path] = "logs",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with console and rotating file handlers.

    Sets up three outputs:
    - Console: ``console_level`` and above
    - ``mapnav.log``: everything the app logs at ``file_level`` and above
    - ``navigation.log``: only the navigator (position updates, reroutes)

    Args:
        log_dir: Directory for the log files, created if missing.
        console_level: Minimum log level for console output (default: INFO)
        file_level: Minimum log level for file output (default: DEBUG)
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Streamlit reruns the script; avoid stacking handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    app_file_handler = RotatingFileHandler(
        log_path / "mapnav.log",
        maxBytes=MAX_LOG_SIZE_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    app_file_handler.setLevel(file_level)
    app_file_handler.setFormatter(formatter)
    root_logger.addHandler(app_file_handler)

    navigation_file_handler = RotatingFileHandler(
        log_path / "navigation.log",
        maxBytes=MAX_LOG_SIZE_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    navigation_file_handler.setLevel(file_level)
    navigation_file_handler.setFormatter(formatter)

    navigation_logger = logging.getLogger("mapnav.navigation")
    navigation_logger.handlers.clear()
    navigation_logger.addHandler(navigation_file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("geopy").setLevel(logging.WARNING)

    root_logger.info("Logging initialized - console: %s, file: %s",
                     logging.getLevelName(console_level),
                     logging.getLevelName(file_level))
