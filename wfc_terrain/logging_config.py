"""
Centralized logging configuration for wfc-terrain.

Provides debug logging to file for every solve.
Log file: <log_dir>/debug.log (with rotation)

Usage:
    from wfc_terrain.logging_config import setup_logging
    setup_logging(log_dir)  # Call once at startup

All wfc_terrain.* loggers will write DEBUG to file, WARNING+ to console.
The library itself never configures logging; only entry points do.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
from typing import Hashable


# Global configuration
ROOT_LOGGER_NAME = "wfc_terrain"
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5  # Keep 5 backup files

_logging_initialized = False


def setup_logging(
    log_dir: Path | str,
    log_level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
) -> Path:
    """
    Configure the logging system for wfc-terrain.

    Args:
        log_dir: Directory for the log file (created if missing)
        log_level: Level for file logging (default: DEBUG)
        console_level: Level for console output (default: WARNING)

    Returns:
        Path to the log file
    """
    global _logging_initialized

    log_path_dir = Path(log_dir)
    log_path_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_path_dir / LOG_FILE_NAME

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)  # Capture all levels

    # Clear any existing handlers (for re-initialization)
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()

    # File handler with rotation
    file_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)-40s | %(funcName)-20s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    # Console handler (less verbose)
    console_formatter = logging.Formatter(
        fmt="%(levelname)-8s | %(name)-30s | %(message)s"
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # Log startup
    if not _logging_initialized:
        root_logger.info("=" * 80)
        root_logger.info(f"wfc-terrain logging initialized at {datetime.now().isoformat()}")
        root_logger.info(f"Log file: {log_path.absolute()}")
        root_logger.info("=" * 80)
        _logging_initialized = True

    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger configured as child of the wfc_terrain logger
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# =============================================================================
# Structured Logging Helpers
# =============================================================================


def log_attempt(
    logger: logging.Logger,
    attempt: int,
    max_attempts: int,
    status: str,
    details: str | None = None,
) -> None:
    """Log the start or end of a solve attempt."""
    details_str = f" | {details}" if details else ""
    logger.info(f"ATTEMPT {attempt:03d}/{max_attempts:03d} | {status}{details_str}")


def log_contradiction(
    logger: logging.Logger,
    attempt: int,
    coord: Hashable,
    collapsed: int,
    total: int,
) -> None:
    """Log a contradiction found during propagation."""
    logger.debug(
        f"ATTEMPT {attempt:03d} | CONTRADICTION | at={coord!r} | collapsed={collapsed}/{total}"
    )


def log_backtrack(
    logger: logging.Logger,
    attempt: int,
    coord: Hashable,
    tile_id: str,
    remaining: int,
) -> None:
    """Log a rollback of one collapse decision."""
    logger.debug(
        f"ATTEMPT {attempt:03d} | BACKTRACK | undo {tile_id} at {coord!r} | "
        f"checkpoints_left={remaining}"
    )


def log_result(
    logger: logging.Logger,
    status: str,
    attempts: int,
    cycles: int,
    duration_ms: int | None = None,
    details: str | None = None,
) -> None:
    """Log the outcome of a whole solve."""
    duration_str = f" | {duration_ms}ms" if duration_ms is not None else ""
    details_str = f" | {details}" if details else ""
    logger.info(f"SOLVE | {status} | attempts={attempts} | cycles={cycles}{duration_str}{details_str}")
