"""Utilities and helper functions."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import LoggingConfig


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = "songfinder.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    console_output: bool = True,
) -> None:
    """Setup logging configuration.

    Parameters
    ----------
    level: int
        Logging level.
    log_file: str or None
        Path to the log file. ``None`` disables file logging.
    max_bytes: int
        Maximum size in bytes before rotating the log file.
    backup_count: int
        Number of rotated log files to keep.
    console_output: bool
        Whether to also log to the console.
    """

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def setup_logging_from_config(cfg: LoggingConfig, verbose: bool = False) -> None:
    """Apply a ``LoggingConfig`` section."""
    level = logging.DEBUG if verbose else getattr(logging, cfg.level.upper(), logging.INFO)
    setup_logging(
        level=level,
        log_file=cfg.file_path or None,
        max_bytes=cfg.max_file_size_mb * 1024 * 1024,
        backup_count=cfg.backup_count,
        console_output=cfg.console_output,
    )
