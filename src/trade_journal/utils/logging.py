"""
Logging configuration for the trade journal importer.

Sets up logging with per-run correlation IDs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from trade_journal.config.config import LoggingConfig
from trade_journal.utils.tracing import CorrelationIdFilter


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        console_output: Whether to log to console
        log_format: Optional custom log format
    """
    if log_format is None:
        log_format = "%(asctime)s - [%(correlation_id)s] - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S")
    correlation_filter = CorrelationIdFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    if console_output:
        # stderr keeps stdout free for CLI tables
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(correlation_filter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(correlation_filter)
        root_logger.addHandler(file_handler)

    root_logger.info(f"Logging initialized: level={level}")


def setup_logging_from_config(config: LoggingConfig, level: Optional[str] = None) -> None:
    """Configure logging from a LoggingConfig, optionally overriding the level."""
    setup_logging(
        level=level or config.level,
        log_file=config.log_file,
        console_output=config.console_output,
        log_format=config.format,
    )

