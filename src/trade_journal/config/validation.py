"""
Configuration validation for startup checks.

Validates all configuration at startup to fail fast on misconfiguration.
"""

import logging
import os
from trade_journal.config.config import Config
from trade_journal.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["ConfigurationError", "validate_configuration"]


def validate_configuration(config: Config) -> None:
    """
    Validate all configuration at startup.

    Args:
        config: Configuration to validate

    Raises:
        ConfigurationError: If any validation fails
    """
    errors = config.validate()

    _validate_logging_setup(config, errors)

    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        error_summary = "\n".join(f"  - {error}" for error in errors)
        raise ConfigurationError(
            f"{len(errors)} configuration error(s):\n{error_summary}",
            {"errors": errors},
        )

    logger.info("✓ Configuration validated successfully")


def _validate_logging_setup(config: Config, errors: list) -> None:
    """Validate logging configuration."""
    if config.logging.log_file:
        log_parent = config.logging.log_file.parent
        if not log_parent.exists():
            errors.append(f"Log directory does not exist: {log_parent}")
        elif not os.access(log_parent, os.W_OK):
            errors.append(f"Log directory is not writable: {log_parent}")

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.logging.level.upper() not in valid_levels:
        errors.append(
            f"Invalid log level: {config.logging.level}. Must be one of {valid_levels}"
        )
