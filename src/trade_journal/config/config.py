"""
Configuration management for the trade journal importer.

Loads configuration from environment variables with sensible defaults.
All configuration is immutable and validated at startup.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from dotenv import load_dotenv

from trade_journal.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


# Exchange lot sizes (units per lot)
DEFAULT_LOT_SIZES: Dict[str, int] = {
    "NIFTY": 75,
    "SENSEX": 20,
    "BANKNIFTY": 30,
}

# Fallback strikes when instrument text carries no usable digits
DEFAULT_STRIKE_PRICES: Dict[str, float] = {
    "NIFTY": 24900.0,
    "SENSEX": 81500.0,
    "BANKNIFTY": 45000.0,
}


@dataclass(frozen=True)
class ImportLimitsConfig:
    """Batch size limits for a single uploaded file."""

    max_rows: int = 10000
    max_file_size_mb: int = 50

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


@dataclass(frozen=True)
class InstrumentConfig:
    """
    Instrument lookup tables.

    A raw broker quantity at or below lot_quantity_threshold on an
    OPTIONS/FUTURES row is read as a lot count (2 NIFTY lots -> 150 units).
    """

    lot_sizes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_LOT_SIZES))
    default_strikes: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_STRIKE_PRICES)
    )
    lot_quantity_threshold: float = 10


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "[%(correlation_id)s] %(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[Path] = None
    console_output: bool = True


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    limits: ImportLimitsConfig = field(default_factory=ImportLimitsConfig)
    instruments: InstrumentConfig = field(default_factory=InstrumentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Config':
        """
        Load configuration from environment variables.

        Args:
            env_file: Optional path to .env file. Defaults to .env in project root.

        Returns:
            Config instance with all settings loaded.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            # src/trade_journal/config/config.py -> project root
            project_root = Path(__file__).parent.parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        limits = ImportLimitsConfig(
            max_rows=_env_int("IMPORT_MAX_ROWS", 10000),
            max_file_size_mb=_env_int("IMPORT_MAX_FILE_SIZE_MB", 50),
        )

        lot_sizes = dict(DEFAULT_LOT_SIZES)
        for symbol, size in _parse_symbol_table(os.getenv("LOT_SIZES", "")).items():
            if not size.is_integer():
                raise ConfigurationError(
                    f"LOT_SIZES entry for {symbol} must be a whole number, got {size:g}",
                    {"symbol": symbol, "value": size},
                )
            lot_sizes[symbol] = int(size)
        default_strikes = dict(DEFAULT_STRIKE_PRICES)
        default_strikes.update(_parse_symbol_table(os.getenv("DEFAULT_STRIKES", "")))

        instruments = InstrumentConfig(
            lot_sizes=lot_sizes,
            default_strikes=default_strikes,
            lot_quantity_threshold=_env_float("LOT_QUANTITY_THRESHOLD", 10.0),
        )

        log_file_path = os.getenv("LOG_FILE")
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            format=os.getenv(
                "LOG_FORMAT",
                "[%(correlation_id)s] %(asctime)s - %(name)s - %(levelname)s - %(message)s",
            ),
            log_file=Path(log_file_path) if log_file_path else None,
            console_output=os.getenv("LOG_CONSOLE", "true").lower() == "true",
        )

        return cls(limits=limits, instruments=instruments, logging=logging_config)

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages. Empty list if valid.
        """
        errors = []

        if self.limits.max_rows <= 0:
            errors.append(f"IMPORT_MAX_ROWS must be > 0, got {self.limits.max_rows}")

        if self.limits.max_file_size_mb <= 0:
            errors.append(
                f"IMPORT_MAX_FILE_SIZE_MB must be > 0, got {self.limits.max_file_size_mb}"
            )

        if self.instruments.lot_quantity_threshold < 0:
            errors.append(
                "LOT_QUANTITY_THRESHOLD must be >= 0, "
                f"got {self.instruments.lot_quantity_threshold}"
            )

        for symbol, size in self.instruments.lot_sizes.items():
            if size <= 0:
                errors.append(f"Lot size for {symbol} must be > 0, got {size}")

        for symbol, strike in self.instruments.default_strikes.items():
            if strike <= 0:
                errors.append(f"Default strike for {symbol} must be > 0, got {strike}")

        return errors


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got '{raw}'", {"variable": name, "value": raw}
        ) from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number, got '{raw}'", {"variable": name, "value": raw}
        ) from None


def _parse_symbol_table(raw: str) -> Dict[str, float]:
    """Parse 'NIFTY:75,SENSEX:20' into {'NIFTY': 75.0, 'SENSEX': 20.0}."""
    table: Dict[str, float] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        symbol, sep, value = item.partition(":")
        if not sep:
            logger.warning(f"Ignoring malformed symbol table entry '{item}'")
            continue
        try:
            table[symbol.strip().upper()] = float(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric value in symbol table entry '{item}'")
    return table
