"""Configuration loading and validation."""

from trade_journal.config.config import Config

__all__ = ["Config"]
