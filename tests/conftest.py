"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta

import pytest

from trade_journal.application.services.import_service import TradeImporter
from trade_journal.config.config import Config
from trade_journal.domain.enums import InstrumentType, OptionType, SourceFormat
from trade_journal.domain.types import NormalizedFill

BROKER_HEADER = "Time,Type,Instrument,Qty.,Avg. price"


@pytest.fixture
def config():
    """Default configuration (environment not consulted)."""
    return Config()


@pytest.fixture
def importer(config):
    return TradeImporter(config)


@pytest.fixture
def base_time():
    return datetime(2025, 6, 12, 9, 15, 0)


@pytest.fixture
def make_fill(base_time):
    """Factory for NormalizedFill values on one NIFTY 24900 PUT key."""

    def _make(side, quantity, price, minutes=0, row_number=1, **overrides):
        values = dict(
            symbol="NIFTY",
            side=side,
            instrument_type=InstrumentType.OPTIONS,
            quantity=quantity,
            price=price,
            timestamp=base_time + timedelta(minutes=minutes),
            row_number=row_number,
            source_format=SourceFormat.BROKER,
            strike_price=24900.0,
            option_type=OptionType.PUT,
            sector="Index",
        )
        values.update(overrides)
        return NormalizedFill(**values)

    return _make


@pytest.fixture
def broker_csv():
    """Build broker execution log text from (time, type, instrument, qty, price) tuples."""

    def _build(*rows):
        lines = [BROKER_HEADER]
        lines.extend(",".join(str(cell) for cell in row) for row in rows)
        return "\n".join(lines) + "\n"

    return _build
