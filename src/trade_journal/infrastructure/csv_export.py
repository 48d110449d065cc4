"""
CSV export in the application-native template schema.

Files written here import back unchanged: closed rows carry their own
exit price and profit/loss, so they bypass reconciliation on re-import.
"""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, TextIO, Union

from trade_journal.domain.types import TEMPLATE_COLUMNS, ConsolidatedTrade

logger = logging.getLogger(__name__)

Destination = Union[str, Path, TextIO]


def sample_template_rows() -> List[Dict[str, str]]:
    """Example rows covering stocks (long and short), futures and options."""
    return [
        {
            "symbol": "RELIANCE",
            "type": "LONG",
            "instrumentType": "STOCK",
            "entryPrice": "2850",
            "exitPrice": "2950",
            "quantity": "10",
            "entryDate": "2025-06-01T10:00:00",
            "exitDate": "2025-06-01T14:30:00",
            "profitLoss": "1000",
            "notes": "Earnings momentum trade",
            "sector": "Energy",
        },
        {
            "symbol": "HDFCBANK",
            "type": "SHORT",
            "instrumentType": "STOCK",
            "entryPrice": "1650",
            "exitPrice": "1600",
            "quantity": "20",
            "entryDate": "2025-06-02T09:30:00",
            "exitDate": "2025-06-02T15:45:00",
            "profitLoss": "1000",
            "notes": "Technical breakdown",
            "sector": "Banking",
        },
        {
            "symbol": "NIFTY",
            "type": "LONG",
            "instrumentType": "FUTURES",
            "entryPrice": "23400",
            "exitPrice": "23650",
            "quantity": "1",
            "entryDate": "2025-06-03T09:30:00",
            "exitDate": "2025-06-03T15:15:00",
            "expiryDate": "2025-06-26",
            "profitLoss": "250",
            "notes": "Trend following trade",
            "sector": "Index",
        },
        {
            "symbol": "RELIANCE",
            "type": "LONG",
            "instrumentType": "OPTIONS",
            "entryPrice": "45",
            "exitPrice": "85",
            "quantity": "25",
            "strikePrice": "3000",
            "optionType": "CALL",
            "entryDate": "2025-06-04T10:15:00",
            "exitDate": "2025-06-04T14:30:00",
            "expiryDate": "2025-06-26",
            "profitLoss": "1000",
            "notes": "Earnings play",
            "sector": "Energy",
        },
    ]


def _write_rows(rows: Iterable[Dict[str, str]], destination: Destination) -> int:
    count = 0

    def _emit(stream: TextIO) -> None:
        nonlocal count
        writer = csv.DictWriter(stream, fieldnames=TEMPLATE_COLUMNS, restval="")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
            count += 1

    if isinstance(destination, (str, Path)):
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            _emit(f)
        logger.info(f"Wrote {count} row(s) to {path}")
    else:
        _emit(destination)
    return count


def write_trades(trades: Iterable[ConsolidatedTrade], destination: Destination) -> int:
    """
    Write trades as template rows.

    Args:
        trades: Trades to export
        destination: File path or open text stream

    Returns:
        Number of rows written
    """
    return _write_rows((trade.to_record() for trade in trades), destination)


def write_sample_template(destination: Destination) -> int:
    """Write the sample template rows."""
    return _write_rows(sample_template_rows(), destination)
