"""
Domain types for the trade import engine.

All types are immutable (frozen dataclasses); an import run builds new
values instead of mutating shared ones.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from trade_journal.domain.enums import (
    Grammar,
    InstrumentType,
    OptionType,
    Side,
    SourceFormat,
)


# Sample template / export column order
TEMPLATE_COLUMNS = [
    "symbol",
    "type",
    "instrumentType",
    "entryPrice",
    "exitPrice",
    "quantity",
    "entryDate",
    "exitDate",
    "profitLoss",
    "notes",
    "sector",
    "strikePrice",
    "optionType",
    "expiryDate",
]


# ============================================================================
# Instrument identity
# ============================================================================


@dataclass(frozen=True)
class InstrumentKey:
    """Grouping identity for related fills: underlying + strike + option type."""

    symbol: str
    strike_price: Optional[float] = None
    option_type: Optional[OptionType] = None

    def __str__(self) -> str:
        opt = self.option_type.value if self.option_type else "-"
        strike = f"{self.strike_price:g}" if self.strike_price is not None else "-"
        return f"{self.symbol}_{strike}_{opt}"


@dataclass(frozen=True)
class ParsedInstrument:
    """Structured view of a free-text instrument code."""

    raw: str
    underlying: str
    strike_price: Optional[float]
    option_type: Optional[OptionType]
    expiry_date: Optional[date]
    grammar: Grammar
    used_default_strike: bool = False

    @property
    def is_ambiguous(self) -> bool:
        """True when only a low-confidence grammar matched or a default strike was used."""
        return self.grammar.is_low_confidence or self.used_default_strike


# ============================================================================
# Fills and trades
# ============================================================================


@dataclass(frozen=True)
class NormalizedFill:
    """
    Canonical single execution produced by the row normalizer.

    Application rows that already describe a closed round trip carry
    exit_price/exit_date/profit_loss; broker executions never do.
    """

    symbol: str
    side: Side
    instrument_type: InstrumentType
    quantity: float
    price: float
    timestamp: datetime
    row_number: int
    source_format: SourceFormat
    strike_price: Optional[float] = None
    expiry_date: Optional[date] = None
    option_type: Optional[OptionType] = None
    notes: str = ""
    sector: str = ""
    exit_price: Optional[float] = None
    exit_date: Optional[datetime] = None
    profit_loss: Optional[float] = None
    parsed_instrument: Optional[ParsedInstrument] = None

    @property
    def key(self) -> InstrumentKey:
        return InstrumentKey(self.symbol, self.strike_price, self.option_type)

    @property
    def is_round_trip(self) -> bool:
        """True when the row already records its own exit."""
        return self.exit_price is not None

    @property
    def notional(self) -> float:
        return self.quantity * self.price


@dataclass(frozen=True)
class ConsolidatedTrade:
    """Entry-to-exit trade record handed to the persistence layer."""

    symbol: str
    direction: Side
    instrument_type: InstrumentType
    entry_price: float
    exit_price: Optional[float]
    quantity: float
    entry_date: datetime
    exit_date: Optional[datetime]
    profit_loss: Optional[float]
    notes: str = ""
    strike_price: Optional[float] = None
    option_type: Optional[OptionType] = None
    expiry_date: Optional[date] = None
    sector: str = ""
    fill_count: int = 1

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    @property
    def key(self) -> InstrumentKey:
        return InstrumentKey(self.symbol, self.strike_price, self.option_type)

    def to_record(self) -> Dict[str, str]:
        """Render as a row of the application-native template schema."""
        return {
            "symbol": self.symbol,
            "type": self.direction.value,
            "instrumentType": self.instrument_type.value,
            "entryPrice": _fmt_number(self.entry_price),
            "exitPrice": _fmt_number(self.exit_price),
            "quantity": _fmt_number(self.quantity),
            "entryDate": self.entry_date.isoformat(),
            "exitDate": self.exit_date.isoformat() if self.exit_date else "",
            "profitLoss": _fmt_number(self.profit_loss),
            "notes": self.notes,
            "sector": self.sector,
            "strikePrice": _fmt_number(self.strike_price),
            "optionType": self.option_type.value if self.option_type else "",
            "expiryDate": self.expiry_date.isoformat() if self.expiry_date else "",
        }


def _fmt_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    # Full precision: exported rows must import back unchanged
    return repr(round(value, 10)) if value != int(value) else str(int(value))


# ============================================================================
# Diagnostics
# ============================================================================


@dataclass(frozen=True)
class RowRejection:
    """A row that failed validation and was left out of the import."""

    row_number: int
    code: str
    reason: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.reason}"


@dataclass(frozen=True)
class ParseWarning:
    """Instrument text that only matched a low-confidence grammar."""

    row_number: int
    instrument: str
    grammar: Grammar
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass(frozen=True)
class ImportResult:
    """Everything one import run produced."""

    trades: Tuple[ConsolidatedTrade, ...]
    rejections: Tuple[RowRejection, ...] = ()
    warnings: Tuple[ParseWarning, ...] = ()
    total_rows: int = 0
    imported_fills: int = 0

    @property
    def imported_count(self) -> int:
        return len(self.trades)

    @property
    def rejected_count(self) -> int:
        return len(self.rejections)

    @property
    def open_trades(self) -> List[ConsolidatedTrade]:
        return [t for t in self.trades if t.is_open]

    @property
    def closed_trades(self) -> List[ConsolidatedTrade]:
        return [t for t in self.trades if not t.is_open]

    @property
    def realized_pnl(self) -> float:
        return sum(t.profit_loss or 0.0 for t in self.closed_trades)

    def summary(self) -> Dict[str, object]:
        return {
            "total_rows": self.total_rows,
            "imported_fills": self.imported_fills,
            "trades": self.imported_count,
            "open_trades": len(self.open_trades),
            "rejected": self.rejected_count,
            "warnings": len(self.warnings),
            "realized_pnl": round(self.realized_pnl, 2),
        }
