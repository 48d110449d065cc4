"""
Row normalizer: one raw CSV row in, one NormalizedFill (or rejection) out.

Two schemas are recognized:

    broker execution log   Time, Type, Instrument, Qty., Avg. price
    application-native     symbol, type, entryPrice, quantity, entryDate, ...

Header names are compared after lower-casing and dropping every
non-alphanumeric character, so "Avg. price", "avg_price" and "AvgPrice"
all resolve to the same field.
"""

import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Callable, Dict, Mapping, Optional, Tuple

from trade_journal.application.services.instrument_parser import InstrumentParser
from trade_journal.application.services.lot_sizes import LotSizeResolver
from trade_journal.domain.enums import InstrumentType, OptionType, Side, SourceFormat
from trade_journal.domain.errors import AppError, Err, ErrorCode, Ok, Result
from trade_journal.domain.types import NormalizedFill

logger = logging.getLogger(__name__)


# canonical field -> accepted normalized header names
BROKER_ALIASES: Dict[str, Tuple[str, ...]] = {
    "time": ("time", "ordertime", "tradetime", "executiontime", "timestamp", "datetime"),
    "type": ("type", "side", "transactiontype", "tradetype", "buysell"),
    "instrument": ("instrument", "tradingsymbol", "contract"),
    "quantity": ("qty", "quantity", "filledqty", "tradedqty"),
    "average_price": ("avgprice", "averageprice", "tradeprice", "price", "fillprice"),
}

APPLICATION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "symbol": ("symbol", "ticker", "underlying"),
    "type": ("type", "side", "direction", "position"),
    "instrument_type": ("instrumenttype", "assettype", "assetclass"),
    "entry_price": ("entryprice", "entry", "openprice", "buyprice"),
    "exit_price": ("exitprice", "exit", "closeprice", "sellprice"),
    "quantity": ("quantity", "qty", "shares", "size", "contracts"),
    "entry_date": ("entrydate", "entrytime", "opendate", "tradedate", "date"),
    "exit_date": ("exitdate", "exittime", "closedate"),
    "profit_loss": ("profitloss", "pnl", "pl", "realizedpnl", "netpnl"),
    "notes": ("notes", "note", "comments", "comment"),
    "sector": ("sector",),
    "strike_price": ("strikeprice", "strike"),
    "option_type": ("optiontype", "putcall", "callput", "right"),
    "expiry_date": ("expirydate", "expiry", "expiration", "expirationdate"),
}

BROKER_REQUIRED = ("time", "type", "instrument", "quantity", "average_price")
APPLICATION_REQUIRED = ("symbol", "type", "entry_price", "quantity", "entry_date")

BROKER_SIDES = {"BUY": Side.LONG, "SELL": Side.SHORT}

OPTION_TYPES = {
    "CALL": OptionType.CALL,
    "CE": OptionType.CALL,
    "C": OptionType.CALL,
    "PUT": OptionType.PUT,
    "PE": OptionType.PUT,
    "P": OptionType.PUT,
}

INSTRUMENT_TYPES = {
    "STOCK": InstrumentType.STOCK,
    "STOCKS": InstrumentType.STOCK,
    "EQUITY": InstrumentType.STOCK,
    "EQ": InstrumentType.STOCK,
    "FUTURES": InstrumentType.FUTURES,
    "FUTURE": InstrumentType.FUTURES,
    "FUT": InstrumentType.FUTURES,
    "OPTIONS": InstrumentType.OPTIONS,
    "OPTION": InstrumentType.OPTIONS,
    "OPT": InstrumentType.OPTIONS,
}

DATETIME_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y",
    "%d-%b-%Y %H:%M:%S",
    "%d-%b-%Y",
    "%d %b %Y",
    "%b %d, %Y",
)

_HEADER_JUNK = re.compile(r"[^a-z0-9]")
_HTML_TAG = re.compile(r"<[^>]*>")
_UNSAFE_CHARS = re.compile(r"[<>'\"&]")
_LEADING_DIGITS = re.compile(r"\d+")


# ============================================================================
# Field helpers
# ============================================================================


def normalize_header(name: str) -> str:
    """'Avg. price' -> 'avgprice'."""
    return _HEADER_JUNK.sub("", str(name).lower())


def resolve_fields(row: Mapping, aliases: Mapping[str, Tuple[str, ...]]) -> Dict[str, str]:
    """
    Map a raw row onto canonical field names.

    Values are stripped strings; blank cells are left out. When two
    headers resolve to the same field the first non-blank one wins.
    """
    lookup = {alias: canonical for canonical, names in aliases.items() for alias in names}
    resolved: Dict[str, str] = {}
    for header, value in row.items():
        # csv.DictReader files overflow cells under a None key
        if header is None or value is None or isinstance(value, (list, tuple)):
            continue
        canonical = lookup.get(normalize_header(header))
        if canonical is None or canonical in resolved:
            continue
        text = str(value).strip()
        if text:
            resolved[canonical] = text
    return resolved


def parse_number(value: Optional[str]) -> Optional[float]:
    """
    Parse a numeric cell, tolerating thousands separators, currency
    symbols and accounting-style negatives. Returns None when unparseable.
    """
    if value is None:
        return None
    clean = str(value).strip()
    for symbol in (",", "$", "₹", "€", "£", "Rs.", "INR", " "):
        clean = clean.replace(symbol, "")
    if clean.startswith("(") and clean.endswith(")"):
        clean = "-" + clean[1:-1]
    if not clean or clean in ("-", "--"):
        return None
    try:
        number = float(clean)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a timestamp cell. ISO 8601 (with 'T' or a space separator) is
    tried first, then a list of common broker formats. Aware values are
    converted to naive UTC.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: Optional[str]) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def sanitize_text(value: Optional[str]) -> str:
    """Strip HTML tags and markup characters from free text."""
    if not value:
        return ""
    return _UNSAFE_CHARS.sub("", _HTML_TAG.sub("", value)).strip()


def infer_instrument_type(instrument: str) -> InstrumentType:
    upper = instrument.upper()
    if "PE" in upper or "CE" in upper:
        return InstrumentType.OPTIONS
    if "FUT" in upper:
        return InstrumentType.FUTURES
    return InstrumentType.STOCK


def _fmt(value: float) -> str:
    return f"{value:g}"


def _invalid(message: str, row_number: int, **context) -> Result[NormalizedFill, AppError]:
    return Err(AppError(ErrorCode.INVALID, message, {"row": row_number, **context}))


# ============================================================================
# Normalizer
# ============================================================================


class RowNormalizer:
    """Turns raw rows of either schema into NormalizedFill values."""

    def __init__(
        self,
        parser: Optional[InstrumentParser] = None,
        lot_resolver: Optional[LotSizeResolver] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.parser = parser or InstrumentParser()
        self.lot_resolver = lot_resolver or LotSizeResolver()
        self.clock = clock

    def detect_format(self, row: Mapping) -> SourceFormat:
        """Broker schema only when all five broker fields carry values."""
        fields = resolve_fields(row, BROKER_ALIASES)
        if all(fields.get(name) for name in BROKER_REQUIRED):
            return SourceFormat.BROKER
        return SourceFormat.APPLICATION

    def normalize(self, row: Mapping, row_number: int) -> Result[NormalizedFill, AppError]:
        """
        Normalize one row. Never raises: every failure comes back as Err.

        Args:
            row: Header -> cell mapping as read from the file
            row_number: 1-based data row number, used in diagnostics

        Returns:
            Result with the NormalizedFill, or an AppError with code
            MISSING_FIELD or INVALID.
        """
        try:
            if self.detect_format(row) is SourceFormat.BROKER:
                return self._normalize_broker(resolve_fields(row, BROKER_ALIASES), row_number)
            return self._normalize_application(
                resolve_fields(row, APPLICATION_ALIASES), row_number
            )
        except (ValueError, TypeError, ArithmeticError) as e:
            logger.warning(f"Row {row_number}: unexpected value error: {e}")
            return _invalid(f"Unreadable row: {e}", row_number)

    def _timestamp_or_now(self, value: str, row_number: int, field_name: str) -> datetime:
        parsed = parse_datetime(value)
        if parsed is None:
            parsed = self.clock()
            logger.warning(
                f"Row {row_number}: unparseable {field_name} '{value}', using {parsed.isoformat()}"
            )
        return parsed

    def _normalize_broker(
        self, fields: Dict[str, str], row_number: int
    ) -> Result[NormalizedFill, AppError]:
        side_text = fields["type"].upper()
        side = BROKER_SIDES.get(side_text)
        if side is None:
            return _invalid(f"Unknown side '{fields['type']}'", row_number, side=fields["type"])

        instrument = fields["instrument"]
        parsed = self.parser.parse(instrument)
        instrument_type = infer_instrument_type(instrument)

        qty_match = _LEADING_DIGITS.search(fields["quantity"].replace(",", ""))
        raw_quantity = float(qty_match.group()) if qty_match else 0.0
        if raw_quantity <= 0:
            return _invalid(
                f"Invalid quantity '{fields['quantity']}'", row_number, quantity=fields["quantity"]
            )

        price = parse_number(fields["average_price"])
        if price is None or price <= 0:
            return _invalid(
                f"Invalid price '{fields['average_price']}'",
                row_number,
                price=fields["average_price"],
            )

        symbol = sanitize_text(parsed.underlying).upper()
        quantity = raw_quantity
        if self.lot_resolver.looks_like_lot_count(raw_quantity, instrument_type):
            quantity = self.lot_resolver.convert_lots_to_quantity(raw_quantity, symbol)
            if quantity != raw_quantity:
                logger.debug(f"Row {row_number}: {_fmt(raw_quantity)} lots of {symbol} -> {_fmt(quantity)}")

        lots = self.lot_resolver.lots_for_quantity(quantity, symbol)
        strike = _fmt(parsed.strike_price) if parsed.strike_price is not None else "N/A"
        notes = sanitize_text(
            f"{instrument} {side_text} @ {_fmt(price)} "
            f"(Strike: {strike}, Qty: {_fmt(quantity)} = {_fmt(lots)} lots)"
        )

        return Ok(
            NormalizedFill(
                symbol=symbol,
                side=side,
                instrument_type=instrument_type,
                quantity=quantity,
                price=price,
                timestamp=self._timestamp_or_now(fields["time"], row_number, "time"),
                row_number=row_number,
                source_format=SourceFormat.BROKER,
                strike_price=parsed.strike_price,
                expiry_date=parsed.expiry_date,
                option_type=parsed.option_type,
                notes=notes,
                sector="Index",
                parsed_instrument=parsed,
            )
        )

    def _normalize_application(
        self, fields: Dict[str, str], row_number: int
    ) -> Result[NormalizedFill, AppError]:
        symbol = sanitize_text(fields.get("symbol")).upper()
        if symbol:
            fields["symbol"] = symbol
        else:
            fields.pop("symbol", None)

        missing = [name for name in APPLICATION_REQUIRED if not fields.get(name)]
        if missing:
            return Err(
                AppError(
                    ErrorCode.MISSING_FIELD,
                    f"Missing required field(s): {', '.join(missing)}",
                    {"row": row_number, "missing": missing},
                )
            )

        side = Side.SHORT if fields["type"].upper() in ("SHORT", "SELL") else Side.LONG

        entry_price = parse_number(fields["entry_price"])
        if entry_price is None or entry_price <= 0:
            return _invalid(f"Invalid entry price '{fields['entry_price']}'", row_number)

        quantity = parse_number(fields["quantity"])
        if quantity is None or quantity <= 0:
            return _invalid(f"Invalid quantity '{fields['quantity']}'", row_number)

        # Zero is a real exit: an option that expired worthless
        exit_price = None
        if fields.get("exit_price"):
            exit_price = parse_number(fields["exit_price"])
            if exit_price is None or exit_price < 0:
                return _invalid(f"Invalid exit price '{fields['exit_price']}'", row_number)

        profit_loss = parse_number(fields.get("profit_loss"))
        if profit_loss is None and exit_price is not None:
            if side is Side.LONG:
                profit_loss = (exit_price - entry_price) * quantity
            else:
                profit_loss = (entry_price - exit_price) * quantity

        instrument_type = INSTRUMENT_TYPES.get(
            fields.get("instrument_type", "").upper(), InstrumentType.STOCK
        )
        strike_price = parse_number(fields.get("strike_price"))
        if strike_price is not None and strike_price <= 0:
            strike_price = None

        return Ok(
            NormalizedFill(
                symbol=symbol,
                side=side,
                instrument_type=instrument_type,
                quantity=quantity,
                price=entry_price,
                timestamp=self._timestamp_or_now(fields["entry_date"], row_number, "entry date"),
                row_number=row_number,
                source_format=SourceFormat.APPLICATION,
                strike_price=strike_price,
                expiry_date=parse_date(fields.get("expiry_date")),
                option_type=OPTION_TYPES.get(fields.get("option_type", "").upper()),
                notes=sanitize_text(fields.get("notes")),
                sector=sanitize_text(fields.get("sector")),
                exit_price=exit_price,
                exit_date=parse_datetime(fields.get("exit_date")),
                profit_loss=profit_loss,
            )
        )


_default_normalizer = RowNormalizer()


def normalize_row(row: Mapping, row_number: int) -> Result[NormalizedFill, AppError]:
    """Normalize with the built-in lot-size and default-strike tables."""
    return _default_normalizer.normalize(row, row_number)
