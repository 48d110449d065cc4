"""
Lot-size resolution for exchange-traded derivatives.

Broker execution logs sometimes report index derivatives in lots rather
than units; these helpers convert between the two.
"""

from typing import Dict, Optional

from trade_journal.config.config import DEFAULT_LOT_SIZES
from trade_journal.domain.enums import InstrumentType

LOT_CONVERTIBLE_TYPES = (InstrumentType.OPTIONS, InstrumentType.FUTURES)


class LotSizeResolver:
    """Pure lookup: underlying symbol -> exchange lot size (unknown -> 1)."""

    def __init__(
        self,
        lot_sizes: Optional[Dict[str, int]] = None,
        lot_quantity_threshold: float = 10,
    ):
        table = DEFAULT_LOT_SIZES if lot_sizes is None else lot_sizes
        self._lot_sizes = {symbol.upper(): size for symbol, size in table.items()}
        self.lot_quantity_threshold = lot_quantity_threshold

    def lot_size(self, symbol: str) -> int:
        if not symbol:
            return 1
        return self._lot_sizes.get(symbol.strip().upper(), 1)

    def convert_lots_to_quantity(self, lots: float, symbol: str) -> float:
        return lots * self.lot_size(symbol)

    def looks_like_lot_count(self, quantity: float, instrument_type: InstrumentType) -> bool:
        """Small raw quantities on derivative rows are lot counts, not units."""
        return (
            instrument_type in LOT_CONVERTIBLE_TYPES
            and 0 < quantity <= self.lot_quantity_threshold
        )

    def lots_for_quantity(self, quantity: float, symbol: str) -> float:
        """Units back to lots, rounded to two places for display."""
        size = self.lot_size(symbol)
        if size <= 1:
            return quantity
        return round(quantity / size, 2)


_default_resolver = LotSizeResolver()


def lot_size(symbol: str) -> int:
    """Lot size using the built-in table."""
    return _default_resolver.lot_size(symbol)


def convert_lots_to_quantity(lots: float, symbol: str) -> float:
    """Lots to absolute units using the built-in table."""
    return _default_resolver.convert_lots_to_quantity(lots, symbol)
