"""
Enumerations for domain concepts.
"""

from enum import Enum


class Side(Enum):
    """Direction of a fill or trade."""

    LONG = "LONG"    # BUY in broker exports (opening side)
    SHORT = "SHORT"  # SELL in broker exports (closing side)


class InstrumentType(Enum):
    """Traded instrument class."""

    STOCK = "STOCK"
    FUTURES = "FUTURES"
    OPTIONS = "OPTIONS"


class OptionType(Enum):
    """Option contract type."""

    CALL = "CALL"
    PUT = "PUT"


class SourceFormat(Enum):
    """Schema a raw row was recognized as."""

    BROKER = "broker"            # Time, Type, Instrument, Qty., Avg. price
    APPLICATION = "application"  # symbol, type, entryPrice, quantity, entryDate


class Grammar(Enum):
    """Instrument grammar that produced a parse, in precedence order."""

    DATED = "dated"                    # NIFTY2561224900PE
    UNDATED = "undated"                # SENSEX81500CE
    SPLIT_DIGITS = "split_digits"      # symbol + digit run + strike
    STRIKE_SUFFIX = "strike_suffix"    # ...24900PE, symbol guessed
    DIGIT_RUN = "digit_run"            # any 4-6 digit run
    DEFAULT_STRIKE = "default_strike"  # nothing parsed

    @property
    def is_low_confidence(self) -> bool:
        return self in (Grammar.STRIKE_SUFFIX, Grammar.DIGIT_RUN, Grammar.DEFAULT_STRIKE)
