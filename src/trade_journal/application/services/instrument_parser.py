"""
Instrument identifier parser for exchange option codes.

Decodes free-text codes such as ``NIFTY2561224900PE`` into underlying,
strike, option type and expiry. Grammars are tried in a fixed order and
the first structural match wins, even when the result looks implausible:

    DATED          NIFTY2561224900PE   symbol + 5-digit date code + strike + CE/PE
    UNDATED        SENSEX81500CE       symbol + strike + CE/PE
    SPLIT_DIGITS   NIFTY2524900PE      symbol + digit run + strike + CE/PE
    STRIKE_SUFFIX  ..24900PE           strike + CE/PE, symbol guessed
    DIGIT_RUN      ..24900..           any 4-6 digit run, type guessed
    (fallback)                         default strike for the guessed symbol

The last three (and any default-strike substitution) are low confidence
and flagged ambiguous so callers can surface them.
"""

import logging
import re
from dataclasses import replace
from datetime import date
from typing import Callable, Dict, Optional, Sequence

from trade_journal.config.config import DEFAULT_STRIKE_PRICES
from trade_journal.domain.enums import Grammar, OptionType
from trade_journal.domain.types import ParsedInstrument

logger = logging.getLogger(__name__)

DATED_PATTERN = re.compile(r"^([A-Z]+)(\d{5})(\d{4,6})([CP]E)$", re.IGNORECASE)
UNDATED_PATTERN = re.compile(r"^([A-Z]+)(\d{4,6})([CP]E)$", re.IGNORECASE)
SPLIT_DIGITS_PATTERN = re.compile(r"^([A-Z]+)(\d+)(\d{4,6})([CP]E)$", re.IGNORECASE)
STRIKE_SUFFIX_PATTERN = re.compile(r"(\d{4,6})([CP]E)$", re.IGNORECASE)
DIGIT_RUN_PATTERN = re.compile(r"(\d{4,6})")

DEFAULT_UNDERLYING = "NIFTY"
# Checked in order; BANKNIFTY text therefore resolves to NIFTY
CONTAINMENT_UNDERLYINGS = ("NIFTY", "SENSEX")

Matcher = Callable[[str], Optional[ParsedInstrument]]


def _option_type(suffix: str) -> OptionType:
    return OptionType.CALL if suffix.upper() == "CE" else OptionType.PUT


def guess_underlying(text: str) -> str:
    """Underlying by substring containment, defaulting to NIFTY."""
    upper = text.upper()
    for symbol in CONTAINMENT_UNDERLYINGS:
        if symbol in upper:
            return symbol
    return DEFAULT_UNDERLYING


def decode_date_code(code: str) -> Optional[date]:
    """
    Decode an expiry date code.

    digits[0:2] is the year offset from 2000, digits[2:4] the month and
    digits[4:] the day. Five-digit codes are the exchange weekly form
    YY M DD (``25612`` -> 2025-06-12), so that reading is tried first.

    Returns None for short or impossible codes; never raises.
    """
    if len(code) < 5 or not code.isdigit():
        return None

    year = 2000 + int(code[:2])
    candidates = []
    if len(code) == 5:
        candidates.append((int(code[2]), int(code[3:])))
    candidates.append((int(code[2:4]), int(code[4:])))

    for month, day in candidates:
        try:
            return date(year, month, day)
        except ValueError:
            continue

    logger.debug(f"Could not decode expiry date code {code}")
    return None


# ============================================================================
# Grammar matchers (pure; None means "did not match")
# ============================================================================


def match_dated(text: str) -> Optional[ParsedInstrument]:
    m = DATED_PATTERN.match(text)
    if not m:
        return None
    return ParsedInstrument(
        raw=text,
        underlying=m.group(1).upper(),
        strike_price=float(m.group(3)),
        option_type=_option_type(m.group(4)),
        expiry_date=decode_date_code(m.group(2)),
        grammar=Grammar.DATED,
    )


def match_undated(text: str) -> Optional[ParsedInstrument]:
    m = UNDATED_PATTERN.match(text)
    if not m:
        return None
    return ParsedInstrument(
        raw=text,
        underlying=m.group(1).upper(),
        strike_price=float(m.group(2)),
        option_type=_option_type(m.group(3)),
        expiry_date=None,
        grammar=Grammar.UNDATED,
    )


def match_split_digits(text: str) -> Optional[ParsedInstrument]:
    m = SPLIT_DIGITS_PATTERN.match(text)
    if not m:
        return None
    return ParsedInstrument(
        raw=text,
        underlying=m.group(1).upper(),
        strike_price=float(m.group(3)),
        option_type=_option_type(m.group(4)),
        expiry_date=decode_date_code(m.group(2)),
        grammar=Grammar.SPLIT_DIGITS,
    )


def match_strike_suffix(text: str) -> Optional[ParsedInstrument]:
    m = STRIKE_SUFFIX_PATTERN.search(text)
    if not m:
        return None
    return ParsedInstrument(
        raw=text,
        underlying=guess_underlying(text),
        strike_price=float(m.group(1)),
        option_type=_option_type(m.group(2)),
        expiry_date=None,
        grammar=Grammar.STRIKE_SUFFIX,
    )


def match_digit_run(text: str) -> Optional[ParsedInstrument]:
    m = DIGIT_RUN_PATTERN.search(text)
    if not m:
        return None
    upper = text.upper()
    if "CE" in upper:
        option_type = OptionType.CALL
    elif "PE" in upper:
        option_type = OptionType.PUT
    else:
        option_type = None
    return ParsedInstrument(
        raw=text,
        underlying=guess_underlying(text),
        strike_price=float(m.group(1)),
        option_type=option_type,
        expiry_date=None,
        grammar=Grammar.DIGIT_RUN,
    )


GRAMMARS: Sequence[Matcher] = (
    match_dated,
    match_undated,
    match_split_digits,
    match_strike_suffix,
    match_digit_run,
)


class InstrumentParser:
    """Runs the grammar list and applies default strikes."""

    def __init__(
        self,
        default_strikes: Optional[Dict[str, float]] = None,
        grammars: Sequence[Matcher] = GRAMMARS,
    ):
        table = DEFAULT_STRIKE_PRICES if default_strikes is None else default_strikes
        self.default_strikes = {symbol.upper(): strike for symbol, strike in table.items()}
        self.grammars = grammars

    def parse(self, text: str) -> ParsedInstrument:
        """
        Parse instrument text. Always returns a result; unparseable text
        falls back to the default strike of the guessed underlying.
        """
        clean = (text or "").strip()

        for grammar in self.grammars:
            parsed = grammar(clean)
            if parsed is None:
                continue
            if parsed.strike_price is not None and parsed.strike_price <= 0:
                parsed = replace(
                    parsed,
                    strike_price=self.default_strikes.get(parsed.underlying),
                    used_default_strike=True,
                )
            if parsed.is_ambiguous:
                logger.debug(
                    f"Low-confidence parse of '{clean}' via {parsed.grammar.value}"
                )
            return parsed

        underlying = guess_underlying(clean)
        return ParsedInstrument(
            raw=clean,
            underlying=underlying,
            strike_price=self.default_strikes.get(underlying),
            option_type=None,
            expiry_date=None,
            grammar=Grammar.DEFAULT_STRIKE,
            used_default_strike=True,
        )


_default_parser = InstrumentParser()


def parse_instrument(text: str) -> ParsedInstrument:
    """Parse with the built-in default strike table."""
    return _default_parser.parse(text)
