"""Unit tests for the instrument identifier parser."""

from datetime import date

import pytest

from trade_journal.application.services.instrument_parser import (
    InstrumentParser,
    decode_date_code,
    guess_underlying,
    match_dated,
    match_undated,
    parse_instrument,
)
from trade_journal.domain.enums import Grammar, OptionType


class TestDatedGrammar:
    """Symbol + date code + strike + CE/PE."""

    def test_weekly_nifty_put(self):
        """Test the canonical weekly code decodes fully."""
        parsed = parse_instrument("NIFTY2561224900PE")

        assert parsed.underlying == "NIFTY"
        assert parsed.strike_price == 24900.0
        assert parsed.option_type == OptionType.PUT
        assert parsed.expiry_date == date(2025, 6, 12)
        assert parsed.grammar == Grammar.DATED
        assert not parsed.is_ambiguous

    def test_lowercase_input(self):
        parsed = parse_instrument("nifty2561224900ce")

        assert parsed.underlying == "NIFTY"
        assert parsed.option_type == OptionType.CALL
        assert parsed.grammar == Grammar.DATED

    def test_surrounding_whitespace_ignored(self):
        assert parse_instrument("  NIFTY2561224900PE ").strike_price == 24900.0

    def test_matcher_rejects_undated_text(self):
        assert match_dated("SENSEX81500CE") is None


class TestUndatedGrammar:
    """Symbol + strike + CE/PE, no expiry."""

    def test_sensex_call(self):
        parsed = parse_instrument("SENSEX81500CE")

        assert parsed.underlying == "SENSEX"
        assert parsed.strike_price == 81500.0
        assert parsed.option_type == OptionType.CALL
        assert parsed.expiry_date is None
        assert parsed.grammar == Grammar.UNDATED
        assert not parsed.is_ambiguous

    def test_matcher_requires_anchored_text(self):
        assert match_undated("NIFTY 24900PE") is None

    def test_zero_strike_replaced_by_default(self):
        """Test that a non-positive strike falls back to the default strike."""
        parsed = parse_instrument("NIFTY0000CE")

        assert parsed.grammar == Grammar.UNDATED
        assert parsed.strike_price == 24900.0
        assert parsed.used_default_strike
        assert parsed.is_ambiguous


class TestSplitDigitsGrammar:

    def test_first_structural_match_wins(self):
        """Test that the greedy split is accepted even when implausible."""
        parsed = parse_instrument("NIFTY2524900PE")

        assert parsed.grammar == Grammar.SPLIT_DIGITS
        assert parsed.underlying == "NIFTY"
        assert parsed.strike_price == 4900.0
        assert parsed.option_type == OptionType.PUT
        # "252" is too short to be a date code
        assert parsed.expiry_date is None


class TestLowConfidenceGrammars:
    """Strike suffix, digit run and the default-strike fallback."""

    def test_strike_suffix_guesses_symbol(self):
        parsed = parse_instrument("NIFTY 24900PE")

        assert parsed.grammar == Grammar.STRIKE_SUFFIX
        assert parsed.underlying == "NIFTY"
        assert parsed.strike_price == 24900.0
        assert parsed.option_type == OptionType.PUT
        assert parsed.is_ambiguous

    def test_digit_run_without_option_marker(self):
        parsed = parse_instrument("SENSEX 81500 weekly")

        assert parsed.grammar == Grammar.DIGIT_RUN
        assert parsed.underlying == "SENSEX"
        assert parsed.strike_price == 81500.0
        assert parsed.option_type is None
        assert parsed.is_ambiguous

    def test_digit_run_picks_up_option_marker(self):
        parsed = parse_instrument("SENSEX-81500-CE-W1")

        assert parsed.grammar == Grammar.DIGIT_RUN
        assert parsed.option_type == OptionType.CALL

    def test_fallback_uses_default_strike(self):
        parsed = parse_instrument("SENSEX weekly")

        assert parsed.grammar == Grammar.DEFAULT_STRIKE
        assert parsed.underlying == "SENSEX"
        assert parsed.strike_price == 81500.0
        assert parsed.used_default_strike
        assert parsed.is_ambiguous

    def test_unknown_text_defaults_to_nifty(self):
        parsed = parse_instrument("???")

        assert parsed.underlying == "NIFTY"
        assert parsed.strike_price == 24900.0

    def test_empty_text_never_raises(self):
        parsed = parse_instrument("")

        assert parsed.grammar == Grammar.DEFAULT_STRIKE
        assert parsed.underlying == "NIFTY"

    def test_custom_default_strikes(self):
        parser = InstrumentParser(default_strikes={"NIFTY": 25000.0})

        assert parser.parse("garbage").strike_price == 25000.0
        assert parser.parse("SENSEX").strike_price is None


class TestGuessUnderlying:

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("NIFTY 24900PE", "NIFTY"),
            ("sensex weekly", "SENSEX"),
            ("BANKNIFTY 45000", "NIFTY"),
            ("RELIANCE", "NIFTY"),
        ],
    )
    def test_containment(self, text, expected):
        assert guess_underlying(text) == expected


class TestDecodeDateCode:

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("25612", date(2025, 6, 12)),
            ("25131", date(2025, 1, 31)),
            ("251205", date(2025, 12, 5)),
        ],
    )
    def test_valid_codes(self, code, expected):
        assert decode_date_code(code) == expected

    @pytest.mark.parametrize("code", ["2561", "25999", "25000", "2511215", "", "25a12"])
    def test_invalid_codes_return_none(self, code):
        assert decode_date_code(code) is None
