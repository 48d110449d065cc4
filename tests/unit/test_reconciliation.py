"""Unit tests for sequence reconciliation."""

import time
from datetime import datetime

import pytest

from trade_journal.application.services.reconciliation import (
    EMPTY,
    AccumulatingPosition,
    EmptyPosition,
    finish,
    reconcile,
    step,
)
from trade_journal.domain.enums import Side, SourceFormat


class TestStep:
    """Single transitions of the position state machine."""

    def test_long_opens_position(self, make_fill):
        state, emitted = step(EMPTY, make_fill(Side.LONG, 50, 100))

        assert isinstance(state, AccumulatingPosition)
        assert state.aggregate_quantity == 50
        assert state.weighted_average_price == 100
        assert emitted == ()

    def test_long_appends_and_reaverages(self, make_fill):
        state, _ = step(EMPTY, make_fill(Side.LONG, 50, 100))
        state, emitted = step(state, make_fill(Side.LONG, 50, 110, minutes=1))

        assert state.fill_count == 2
        assert state.first_fill.price == 100
        assert state.aggregate_quantity == 100
        assert state.weighted_average_price == pytest.approx(105)
        assert emitted == ()

    def test_matching_short_resets(self, make_fill):
        state, _ = step(EMPTY, make_fill(Side.LONG, 50, 100))
        state, emitted = step(state, make_fill(Side.SHORT, 50, 90, minutes=5))

        assert isinstance(state, EmptyPosition)
        assert len(emitted) == 1
        assert emitted[0].profit_loss == pytest.approx(-500)

    def test_short_on_empty_is_standalone(self, make_fill):
        state, emitted = step(EMPTY, make_fill(Side.SHORT, 30, 110))

        assert state is EMPTY
        assert len(emitted) == 1
        assert emitted[0].direction == Side.SHORT

    def test_finish_empty(self):
        assert finish(EMPTY) == ()


class TestReconcile:

    def test_two_entries_one_exit(self, make_fill, base_time):
        """Test LONG 50@100, LONG 50@110, SHORT 100@120 -> one closed trade."""
        fills = [
            make_fill(Side.LONG, 50, 100, minutes=0, row_number=1),
            make_fill(Side.LONG, 50, 110, minutes=5, row_number=2),
            make_fill(Side.SHORT, 100, 120, minutes=30, row_number=3),
        ]

        trades = reconcile(fills)

        assert len(trades) == 1
        trade = trades[0]
        assert trade.direction == Side.LONG
        assert trade.quantity == 100
        assert trade.entry_price == pytest.approx(105)
        assert trade.exit_price == 120
        assert trade.profit_loss == pytest.approx(1500)
        assert trade.entry_date == base_time
        assert trade.exit_date == datetime(2025, 6, 12, 9, 45)
        assert trade.notes == "Consolidated trade (2 entries)"
        assert trade.strike_price == 24900.0
        assert trade.fill_count == 3
        assert not trade.is_open

    def test_mismatched_close_kept_separate(self, make_fill):
        """Test LONG 50@100, SHORT 30@110 -> standalone short and open long."""
        fills = [
            make_fill(Side.LONG, 50, 100, minutes=0),
            make_fill(Side.SHORT, 30, 110, minutes=10),
        ]

        trades = reconcile(fills)

        assert len(trades) == 2
        standalone, still_open = trades
        assert standalone.direction == Side.SHORT
        assert standalone.quantity == 30
        assert standalone.entry_price == 110
        assert standalone.exit_price is None
        assert still_open.direction == Side.LONG
        assert still_open.quantity == 50
        assert still_open.entry_price == 100
        assert still_open.is_open
        assert still_open.profit_loss == 0.0

    def test_no_quantity_invented(self, make_fill):
        fills = [
            make_fill(Side.LONG, 50, 100, minutes=0),
            make_fill(Side.SHORT, 30, 110, minutes=10),
            make_fill(Side.LONG, 25, 105, minutes=20),
        ]

        trades = reconcile(fills)

        assert sum(t.quantity for t in trades) == sum(f.quantity for f in fills)

    def test_weighted_average(self, make_fill):
        fills = [
            make_fill(Side.LONG, 10, 100, minutes=0),
            make_fill(Side.LONG, 20, 130, minutes=1),
            make_fill(Side.LONG, 30, 110, minutes=2),
        ]

        trades = reconcile(fills)

        assert len(trades) == 1
        assert trades[0].entry_price == pytest.approx(115)
        assert trades[0].quantity == 60
        assert trades[0].notes == "Consolidated trade (3 entries)"

    def test_new_sequence_after_close(self, make_fill):
        fills = [
            make_fill(Side.LONG, 75, 100, minutes=0),
            make_fill(Side.SHORT, 75, 120, minutes=10),
            make_fill(Side.LONG, 75, 90, minutes=20),
        ]

        trades = reconcile(fills)

        assert [t.is_open for t in trades] == [False, True]
        assert trades[0].profit_loss == pytest.approx(1500)
        assert trades[1].entry_price == 90

    def test_single_open_fill_keeps_notes(self, make_fill):
        trades = reconcile([make_fill(Side.LONG, 75, 100, notes="first fill")])

        assert trades[0].notes == "first fill"
        assert trades[0].fill_count == 1

    def test_round_trip_rows_pass_through(self, make_fill):
        """Test that rows with their own exit bypass the open sequence."""
        round_trip = make_fill(
            Side.SHORT,
            20,
            1650,
            minutes=5,
            source_format=SourceFormat.APPLICATION,
            exit_price=1600.0,
            exit_date=datetime(2025, 6, 12, 15, 45),
            profit_loss=1000.0,
        )
        fills = [
            make_fill(Side.LONG, 50, 100, minutes=0),
            round_trip,
            make_fill(Side.SHORT, 50, 120, minutes=10),
        ]

        trades = reconcile(fills)

        assert len(trades) == 2
        assert trades[0].entry_price == 1650
        assert trades[0].exit_price == 1600
        assert trades[0].profit_loss == 1000
        assert trades[1].quantity == 50
        assert trades[1].profit_loss == pytest.approx(1000)

    def test_empty_input(self):
        assert reconcile([]) == []

    def test_long_sequence_scales_linearly(self, make_fill):
        """Test that ten thousand entries fold well within a second or two."""
        fills = [make_fill(Side.LONG, 1, 100 + i % 7, row_number=i + 1) for i in range(10000)]
        fills.append(make_fill(Side.SHORT, 10000, 110, minutes=1, row_number=10001))

        started = time.perf_counter()
        trades = reconcile(fills)
        elapsed = time.perf_counter() - started

        assert len(trades) == 1
        assert trades[0].quantity == 10000
        assert trades[0].fill_count == 10001
        assert elapsed < 2.0
