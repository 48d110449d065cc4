"""
Sequence reconciliation: collapse one instrument's fills into trades.

Fills for a single InstrumentKey are folded in time order through a
two-state machine:

    Empty         --LONG-->                      Accumulating
    Accumulating  --LONG-->                      Accumulating (avg recomputed)
    Accumulating  --SHORT, qty == aggregate-->   Empty, emit closed trade
    any           --SHORT, qty != aggregate-->   unchanged, emit standalone SHORT

At end of stream a non-empty sequence is emitted as an open trade.
"""

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, List, Tuple, Union

from trade_journal.domain.enums import Side
from trade_journal.domain.types import ConsolidatedTrade, NormalizedFill

logger = logging.getLogger(__name__)

# Closing quantity must equal the aggregate within this tolerance
QUANTITY_EPSILON = 1e-9


@dataclass(frozen=True)
class EmptyPosition:
    """No open opening-side fills."""


@dataclass(frozen=True)
class AccumulatingPosition:
    """
    Opening-side fills awaiting an exactly matching close.

    Only running totals are kept; the first fill supplies the trade's
    entry date and descriptive fields.
    """

    first_fill: NormalizedFill
    fill_count: int
    aggregate_quantity: float
    total_notional: float

    @property
    def weighted_average_price(self) -> float:
        return self.total_notional / self.aggregate_quantity


PositionState = Union[EmptyPosition, AccumulatingPosition]

EMPTY = EmptyPosition()


def accumulate(state: PositionState, fill: NormalizedFill) -> AccumulatingPosition:
    """Add an opening fill; the average is Σ(q·p)/Σq over all fills held."""
    if isinstance(state, EmptyPosition):
        return AccumulatingPosition(
            first_fill=fill,
            fill_count=1,
            aggregate_quantity=fill.quantity,
            total_notional=fill.notional,
        )
    return AccumulatingPosition(
        first_fill=state.first_fill,
        fill_count=state.fill_count + 1,
        aggregate_quantity=state.aggregate_quantity + fill.quantity,
        total_notional=state.total_notional + fill.notional,
    )


def _closed_trade(position: AccumulatingPosition, close: NormalizedFill) -> ConsolidatedTrade:
    first = position.first_fill
    entry_price = position.weighted_average_price
    quantity = position.aggregate_quantity
    profit_loss = (close.price - entry_price) * quantity
    if first.side is Side.SHORT:
        profit_loss = -profit_loss
    return ConsolidatedTrade(
        symbol=first.symbol,
        direction=first.side,
        instrument_type=first.instrument_type,
        entry_price=entry_price,
        exit_price=close.price,
        quantity=quantity,
        entry_date=first.timestamp,
        exit_date=close.timestamp,
        profit_loss=profit_loss,
        notes=f"Consolidated trade ({position.fill_count} entries)",
        strike_price=first.strike_price,
        option_type=first.option_type,
        expiry_date=first.expiry_date,
        sector=first.sector,
        fill_count=position.fill_count + 1,
    )


def _open_trade(position: AccumulatingPosition) -> ConsolidatedTrade:
    first = position.first_fill
    count = position.fill_count
    return ConsolidatedTrade(
        symbol=first.symbol,
        direction=first.side,
        instrument_type=first.instrument_type,
        entry_price=position.weighted_average_price,
        exit_price=None,
        quantity=position.aggregate_quantity,
        entry_date=first.timestamp,
        exit_date=None,
        profit_loss=0.0,
        notes=first.notes if count == 1 else f"Consolidated trade ({count} entries)",
        strike_price=first.strike_price,
        option_type=first.option_type,
        expiry_date=first.expiry_date,
        sector=first.sector,
        fill_count=count,
    )


def single_fill_trade(fill: NormalizedFill) -> ConsolidatedTrade:
    """A fill emitted as its own trade, carrying its exit fields if it has any."""
    return ConsolidatedTrade(
        symbol=fill.symbol,
        direction=fill.side,
        instrument_type=fill.instrument_type,
        entry_price=fill.price,
        exit_price=fill.exit_price,
        quantity=fill.quantity,
        entry_date=fill.timestamp,
        exit_date=fill.exit_date,
        profit_loss=fill.profit_loss,
        notes=fill.notes,
        strike_price=fill.strike_price,
        option_type=fill.option_type,
        expiry_date=fill.expiry_date,
        sector=fill.sector,
    )


def step(
    state: PositionState, fill: NormalizedFill
) -> Tuple[PositionState, Tuple[ConsolidatedTrade, ...]]:
    """
    Apply one fill to the position state.

    Returns:
        (next_state, trades emitted by this fill)
    """
    if fill.is_round_trip:
        return state, (single_fill_trade(fill),)

    if fill.side is Side.LONG:
        return accumulate(state, fill), ()

    if (
        isinstance(state, AccumulatingPosition)
        and abs(fill.quantity - state.aggregate_quantity) <= QUANTITY_EPSILON
    ):
        return EMPTY, (_closed_trade(state, fill),)

    if isinstance(state, AccumulatingPosition):
        logger.info(
            f"Row {fill.row_number}: close of {fill.quantity:g} {fill.key} does not match "
            f"open {state.aggregate_quantity:g}; kept as standalone trade"
        )
    return state, (single_fill_trade(fill),)


def finish(state: PositionState) -> Tuple[ConsolidatedTrade, ...]:
    """Trades left over at end of stream."""
    if isinstance(state, AccumulatingPosition):
        return (_open_trade(state),)
    return ()


def reconcile(fills: Iterable[NormalizedFill]) -> List[ConsolidatedTrade]:
    """
    Reconcile fills that share one InstrumentKey, already in time order.

    Output order follows the fills that produced each trade; a trailing
    open position comes last.
    """

    trades: List[ConsolidatedTrade] = []

    def _fold(state: PositionState, fill: NormalizedFill) -> PositionState:
        next_state, new_trades = step(state, fill)
        trades.extend(new_trades)
        return next_state

    final_state = reduce(_fold, fills, EMPTY)
    trades.extend(finish(final_state))
    return trades
