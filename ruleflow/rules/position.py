"""
Rules gating on the trading record: bars since entry / last trade, position
aggregates, and the risk/reward geometry of a prospective trade.
"""

from __future__ import annotations

import enum
from typing import Callable, Dict, List, Optional

from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.indicators import Indicator
from ruleflow.models import Position, Side, TradingRecord
from ruleflow.num import any_nan, is_nan, is_positive, to_num
from ruleflow.rules.base import Rule, open_position, require
from ruleflow.rules.leaf import Threshold, as_indicator


def _check_bar_count(bar_count: int, name: str = "bar_count", minimum: int = 1) -> int:
    if bar_count is None or bar_count < minimum:
        raise InvalidRuleConfiguration(f"{name} must be >= {minimum}, got {bar_count!r}.")
    return int(bar_count)


# ---------------------------------------------------------------------------
# Duration gates
# ---------------------------------------------------------------------------

class WaitForRule(Rule):
    """Satisfied once ``bar_count`` bars have passed since the last trade of ``side``."""

    def __init__(self, side: Side, bar_count: int) -> None:
        self.side = Side(require(side, "side"))
        self.bar_count = _check_bar_count(bar_count, minimum=0)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = False
        if trading_record is not None:
            last = trading_record.last_trade(self.side)
            if last is not None:
                satisfied = index - last.index >= self.bar_count
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class OpenedPositionMinimumBarCountRule(Rule):
    """Satisfied when a position is open and at least ``bar_count`` bars passed since its entry."""

    def __init__(self, bar_count: int) -> None:
        self.bar_count = _check_bar_count(bar_count)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        position = open_position(trading_record)
        satisfied = position is not None and index - position.entry.index >= self.bar_count
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class OpenPositionDurationRule(Rule):
    """
    Satisfied while the open position's age (in bars) lies within bounds.

    Parameters
    ----------
    minimum_bars : int
        Minimum number of bars elapsed since entry (inclusive).
    maximum_bars : int | None
        Optional inclusive upper bound; ``None`` means no upper bound.
    """

    def __init__(self, minimum_bars: int, maximum_bars: Optional[int] = None) -> None:
        self.minimum_bars = _check_bar_count(minimum_bars, "minimum_bars", minimum=0)
        if maximum_bars is not None and maximum_bars < self.minimum_bars:
            raise InvalidRuleConfiguration(
                f"maximum_bars ({maximum_bars}) must be >= minimum_bars ({self.minimum_bars})."
            )
        self.maximum_bars = maximum_bars

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = False
        position = open_position(trading_record)
        if position is not None:
            elapsed = index - position.entry.index
            satisfied = elapsed >= self.minimum_bars and (
                self.maximum_bars is None or elapsed <= self.maximum_bars
            )
        self._trace_is_satisfied(index, satisfied)
        return satisfied


# ---------------------------------------------------------------------------
# Position aggregates
# ---------------------------------------------------------------------------

def _entry_within(index: int, position: Position) -> bool:
    return position.entry is not None and position.entry.index <= index


def _exit_within(index: int, position: Position) -> bool:
    return position.exit is None or position.exit.index <= index


def _position_within(index: int, position: Position) -> bool:
    return _entry_within(index, position) and _exit_within(index, position)


def _sum(values) -> float:
    return float(sum(v for v in values if not is_nan(v)))


class PositionFilter(enum.Enum):
    """Which positions of the record are aggregated."""
    ALL    = "all"
    OPEN   = "open"
    CLOSED = "closed"

    def apply(self, trading_record: TradingRecord) -> List[Position]:
        current = trading_record.current_position
        if self is PositionFilter.OPEN:
            return [current] if current.is_opened else []
        positions = list(trading_record.positions)
        if self is PositionFilter.ALL and current.is_opened:
            positions.append(current)
        return positions


class PositionAggregation(enum.Enum):
    """How the filtered positions are reduced to a single number."""
    NUMBER_OF_POSITIONS    = "number_of_positions"
    NUMBER_OF_ENTRY_TRADES = "number_of_entry_trades"
    NUMBER_OF_EXIT_TRADES  = "number_of_exit_trades"
    AMOUNT                 = "amount"
    VALUE                  = "value"
    NET_PROFIT             = "net_profit"
    GROSS_PROFIT           = "gross_profit"

    def apply(self, index: int, positions: List[Position]) -> float:
        return _AGGREGATIONS[self](index, positions)


_AGGREGATIONS: Dict[PositionAggregation, Callable[[int, List[Position]], float]] = {
    PositionAggregation.NUMBER_OF_POSITIONS:
        lambda index, ps: float(sum(1 for p in ps if _entry_within(index, p))),
    PositionAggregation.NUMBER_OF_ENTRY_TRADES:
        lambda index, ps: float(sum(1 for p in ps if _entry_within(index, p))),
    PositionAggregation.NUMBER_OF_EXIT_TRADES:
        lambda index, ps: float(sum(1 for p in ps if p.exit is not None and p.exit.index <= index)),
    PositionAggregation.AMOUNT:
        lambda index, ps: _sum(p.entry.amount for p in ps if _position_within(index, p)),
    PositionAggregation.VALUE:
        lambda index, ps: _sum(p.entry.value for p in ps if _position_within(index, p)),
    PositionAggregation.NET_PROFIT:
        lambda index, ps: _sum(p.profit for p in ps if _position_within(index, p)),
    PositionAggregation.GROSS_PROFIT:
        lambda index, ps: _sum(p.gross_profit for p in ps if _position_within(index, p)),
}


class PositionRule(Rule):
    """
    Satisfied when an aggregate over the record's positions lies within bounds.

    Only positions whose trades happened at or before the index count.  An
    empty record is satisfied only when no non-zero bound is configured.

    Parameters
    ----------
    position_filter : PositionFilter
    aggregation : PositionAggregation
    minimum, maximum : float | None
        Inclusive bounds; at least one is required.
    """

    def __init__(
        self,
        position_filter: PositionFilter,
        aggregation: PositionAggregation,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
    ) -> None:
        self.position_filter = PositionFilter(require(position_filter, "position_filter"))
        self.aggregation = PositionAggregation(require(aggregation, "aggregation"))
        if minimum is None and maximum is None:
            raise InvalidRuleConfiguration("A required minimum or maximum must be specified.")
        self.minimum = None if minimum is None else to_num(minimum)
        self.maximum = None if maximum is None else to_num(maximum)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        if trading_record is None or not trading_record.trades:
            satisfied = not self.minimum and not self.maximum
        else:
            value = self.aggregation.apply(index, self.position_filter.apply(trading_record))
            satisfied = (self.minimum is None or self.minimum <= value) and (
                self.maximum is None or value <= self.maximum
            )
        self._trace_is_satisfied(index, satisfied)
        return satisfied


# ---------------------------------------------------------------------------
# Risk / reward
# ---------------------------------------------------------------------------

class RiskRewardRatioRule(Rule):
    """
    Satisfied when a trade setup offers at least ``minimum_ratio`` reward per
    unit of risk.

    Bullish setups need ``target > price > stop`` (reward ``target - price``,
    risk ``price - stop``); bearish setups need ``target < price < stop``.
    Any other ordering, a NaN input or a non-positive risk means not satisfied.
    """

    def __init__(
        self,
        price: Indicator,
        stop: Threshold,
        target: Threshold,
        minimum_ratio: float,
    ) -> None:
        self.price = require(price, "price")
        self.stop = as_indicator(stop, self.price)
        self.target = as_indicator(target, self.price)
        if not is_positive(minimum_ratio):
            raise InvalidRuleConfiguration(f"minimum_ratio must be positive, got {minimum_ratio!r}.")
        self.minimum_ratio = to_num(minimum_ratio)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        price = to_num(self.price.get_value(index))
        stop = to_num(self.stop.get_value(index))
        target = to_num(self.target.get_value(index))
        satisfied = False
        if not any_nan(price, stop, target):
            if target > price > stop:
                reward, risk = target - price, price - stop
            elif target < price < stop:
                reward, risk = price - target, stop - price
            else:
                reward, risk = 0.0, 0.0
            if risk > 0:
                satisfied = reward / risk >= self.minimum_ratio
        self._trace_is_satisfied(index, satisfied)
        return satisfied
