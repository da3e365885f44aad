"""
Trailing stop-loss / stop-gain rules.

The reference point of a trailing rule is the best price seen since the entry
(highest for a long, lowest for a short), searched over
``min(bars since entry, bar_count)`` bars by a ``LookbackExtrema``.

Trailing stop-loss
    ``extreme = max(entry, highest)`` for a long (``min(entry, lowest)`` for a
    short) so the stop is never looser than the entry; the rule triggers when
    the price reaches ``extreme`` moved by the distance against the position.
    The last computed level is kept in ``current_stop_loss_limit_activation``.

Trailing stop-gain
    Inactive until the best price has reached the static gain level
    (``entry`` moved by the gain distance with the position).  Once active, it
    triggers when the price retraces from the best price by the trailing
    distance.
"""

from __future__ import annotations

from typing import Optional

from ruleflow.configuration import DEFAULT_ATR_BAR_COUNT, UNBOUNDED_BAR_COUNT
from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.indicators import ATRIndicator, ClosePriceIndicator, Indicator
from ruleflow.models import Position
from ruleflow.num import NaN, any_nan, is_nan
from ruleflow.rules.base import StopGainPriceModel, StopLossPriceModel, require
from ruleflow.rules.distances import (
    FixedAmountDistance,
    PercentageDistance,
    StopDistance,
    VolatilityDistance,
)
from ruleflow.rules.lookback import LookbackExtrema
from ruleflow.rules.stops import ExitPriceRule, entry_price
from ruleflow.series import BarSeries


def _check_bar_count(bar_count: int) -> int:
    if bar_count is None or isinstance(bar_count, bool) or bar_count < 1:
        raise InvalidRuleConfiguration(f"bar_count must be >= 1, got {bar_count!r}.")
    return int(bar_count)


class _TrailingExitPriceRule(ExitPriceRule):

    def __init__(self, reference_price: Indicator, bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(reference_price)
        self.bar_count = _check_bar_count(bar_count)
        self.lookback = LookbackExtrema(self.reference_price, self.bar_count)

    def _best_price(self, index: int, position: Position, window: Optional[int] = None) -> float:
        if window is None:
            window = self.lookback.window(position.entry.index, index)
        return self.lookback.best_price(index, window, position.entry.is_buy)


# ---------------------------------------------------------------------------
# Trailing stop-loss
# ---------------------------------------------------------------------------

class BaseTrailingStopLossRule(_TrailingExitPriceRule, StopLossPriceModel):
    """
    Trailing stop-loss for any distance model.

    Owns one mutable cell, ``current_stop_loss_limit_activation``: the stop
    level computed by the last evaluation.  ``reset()`` clears it.
    """

    _BUY_TRIGGERS_BELOW = True

    def __init__(self, reference_price: Indicator, distance: StopDistance,
                 bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(reference_price, bar_count)
        self.distance = require(distance, "distance")
        self.current_stop_loss_limit_activation: Optional[float] = None

    def _reset_own_state(self) -> None:
        self.current_stop_loss_limit_activation = None

    def _stop_level(self, index: int, position: Position, window: Optional[int] = None) -> float:
        best = self._best_price(index, position, window)
        entry = entry_price(position)
        if any_nan(best, entry):
            return NaN
        is_buy = position.entry.is_buy
        extreme = max(entry, best) if is_buy else min(entry, best)
        return self.distance.adverse(index, extreme, is_buy)

    def _threshold(self, index: int, position: Position) -> float:
        threshold = self._stop_level(index, position)
        if not is_nan(threshold):
            self.current_stop_loss_limit_activation = threshold
        return threshold

    def _initial_threshold(self, position: Position) -> float:
        return self._stop_level(position.entry.index, position, window=1)


class TrailingStopLossRule(BaseTrailingStopLossRule):
    """
    Percentage trailing stop-loss.

    Examples
    --------
    Long entry at 114 with ``loss_percentage=10``: after closes of 120 and 130
    the stop sits at ``130 × 0.9 = 117``, so a close of 117 triggers it.
    """

    def __init__(self, reference_price: Indicator, loss_percentage: float,
                 bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(reference_price, PercentageDistance(loss_percentage), bar_count)
        self.loss_percentage = self.distance.percentage


class TrailingFixedAmountStopLossRule(BaseTrailingStopLossRule):

    def __init__(self, reference_price: Indicator, loss_amount: float,
                 bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(reference_price, FixedAmountDistance(loss_amount), bar_count)
        self.loss_amount = self.distance.amount


class VolatilityTrailingStopLossRule(BaseTrailingStopLossRule):

    def __init__(self, reference_price: Indicator, volatility: Indicator, coefficient: float,
                 bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(reference_price, VolatilityDistance(volatility, coefficient), bar_count)
        self.volatility = volatility
        self.coefficient = self.distance.coefficient


class AverageTrueRangeTrailingStopLossRule(VolatilityTrailingStopLossRule):
    """Trailing stop ``atr_coefficient`` ATRs behind the best price since entry."""

    def __init__(
        self,
        series: BarSeries,
        atr_bar_count: int = DEFAULT_ATR_BAR_COUNT,
        atr_coefficient: float = 1.0,
        reference_price: Optional[Indicator] = None,
        bar_count: int = UNBOUNDED_BAR_COUNT,
    ) -> None:
        require(series, "series")
        if reference_price is None:
            reference_price = ClosePriceIndicator(series)
        super().__init__(reference_price, ATRIndicator(series, atr_bar_count), atr_coefficient, bar_count)
        self.atr_bar_count = self.volatility.bar_count


# ---------------------------------------------------------------------------
# Trailing stop-gain
# ---------------------------------------------------------------------------

class BaseTrailingStopGainRule(_TrailingExitPriceRule, StopGainPriceModel):
    """
    Trailing take-profit for any pair of distance models.

    Parameters
    ----------
    reference_price : Indicator
    gain_distance : StopDistance
        Distance from the entry the best price must reach to activate the rule.
    trailing_distance : StopDistance
        Retracement from the best price that triggers the rule once active.
    bar_count : int
        Maximum number of bars searched for the best price.
    """

    # triggers on a retracement, i.e. below the trailing level for a long
    _BUY_TRIGGERS_BELOW = True

    def __init__(self, reference_price: Indicator, gain_distance: StopDistance,
                 trailing_distance: StopDistance, bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(reference_price, bar_count)
        self.gain_distance = require(gain_distance, "gain_distance")
        self.trailing_distance = require(trailing_distance, "trailing_distance")

    def activation_price(self, index: int, position: Position) -> float:
        """Static gain level the best price must reach before trailing applies."""
        return self.gain_distance.favorable(index, entry_price(position), position.entry.is_buy)

    def _threshold(self, index: int, position: Position) -> float:
        best = self._best_price(index, position)
        activation = self.activation_price(index, position)
        if any_nan(best, activation):
            return NaN
        is_buy = position.entry.is_buy
        activated = best >= activation if is_buy else best <= activation
        if not activated:
            return NaN
        return self.trailing_distance.adverse(index, best, is_buy)

    def _initial_threshold(self, position: Position) -> float:
        return self.activation_price(position.entry.index, position)


class TrailingStopGainRule(BaseTrailingStopGainRule):
    """
    Percentage trailing take-profit.

    Examples
    --------
    Long entry at 100, ``gain_percentage=10``, ``trailing_percentage=10``:
    nothing happens until a close of at least 110; after a high of 120 a
    close at or below 108 triggers.
    """

    def __init__(self, reference_price: Indicator, gain_percentage: float, trailing_percentage: float,
                 bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(
            reference_price,
            PercentageDistance(gain_percentage),
            PercentageDistance(trailing_percentage),
            bar_count,
        )
        self.gain_percentage = self.gain_distance.percentage
        self.trailing_percentage = self.trailing_distance.percentage


class TrailingFixedAmountStopGainRule(BaseTrailingStopGainRule):

    def __init__(self, reference_price: Indicator, gain_amount: float, trailing_amount: float,
                 bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(
            reference_price,
            FixedAmountDistance(gain_amount),
            FixedAmountDistance(trailing_amount),
            bar_count,
        )
        self.gain_amount = self.gain_distance.amount
        self.trailing_amount = self.trailing_distance.amount


class VolatilityTrailingStopGainRule(BaseTrailingStopGainRule):

    def __init__(self, reference_price: Indicator, volatility: Indicator, gain_coefficient: float,
                 trailing_coefficient: float, bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        super().__init__(
            reference_price,
            VolatilityDistance(volatility, gain_coefficient),
            VolatilityDistance(volatility, trailing_coefficient),
            bar_count,
        )
        self.volatility = volatility
        self.gain_coefficient = self.gain_distance.coefficient
        self.trailing_coefficient = self.trailing_distance.coefficient


class AverageTrueRangeTrailingStopGainRule(VolatilityTrailingStopGainRule):

    def __init__(
        self,
        series: BarSeries,
        atr_bar_count: int = DEFAULT_ATR_BAR_COUNT,
        gain_coefficient: float = 1.0,
        trailing_coefficient: float = 1.0,
        reference_price: Optional[Indicator] = None,
        bar_count: int = UNBOUNDED_BAR_COUNT,
    ) -> None:
        require(series, "series")
        if reference_price is None:
            reference_price = ClosePriceIndicator(series)
        super().__init__(
            reference_price,
            ATRIndicator(series, atr_bar_count),
            gain_coefficient,
            trailing_coefficient,
            bar_count,
        )
        self.atr_bar_count = self.volatility.bar_count
