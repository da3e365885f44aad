"""
Static stop-loss / stop-gain rules.

Every exit-price rule reads the open position of the trading record and a
reference price indicator (usually the close).  The threshold is derived from
the entry's net price by a distance model and compared inclusively:

================  =========================  =========================
Rule              long (BUY entry)           short (SELL entry)
================  =========================  =========================
stop-loss         ``price <= entry - d``     ``price >= entry + d``
stop-gain         ``price >= entry + d``     ``price <= entry - d``
================  =========================  =========================

No trading record, no open position, a NaN entry price, a NaN reference price
or a NaN threshold all mean "not satisfied".

Each rule also implements ``stop_price(series, position)`` reporting the
threshold it would use for *position*, whether or not it currently triggers.
"""

from __future__ import annotations

import abc
from typing import Optional

from ruleflow.configuration import DEFAULT_ATR_BAR_COUNT
from ruleflow.indicators import ATRIndicator, ClosePriceIndicator, Indicator
from ruleflow.models import Position, TradingRecord
from ruleflow.num import NaN, any_nan, is_nan, to_num
from ruleflow.rules.base import Rule, StopGainPriceModel, StopLossPriceModel, open_position, require
from ruleflow.rules.distances import (
    FixedAmountDistance,
    PercentageDistance,
    StopDistance,
    VolatilityDistance,
)
from ruleflow.series import BarSeries


def entry_price(position: Optional[Position]) -> float:
    """Net entry price of *position*, NaN when there is no entry."""
    if position is None or position.entry is None:
        return NaN
    return to_num(position.entry.net_price)


# ---------------------------------------------------------------------------
# Shared evaluation skeleton
# ---------------------------------------------------------------------------

class ExitPriceRule(Rule):
    """
    Base of every exit-price rule.

    Subclasses provide ``_threshold(index, position)`` and
    ``_initial_threshold(position)``.  ``_BUY_TRIGGERS_BELOW`` tells on which
    side of the threshold a long position triggers (shorts are mirrored).
    """

    _BUY_TRIGGERS_BELOW = True

    def __init__(self, reference_price: Indicator) -> None:
        self.reference_price = require(reference_price, "reference_price")

    @abc.abstractmethod
    def _threshold(self, index: int, position: Position) -> float:
        """Threshold at *index* for an open *position*; NaN when undefined."""

    @abc.abstractmethod
    def _initial_threshold(self, position: Position) -> float:
        """Threshold as of the entry bar; must not alter evaluation state."""

    def _triggers(self, current: float, threshold: float, is_buy: bool) -> bool:
        if any_nan(current, threshold):
            return False
        below = self._BUY_TRIGGERS_BELOW if is_buy else not self._BUY_TRIGGERS_BELOW
        return current <= threshold if below else current >= threshold

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = False
        threshold = NaN
        position = open_position(trading_record)
        if position is not None and not is_nan(entry_price(position)):
            current = to_num(self.reference_price.get_value(index))
            if not is_nan(current):
                threshold = self._threshold(index, position)
                satisfied = self._triggers(current, threshold, position.entry.is_buy)
        self._trace_is_satisfied(index, satisfied, threshold=threshold)
        return satisfied

    def stop_price(self, series: Optional[BarSeries], position: Optional[Position]) -> Optional[float]:
        if is_nan(entry_price(position)):
            return None
        threshold = self._initial_threshold(position)
        return None if is_nan(threshold) else float(threshold)


class _StaticExitPriceRule(ExitPriceRule):
    """Threshold measured from the entry price with a single distance model."""

    def __init__(self, reference_price: Indicator, distance: StopDistance) -> None:
        super().__init__(reference_price)
        self.distance = require(distance, "distance")

    def _initial_threshold(self, position: Position) -> float:
        return self._threshold(position.entry.index, position)


# ---------------------------------------------------------------------------
# Stop-loss
# ---------------------------------------------------------------------------

class BaseStopLossRule(_StaticExitPriceRule, StopLossPriceModel):
    """Static stop-loss for any distance model."""

    _BUY_TRIGGERS_BELOW = True

    def _threshold(self, index: int, position: Position) -> float:
        return self.distance.adverse(index, entry_price(position), position.entry.is_buy)


class StopLossRule(BaseStopLossRule):
    """
    Percentage stop-loss.

    Examples
    --------
    Long entry at 100 with ``loss_percentage=10``: satisfied once the close is
    at or below 90.
    """

    def __init__(self, reference_price: Indicator, loss_percentage: float) -> None:
        super().__init__(reference_price, PercentageDistance(loss_percentage))
        self.loss_percentage = self.distance.percentage


class FixedAmountStopLossRule(BaseStopLossRule):
    """Stop-loss a fixed price amount away from the entry."""

    def __init__(self, reference_price: Indicator, loss_amount: float) -> None:
        super().__init__(reference_price, FixedAmountDistance(loss_amount))
        self.loss_amount = self.distance.amount


class VolatilityStopLossRule(BaseStopLossRule):
    """Stop-loss ``coefficient`` volatility units away from the entry."""

    def __init__(self, reference_price: Indicator, volatility: Indicator, coefficient: float) -> None:
        super().__init__(reference_price, VolatilityDistance(volatility, coefficient))
        self.volatility = volatility
        self.coefficient = self.distance.coefficient


class AverageTrueRangeStopLossRule(VolatilityStopLossRule):
    """
    ATR stop-loss: ``entry ∓ atr[index] × atr_coefficient``.

    Parameters
    ----------
    series : BarSeries
    atr_bar_count : int
        ATR smoothing period.
    atr_coefficient : float
        Number of ATRs between the entry and the stop.
    reference_price : Indicator, optional
        Defaults to the close price of *series*.
    """

    def __init__(
        self,
        series: BarSeries,
        atr_bar_count: int = DEFAULT_ATR_BAR_COUNT,
        atr_coefficient: float = 1.0,
        reference_price: Optional[Indicator] = None,
    ) -> None:
        require(series, "series")
        if reference_price is None:
            reference_price = ClosePriceIndicator(series)
        super().__init__(reference_price, ATRIndicator(series, atr_bar_count), atr_coefficient)
        self.atr_bar_count = self.volatility.bar_count


# ---------------------------------------------------------------------------
# Stop-gain
# ---------------------------------------------------------------------------

class BaseStopGainRule(_StaticExitPriceRule, StopGainPriceModel):
    """Static take-profit for any distance model."""

    _BUY_TRIGGERS_BELOW = False

    def _threshold(self, index: int, position: Position) -> float:
        return self.distance.favorable(index, entry_price(position), position.entry.is_buy)


class StopGainRule(BaseStopGainRule):
    """Percentage take-profit."""

    def __init__(self, reference_price: Indicator, gain_percentage: float) -> None:
        super().__init__(reference_price, PercentageDistance(gain_percentage))
        self.gain_percentage = self.distance.percentage


class FixedAmountStopGainRule(BaseStopGainRule):

    def __init__(self, reference_price: Indicator, gain_amount: float) -> None:
        super().__init__(reference_price, FixedAmountDistance(gain_amount))
        self.gain_amount = self.distance.amount


class VolatilityStopGainRule(BaseStopGainRule):

    def __init__(self, reference_price: Indicator, volatility: Indicator, coefficient: float) -> None:
        super().__init__(reference_price, VolatilityDistance(volatility, coefficient))
        self.volatility = volatility
        self.coefficient = self.distance.coefficient


class AverageTrueRangeStopGainRule(VolatilityStopGainRule):
    """ATR take-profit: ``entry ± atr[index] × atr_coefficient``."""

    def __init__(
        self,
        series: BarSeries,
        atr_bar_count: int = DEFAULT_ATR_BAR_COUNT,
        atr_coefficient: float = 1.0,
        reference_price: Optional[Indicator] = None,
    ) -> None:
        require(series, "series")
        if reference_price is None:
            reference_price = ClosePriceIndicator(series)
        super().__init__(reference_price, ATRIndicator(series, atr_bar_count), atr_coefficient)
        self.atr_bar_count = self.volatility.bar_count

