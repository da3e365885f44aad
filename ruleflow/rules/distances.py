"""
Stop distances and the pure price arithmetic behind every exit-price rule.

A *distance model* turns a reference price (the entry price for static
stops, the best price since entry for trailing stops) into a threshold on
either side of it:

* ``PercentageDistance``  – ``reference × (100 ± pct) / 100``
* ``FixedAmountDistance`` – ``reference ± amount``
* ``VolatilityDistance``  – ``reference ± volatility[index] × coefficient``
  (an ``ATRIndicator`` gives the classic ATR stop)

``adverse`` moves against the position (stop-loss side: down for a long,
up for a short) and ``favorable`` moves with it (stop-gain side).  NaN
inputs propagate to a NaN threshold.
"""

from __future__ import annotations

import abc

from ruleflow.configuration import HUNDRED
from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.indicators import Indicator
from ruleflow.num import is_positive, to_num


# ---------------------------------------------------------------------------
# Pure price functions
# ---------------------------------------------------------------------------

def _require_price(value, name: str) -> float:
    if value is None:
        raise InvalidRuleConfiguration(f"{name} must not be None.")
    return to_num(value)


def stop_loss_price(entry_price: float, loss_percentage: float, is_buy: bool) -> float:
    """Stop-loss price ``loss_percentage`` percent away from the entry."""
    entry_price = _require_price(entry_price, "entry_price")
    loss_percentage = _require_price(loss_percentage, "loss_percentage")
    if is_buy:
        return entry_price * (HUNDRED - loss_percentage) / HUNDRED
    return entry_price * (HUNDRED + loss_percentage) / HUNDRED


def stop_loss_price_from_distance(entry_price: float, loss_distance: float, is_buy: bool) -> float:
    entry_price = _require_price(entry_price, "entry_price")
    loss_distance = _require_price(loss_distance, "loss_distance")
    return entry_price - loss_distance if is_buy else entry_price + loss_distance


def stop_gain_price(entry_price: float, gain_percentage: float, is_buy: bool) -> float:
    """Take-profit price ``gain_percentage`` percent away from the entry."""
    entry_price = _require_price(entry_price, "entry_price")
    gain_percentage = _require_price(gain_percentage, "gain_percentage")
    if is_buy:
        return entry_price * (HUNDRED + gain_percentage) / HUNDRED
    return entry_price * (HUNDRED - gain_percentage) / HUNDRED


def stop_gain_price_from_distance(entry_price: float, gain_distance: float, is_buy: bool) -> float:
    entry_price = _require_price(entry_price, "entry_price")
    gain_distance = _require_price(gain_distance, "gain_distance")
    return entry_price + gain_distance if is_buy else entry_price - gain_distance


def trailing_stop_loss_price(extreme_price: float, loss_percentage: float, is_buy: bool) -> float:
    """Trailing stop below the highest price (long) or above the lowest price (short)."""
    extreme_price = _require_price(extreme_price, "extreme_price")
    return stop_loss_price(extreme_price, loss_percentage, is_buy)


def trailing_stop_gain_price(favorable_price: float, retracement_percentage: float, is_buy: bool) -> float:
    """Price at which a retracement from the most favorable price locks in the gain."""
    favorable_price = _require_price(favorable_price, "favorable_price")
    retracement_percentage = _require_price(retracement_percentage, "retracement_percentage")
    if is_buy:
        return favorable_price * (HUNDRED - retracement_percentage) / HUNDRED
    return favorable_price * (HUNDRED + retracement_percentage) / HUNDRED


def trailing_stop_gain_price_from_distance(favorable_price: float, retracement_distance: float, is_buy: bool) -> float:
    favorable_price = _require_price(favorable_price, "favorable_price")
    retracement_distance = _require_price(retracement_distance, "retracement_distance")
    return favorable_price - retracement_distance if is_buy else favorable_price + retracement_distance


# ---------------------------------------------------------------------------
# Distance models
# ---------------------------------------------------------------------------

class StopDistance(abc.ABC):
    """Maps a reference price to a threshold below or above it."""

    @abc.abstractmethod
    def below(self, index: int, reference: float) -> float:
        ...

    @abc.abstractmethod
    def above(self, index: int, reference: float) -> float:
        ...

    def adverse(self, index: int, reference: float, is_buy: bool) -> float:
        """Threshold on the losing side of the position."""
        return self.below(index, reference) if is_buy else self.above(index, reference)

    def favorable(self, index: int, reference: float, is_buy: bool) -> float:
        """Threshold on the winning side of the position."""
        return self.above(index, reference) if is_buy else self.below(index, reference)


class PercentageDistance(StopDistance):

    def __init__(self, percentage: float) -> None:
        if not is_positive(percentage):
            raise InvalidRuleConfiguration(f"percentage must be positive, got {percentage!r}.")
        self.percentage = to_num(percentage)

    def below(self, index: int, reference: float) -> float:
        return reference * (HUNDRED - self.percentage) / HUNDRED

    def above(self, index: int, reference: float) -> float:
        return reference * (HUNDRED + self.percentage) / HUNDRED

    def __repr__(self) -> str:
        return f"PercentageDistance({self.percentage})"


class FixedAmountDistance(StopDistance):

    def __init__(self, amount: float) -> None:
        if not is_positive(amount):
            raise InvalidRuleConfiguration(f"amount must be positive, got {amount!r}.")
        self.amount = to_num(amount)

    def below(self, index: int, reference: float) -> float:
        return reference - self.amount

    def above(self, index: int, reference: float) -> float:
        return reference + self.amount

    def __repr__(self) -> str:
        return f"FixedAmountDistance({self.amount})"


class VolatilityDistance(StopDistance):
    """Distance of ``coefficient`` volatility units, read at the evaluated index."""

    def __init__(self, volatility: Indicator, coefficient: float) -> None:
        if volatility is None:
            raise InvalidRuleConfiguration("volatility indicator must not be None.")
        if not is_positive(coefficient):
            raise InvalidRuleConfiguration(f"coefficient must be positive, got {coefficient!r}.")
        self.volatility = volatility
        self.coefficient = to_num(coefficient)

    def distance(self, index: int) -> float:
        return to_num(self.volatility.get_value(index)) * self.coefficient

    def below(self, index: int, reference: float) -> float:
        return reference - self.distance(index)

    def above(self, index: int, reference: float) -> float:
        return reference + self.distance(index)

    def __repr__(self) -> str:
        return f"VolatilityDistance({self.volatility!r}, {self.coefficient})"
