"""
Leaf rules: stateless predicates over indicators.

* ``BooleanRule``            – constant truth value
* ``FixedRule``              – satisfied on a fixed set of indices
* ``BooleanIndicatorRule``   – passes a boolean indicator through
* Indicator comparisons      – over / under / equal / crossed up / crossed down /
  in pipe / is highest / is lowest / is rising / is falling

Any threshold argument can be a plain number or another ``Indicator``.  A NaN
on either side of a comparison means "undefined", hence not satisfied.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

import numpy as np

from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.indicators import ConstantIndicator, HighestValueIndicator, Indicator, LowestValueIndicator
from ruleflow.models import TradingRecord
from ruleflow.num import any_nan, to_num
from ruleflow.rules.base import Rule, require

Threshold = Union[Indicator, float, int]


def as_indicator(value: Threshold, reference: Indicator) -> Indicator:
    """Wrap a number into a ``ConstantIndicator`` on the reference indicator's series."""
    if isinstance(value, Indicator):
        return value
    if value is None:
        raise InvalidRuleConfiguration("threshold must not be None.")
    return ConstantIndicator(reference.series, value)


# ---------------------------------------------------------------------------
# Constant / index rules
# ---------------------------------------------------------------------------

class BooleanRule(Rule):
    """Always satisfied (``True``) or never satisfied (``False``)."""

    TRUE: "BooleanRule"
    FALSE: "BooleanRule"

    def __init__(self, satisfied: bool) -> None:
        self.satisfied = bool(satisfied)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        self._trace_is_satisfied(index, self.satisfied)
        return self.satisfied


BooleanRule.TRUE = BooleanRule(True)
BooleanRule.FALSE = BooleanRule(False)


class FixedRule(Rule):
    """Satisfied when the index is one of the configured indices."""

    def __init__(self, *indexes: int) -> None:
        for i in indexes:
            if not isinstance(i, (int, np.integer)) or isinstance(i, bool):
                raise InvalidRuleConfiguration(f"FixedRule indexes must be integers, got {i!r}.")
        self.indexes = frozenset(int(i) for i in indexes)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = index in self.indexes
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class BooleanIndicatorRule(Rule):
    """Satisfied when the boolean indicator is ``True`` at the index."""

    def __init__(self, indicator: Indicator) -> None:
        self.indicator = require(indicator, "indicator")

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        value = self.indicator.get_value(index)
        satisfied = isinstance(value, (bool, np.bool_)) and bool(value)
        self._trace_is_satisfied(index, satisfied)
        return satisfied


# ---------------------------------------------------------------------------
# Indicator comparisons
# ---------------------------------------------------------------------------

class _ComparisonRule(Rule):
    """Shared plumbing for rules comparing a first indicator with a second one (or a number)."""

    def __init__(self, first: Indicator, second: Threshold) -> None:
        self.first = require(first, "first")
        self.second = as_indicator(second, self.first)

    def _pair(self, index: int) -> Optional[Tuple[float, float]]:
        a = to_num(self.first.get_value(index))
        b = to_num(self.second.get_value(index))
        if any_nan(a, b):
            return None
        return a, b

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        pair = self._pair(index)
        satisfied = pair is not None and self._compare(index, *pair)
        self._trace_is_satisfied(index, satisfied)
        return satisfied

    def _compare(self, index: int, first: float, second: float) -> bool:
        raise NotImplementedError


class OverIndicatorRule(_ComparisonRule):
    """Satisfied when ``first > second``."""

    def _compare(self, index: int, first: float, second: float) -> bool:
        return first > second


class UnderIndicatorRule(_ComparisonRule):
    """Satisfied when ``first < second``."""

    def _compare(self, index: int, first: float, second: float) -> bool:
        return first < second


class IsEqualRule(_ComparisonRule):
    """Satisfied when ``first == second``."""

    def _compare(self, index: int, first: float, second: float) -> bool:
        return first == second


class CrossedUpIndicatorRule(_ComparisonRule):
    """
    Satisfied when *first* crosses above *second* at the index.

    ``first > second`` now, and on the most recent earlier bar where the two
    differ ``first < second``.  Bars where they are equal are skipped.
    """

    def _compare(self, index: int, first: float, second: float) -> bool:
        return first > second and self._was_on_other_side(index, lambda a, b: a < b)

    def _was_on_other_side(self, index: int, predicate) -> bool:
        begin = self.first.series.begin_index
        i = index - 1
        if i < begin:
            return False
        while i > begin:
            pair = self._pair(i)
            if pair is None:
                return False
            if pair[0] != pair[1]:
                break
            i -= 1
        pair = self._pair(i)
        return pair is not None and predicate(*pair)


class CrossedDownIndicatorRule(CrossedUpIndicatorRule):
    """Satisfied when *first* crosses below *second* at the index."""

    def _compare(self, index: int, first: float, second: float) -> bool:
        return first < second and self._was_on_other_side(index, lambda a, b: a > b)


class InPipeRule(Rule):
    """Satisfied when ``lower <= value <= upper``."""

    def __init__(self, indicator: Indicator, upper: Threshold, lower: Threshold) -> None:
        self.indicator = require(indicator, "indicator")
        self.upper = as_indicator(upper, self.indicator)
        self.lower = as_indicator(lower, self.indicator)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        value = to_num(self.indicator.get_value(index))
        upper = to_num(self.upper.get_value(index))
        lower = to_num(self.lower.get_value(index))
        satisfied = not any_nan(value, upper, lower) and lower <= value <= upper
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class IsHighestRule(Rule):
    """Satisfied when the value is the highest of the last ``bar_count`` bars."""

    _extremum = HighestValueIndicator

    def __init__(self, indicator: Indicator, bar_count: int) -> None:
        self.indicator = require(indicator, "indicator")
        self.extremum = self._extremum(self.indicator, bar_count)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        value = to_num(self.indicator.get_value(index))
        extremum = self.extremum.get_value(index)
        satisfied = not any_nan(value, extremum) and value == extremum
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class IsLowestRule(IsHighestRule):
    """Satisfied when the value is the lowest of the last ``bar_count`` bars."""

    _extremum = LowestValueIndicator


class IsRisingRule(Rule):
    """
    Satisfied when enough steps in the window are rising.

    Over the last ``bar_count`` bars, count the bars whose value is strictly
    above the previous bar's; satisfied when ``count / bar_count >= min_strength``.
    ``min_strength=1.0`` demands a strictly rising window.
    """

    _rising = True

    def __init__(self, indicator: Indicator, bar_count: int, min_strength: float = 1.0) -> None:
        self.indicator = require(indicator, "indicator")
        if bar_count is None or bar_count < 1:
            raise InvalidRuleConfiguration(f"bar_count must be >= 1, got {bar_count!r}.")
        if not 0 < min_strength <= 1:
            raise InvalidRuleConfiguration(f"min_strength must be in (0, 1], got {min_strength!r}.")
        self.bar_count = int(bar_count)
        self.min_strength = float(min_strength)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        count = 0
        for i in range(max(0, index - self.bar_count + 1), index + 1):
            current = to_num(self.indicator.get_value(i))
            previous = to_num(self.indicator.get_value(max(0, i - 1)))
            if any_nan(current, previous):
                continue
            if (current > previous) if self._rising else (current < previous):
                count += 1
        satisfied = count / self.bar_count >= self.min_strength
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class IsFallingRule(IsRisingRule):
    """Satisfied when enough steps in the window are falling (see ``IsRisingRule``)."""

    _rising = False
