"""
Bounded-lookback extrema for trailing exit rules.

A trailing rule needs the best price since entry, over a window of
``min(bars since entry, bar_count)`` bars.  Two extrema indicators sized to
``bar_count`` are built once per rule and reused (with their memoised values)
whenever the window is full.  During warm-up, when fewer than ``bar_count``
bars have elapsed, a throw-away indicator sized to the elapsed bars is built
for the call instead.

The source indicator must be deterministic per index (append-only series).
"""

from __future__ import annotations

from ruleflow.configuration import UNBOUNDED_BAR_COUNT
from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.indicators import HighestValueIndicator, Indicator, LowestValueIndicator
from ruleflow.num import NaN


class LookbackExtrema:
    """
    Highest / lowest value of an indicator over a window ending at an index.

    Parameters
    ----------
    indicator : Indicator
        Reference price indicator.
    bar_count : int
        Maximum window length; ``UNBOUNDED_BAR_COUNT`` means every bar since entry.
    """

    def __init__(self, indicator: Indicator, bar_count: int = UNBOUNDED_BAR_COUNT) -> None:
        if indicator is None:
            raise InvalidRuleConfiguration("reference indicator must not be None.")
        if bar_count is None or bar_count < 1:
            raise InvalidRuleConfiguration(f"bar_count must be >= 1, got {bar_count!r}.")
        self.indicator = indicator
        self.bar_count = int(bar_count)
        self.highest = HighestValueIndicator(indicator, self.bar_count)
        self.lowest = LowestValueIndicator(indicator, self.bar_count)

    def window(self, entry_index: int, index: int) -> int:
        """Number of bars to scan: bars since entry (inclusive), capped at ``bar_count``."""
        return min(index - entry_index + 1, self.bar_count)

    def highest_value(self, index: int, window: int) -> float:
        if window < 1:
            return NaN
        if window == self.bar_count:
            return self.highest.get_value(index)
        return HighestValueIndicator(self.indicator, window).get_value(index)

    def lowest_value(self, index: int, window: int) -> float:
        if window < 1:
            return NaN
        if window == self.bar_count:
            return self.lowest.get_value(index)
        return LowestValueIndicator(self.indicator, window).get_value(index)

    def best_price(self, index: int, window: int, is_buy: bool) -> float:
        """Most favorable price in the window: the high for a long, the low for a short."""
        return self.highest_value(index, window) if is_buy else self.lowest_value(index, window)
