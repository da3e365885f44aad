"""
Minimal indicator layer.

Rules never compute market statistics themselves: they read values through
``Indicator.get_value(index)``.  This module provides the handful of
indicators the rule library consumes or builds internally (prices, window
extrema, true range / ATR, rolling standard deviation) plus a few fixed-value
helpers for composing and testing rules.

Contract
--------
* ``get_value(index)`` is deterministic per ``(indicator, index)`` and depends
  only on bars ``<= index``, so values can be memoised forever even while new
  bars are appended to the series.
* Undefined values are ``NaN`` (never an exception).
"""

from __future__ import annotations

import abc
from typing import Any, Dict

import numpy as np

from ruleflow.configuration import DEFAULT_ATR_BAR_COUNT
from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.num import NaN, any_nan, to_num
from ruleflow.series import BarSeries


# ---------------------------------------------------------------------------
# Base classes
# ---------------------------------------------------------------------------

class Indicator(abc.ABC):
    """Anything that yields one value per bar index of a ``BarSeries``."""

    def __init__(self, series: BarSeries) -> None:
        if series is None:
            raise InvalidRuleConfiguration("An indicator requires a bar series.")
        self.series = series

    @abc.abstractmethod
    def get_value(self, index: int) -> Any:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CachedIndicator(Indicator):
    """Indicator whose values are computed once per index and memoised."""

    def __init__(self, series: BarSeries) -> None:
        super().__init__(series)
        self._cache: Dict[int, Any] = {}

    def get_value(self, index: int) -> Any:
        try:
            return self._cache[index]
        except KeyError:
            value = self._calculate(index)
            self._cache[index] = value
            return value

    @abc.abstractmethod
    def _calculate(self, index: int) -> Any:
        ...


def _check_bar_count(bar_count: int) -> int:
    if bar_count is None or int(bar_count) < 1:
        raise InvalidRuleConfiguration(f"bar_count must be a positive integer, got {bar_count!r}.")
    return int(bar_count)


# ---------------------------------------------------------------------------
# Price / constant helpers
# ---------------------------------------------------------------------------

class PriceIndicator(Indicator):
    """Reads one field of each bar (``open``, ``high``, ``low``, ``close``, ``volume``)."""

    _FIELD = "close"

    def get_value(self, index: int) -> float:
        return getattr(self.series.get_bar(index), self._FIELD)


class ClosePriceIndicator(PriceIndicator):
    _FIELD = "close"


class OpenPriceIndicator(PriceIndicator):
    _FIELD = "open"


class HighPriceIndicator(PriceIndicator):
    _FIELD = "high"


class LowPriceIndicator(PriceIndicator):
    _FIELD = "low"


class VolumeIndicator(PriceIndicator):
    _FIELD = "volume"


class DateTimeIndicator(Indicator):
    """End time of each bar as a ``pandas.Timestamp``."""

    def get_value(self, index: int):
        return self.series.get_bar(index).end_time


class ConstantIndicator(Indicator):
    """Same value at every index."""

    def __init__(self, series: BarSeries, value: Any) -> None:
        super().__init__(series)
        self.value = to_num(value) if not isinstance(value, bool) else value

    def get_value(self, index: int) -> Any:
        return self.value

    def __repr__(self) -> str:
        return f"ConstantIndicator({self.value!r})"


class FixedIndicator(Indicator):
    """
    Explicit value per index (numbers or booleans).

    Indices past the supplied values yield ``NaN``.
    """

    def __init__(self, series: BarSeries, *values: Any) -> None:
        super().__init__(series)
        self.values = list(values)

    def add_value(self, value: Any) -> None:
        self.values.append(value)

    def get_value(self, index: int) -> Any:
        if 0 <= index < len(self.values):
            return self.values[index]
        return NaN


# ---------------------------------------------------------------------------
# Window extrema
# ---------------------------------------------------------------------------

class _WindowIndicator(CachedIndicator):
    """Base for indicators reducing the ``bar_count`` most recent values of another indicator."""

    def __init__(self, indicator: Indicator, bar_count: int) -> None:
        if indicator is None:
            raise InvalidRuleConfiguration("A source indicator is required.")
        super().__init__(indicator.series)
        self.indicator = indicator
        self.bar_count = _check_bar_count(bar_count)

    def _window(self, index: int) -> np.ndarray:
        start = max(self.series.begin_index, 0, index - self.bar_count + 1)
        values = np.fromiter(
            (to_num(self.indicator.get_value(i)) for i in range(start, index + 1)),
            dtype=np.float64,
            count=index + 1 - start,
        )
        return values[~np.isnan(values)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.indicator!r}, {self.bar_count})"


class HighestValueIndicator(_WindowIndicator):
    """Highest defined value over the last ``bar_count`` bars (NaN values skipped)."""

    def _calculate(self, index: int) -> float:
        window = self._window(index)
        return float(window.max()) if window.size else NaN


class LowestValueIndicator(_WindowIndicator):
    """Lowest defined value over the last ``bar_count`` bars (NaN values skipped)."""

    def _calculate(self, index: int) -> float:
        window = self._window(index)
        return float(window.min()) if window.size else NaN


class StandardDeviationIndicator(_WindowIndicator):
    """Population standard deviation over the last ``bar_count`` bars."""

    def _calculate(self, index: int) -> float:
        window = self._window(index)
        return float(np.std(window)) if window.size else NaN


# ---------------------------------------------------------------------------
# True range / ATR
# ---------------------------------------------------------------------------

class TrueRangeIndicator(CachedIndicator):
    """
    True range of each bar.

    ``max(high - low, |high - previous close|, |low - previous close|)``; the
    first bar of the series uses ``high - low``.
    """

    def _calculate(self, index: int) -> float:
        bar = self.series.get_bar(index)
        spread = bar.high - bar.low
        if index <= self.series.begin_index:
            return spread
        prev_close = self.series.get_bar(index - 1).close
        return max(spread, abs(bar.high - prev_close), abs(bar.low - prev_close))


class ATRIndicator(CachedIndicator):
    """
    Average true range with Wilder smoothing.

    ``atr[begin] = tr[begin]`` and ``atr[i] = atr[i-1] + (tr[i] - atr[i-1]) / n``.
    Values are filled forward from the closest memoised index, so long series
    never recurse.
    """

    def __init__(self, series: BarSeries, bar_count: int = DEFAULT_ATR_BAR_COUNT) -> None:
        super().__init__(series)
        self.bar_count = _check_bar_count(bar_count)
        self.true_range = TrueRangeIndicator(series)

    def _calculate(self, index: int) -> float:
        begin = self.series.begin_index
        start = index
        while start > begin and (start - 1) not in self._cache:
            start -= 1
        value = self._cache.get(start - 1, NaN)
        for i in range(start, index + 1):
            tr = self.true_range.get_value(i)
            if i == begin or any_nan(value):
                value = tr
            else:
                value = value + (tr - value) / self.bar_count
            if i < index:
                self._cache[i] = value
        return value

    def __repr__(self) -> str:
        return f"ATRIndicator({self.bar_count})"

