"""
Calendar / time-of-day rules.

All of them read a ``DateTimeIndicator`` (bar end times) and test membership
in a configured set.  Values are validated at construction; a missing
timestamp (``NaT``) at evaluation time means "not satisfied".
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.indicators import Indicator
from ruleflow.models import TradingRecord
from ruleflow.rules.base import Rule, require


def _timestamp(indicator: Indicator, index: int) -> Optional[pd.Timestamp]:
    value = indicator.get_value(index)
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value)


def _validated(values: Iterable[int], low: int, high: int, label: str) -> frozenset:
    values = tuple(values)
    if not values:
        raise InvalidRuleConfiguration(f"At least one {label} is required.")
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
            raise InvalidRuleConfiguration(
                f"Invalid {label} {value!r}: expected an integer between {low} and {high}."
            )
    return frozenset(values)


class _CalendarSetRule(Rule):
    """Satisfied when one field of the bar time is in the configured set."""

    _LOW = 0
    _HIGH = 0
    _LABEL = ""

    def __init__(self, time_indicator: Indicator, *values: int) -> None:
        self.time_indicator = require(time_indicator, "time_indicator")
        self.values = _validated(values, self._LOW, self._HIGH, self._LABEL)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        stamp = _timestamp(self.time_indicator, index)
        satisfied = stamp is not None and self._field(stamp) in self.values
        self._trace_is_satisfied(index, satisfied)
        return satisfied

    def _field(self, stamp: pd.Timestamp) -> int:
        raise NotImplementedError


class DayOfWeekRule(_CalendarSetRule):
    """Satisfied on the given weekdays (0 = Monday ... 6 = Sunday)."""

    _LOW, _HIGH, _LABEL = 0, 6, "day of week"

    def _field(self, stamp: pd.Timestamp) -> int:
        return stamp.dayofweek


class HourOfDayRule(_CalendarSetRule):
    """Satisfied during the given hours (0-23)."""

    _LOW, _HIGH, _LABEL = 0, 23, "hour of day"

    def _field(self, stamp: pd.Timestamp) -> int:
        return stamp.hour


class MinuteOfHourRule(_CalendarSetRule):
    """Satisfied on the given minutes of the hour (0-59)."""

    _LOW, _HIGH, _LABEL = 0, 59, "minute of hour"

    def _field(self, stamp: pd.Timestamp) -> int:
        return stamp.minute


class TimeRangeRule(Rule):
    """
    Satisfied when the bar time of day falls inside any configured range.

    Parameters
    ----------
    time_ranges : sequence of (datetime.time, datetime.time)
        Inclusive ``(start, end)`` pairs.  A range whose start is after its end
        wraps past midnight (e.g. ``(22:00, 02:00)``).
    time_indicator : Indicator
        Bar end times.
    """

    def __init__(self, time_ranges: Sequence[Tuple[dt.time, dt.time]], time_indicator: Indicator) -> None:
        self.time_indicator = require(time_indicator, "time_indicator")
        if not time_ranges:
            raise InvalidRuleConfiguration("At least one time range is required.")
        ranges: List[Tuple[dt.time, dt.time]] = []
        for time_range in time_ranges:
            if len(time_range) != 2 or not all(isinstance(t, dt.time) for t in time_range):
                raise InvalidRuleConfiguration(f"Invalid time range {time_range!r}.")
            ranges.append((time_range[0], time_range[1]))
        self.time_ranges = tuple(ranges)

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        stamp = _timestamp(self.time_indicator, index)
        satisfied = False
        if stamp is not None:
            now = stamp.time()
            for start, end in self.time_ranges:
                if (start <= now <= end) if start <= end else (now >= start or now <= end):
                    satisfied = True
                    break
        self._trace_is_satisfied(index, satisfied)
        return satisfied
