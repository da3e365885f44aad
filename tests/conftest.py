"""Shared fixtures for the ruleflow test-suite."""
from typing import Optional

import pytest

from ruleflow import BarSeries, ClosePriceIndicator, Side, TradingRecord
from ruleflow.rules import Rule


class CountingRule(Rule):
    """Returns a fixed answer and counts how often it was asked."""

    def __init__(self, satisfied: bool = True) -> None:
        self.satisfied = satisfied
        self.calls = 0

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        self.calls += 1
        self._trace_is_satisfied(index, self.satisfied)
        return self.satisfied


@pytest.fixture
def counting_rule():
    """Factory: ``counting_rule(True)`` / ``counting_rule(False)``."""
    return CountingRule


@pytest.fixture
def make_series():
    """Factory building a daily close-only series: ``make_series(100, 110, ...)``."""
    def _make(*closes, **kwargs):
        return BarSeries.from_closes(list(closes), **kwargs)
    return _make


@pytest.fixture
def series(make_series):
    return make_series(100, 105, 110, 108, 112, 115, 111, 109, 113, 120)


@pytest.fixture
def close(series):
    return ClosePriceIndicator(series)


@pytest.fixture
def make_record():
    """Factory: ``make_record(Side.SELL, (2, 114.0))`` opens a position at index 2."""
    def _make(side: Side = Side.BUY, *operations, cost_rate: float = 0.0):
        record = TradingRecord(side, cost_rate)
        for index, price in operations:
            record.operate(index, price)
        return record
    return _make
