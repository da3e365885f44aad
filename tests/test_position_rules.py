"""Tests for rules reading the trading record."""
import pytest

from ruleflow import FixedIndicator, InvalidRuleConfiguration, Side
from ruleflow.rules import (
    OpenedPositionMinimumBarCountRule,
    OpenPositionDurationRule,
    PositionAggregation,
    PositionFilter,
    PositionRule,
    RiskRewardRatioRule,
    WaitForRule,
)

NaN = float("nan")


@pytest.fixture
def two_positions(make_record):
    # +10 then -5
    return make_record(Side.BUY, (0, 100.0), (2, 110.0), (3, 100.0), (5, 95.0))


class TestDurationGates:
    def test_wait_for(self, make_record):
        rule = WaitForRule(Side.BUY, 2)
        record = make_record(Side.BUY, (2, 114.0))
        assert not rule.is_satisfied(3, record)
        assert rule.is_satisfied(4, record)
        assert not rule.is_satisfied(4)
        assert not WaitForRule(Side.SELL, 0).is_satisfied(4, record)

    def test_wait_for_last_exit(self, make_record):
        record = make_record(Side.BUY, (0, 10.0), (3, 11.0))
        assert WaitForRule(Side.SELL, 1).is_satisfied(4, record)
        assert not WaitForRule(Side.SELL, 2).is_satisfied(4, record)

    def test_opened_position_minimum_bar_count(self, make_record):
        rule = OpenedPositionMinimumBarCountRule(2)
        record = make_record(Side.BUY, (2, 114.0))
        assert not rule.is_satisfied(3, record)
        assert rule.is_satisfied(4, record)
        record.exit(5, 120.0)
        assert not rule.is_satisfied(6, record)

    def test_open_position_duration(self, make_record):
        rule = OpenPositionDurationRule(1, 3)
        record = make_record(Side.BUY, (2, 114.0))
        assert [rule.is_satisfied(i, record) for i in range(2, 7)] == [False, True, True, True, False]
        assert not rule.is_satisfied(3, None)

    def test_open_position_duration_without_maximum(self, make_record):
        record = make_record(Side.BUY, (0, 1.0))
        assert OpenPositionDurationRule(0).is_satisfied(1000, record)

    def test_invalid_bar_counts(self):
        with pytest.raises(InvalidRuleConfiguration):
            OpenedPositionMinimumBarCountRule(0)
        with pytest.raises(InvalidRuleConfiguration):
            OpenPositionDurationRule(3, 2)
        with pytest.raises(InvalidRuleConfiguration):
            WaitForRule(Side.BUY, -1)


class TestPositionRule:
    def test_net_profit_of_closed_positions(self, two_positions):
        rule = PositionRule(PositionFilter.CLOSED, PositionAggregation.NET_PROFIT, minimum=4.0)
        assert rule.is_satisfied(5, two_positions)
        # the losing position is not closed yet at index 4
        assert PositionRule(PositionFilter.ALL, PositionAggregation.NET_PROFIT, minimum=10.0).is_satisfied(
            4, two_positions
        )

    def test_counts(self, two_positions):
        at_least_two = PositionRule(PositionFilter.CLOSED, PositionAggregation.NUMBER_OF_POSITIONS, minimum=2)
        at_most_one = PositionRule(PositionFilter.ALL, PositionAggregation.NUMBER_OF_POSITIONS, maximum=1)
        assert at_least_two.is_satisfied(5, two_positions)
        assert not at_most_one.is_satisfied(5, two_positions)
        exits = PositionRule(PositionFilter.ALL, PositionAggregation.NUMBER_OF_EXIT_TRADES, minimum=2, maximum=2)
        assert exits.is_satisfied(5, two_positions)
        assert not exits.is_satisfied(4, two_positions)

    def test_open_filter(self, two_positions):
        two_positions.enter(6, 100.0, amount=3.0)
        assert PositionRule(PositionFilter.OPEN, PositionAggregation.AMOUNT, minimum=3).is_satisfied(6, two_positions)
        assert PositionRule(PositionFilter.OPEN, PositionAggregation.VALUE, maximum=300).is_satisfied(6, two_positions)
        assert PositionRule(PositionFilter.ALL, PositionAggregation.GROSS_PROFIT, minimum=5).is_satisfied(
            6, two_positions
        )

    def test_empty_record(self, make_record):
        record = make_record(Side.BUY)
        assert not PositionRule(PositionFilter.ALL, PositionAggregation.NUMBER_OF_POSITIONS, minimum=1).is_satisfied(
            0, record
        )
        assert PositionRule(PositionFilter.ALL, PositionAggregation.NUMBER_OF_POSITIONS, maximum=0).is_satisfied(
            0, record
        )

    def test_bound_required(self):
        with pytest.raises(InvalidRuleConfiguration):
            PositionRule(PositionFilter.ALL, PositionAggregation.AMOUNT)


class TestRiskRewardRatioRule:
    def test_bullish(self, series):
        price = FixedIndicator(series, 100.0)
        assert RiskRewardRatioRule(price, 95, 110, 2.0).is_satisfied(0)
        assert not RiskRewardRatioRule(price, 95, 110, 2.5).is_satisfied(0)

    def test_bearish(self, series):
        price = FixedIndicator(series, 100.0)
        assert RiskRewardRatioRule(price, 105, 90, 2.0).is_satisfied(0)

    def test_inconsistent_order(self, series):
        price = FixedIndicator(series, 100.0)
        assert not RiskRewardRatioRule(price, 105, 110, 0.1).is_satisfied(0)
        assert not RiskRewardRatioRule(price, 100, 110, 0.1).is_satisfied(0)

    def test_nan(self, series):
        price = FixedIndicator(series, NaN)
        assert not RiskRewardRatioRule(price, 95, 110, 1.0).is_satisfied(0)

    def test_minimum_ratio_must_be_positive(self, close):
        with pytest.raises(InvalidRuleConfiguration):
            RiskRewardRatioRule(close, 95, 110, 0)
