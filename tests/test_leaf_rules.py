"""Tests for constant, index-set and indicator-comparison rules."""
import pytest

from ruleflow import ClosePriceIndicator, FixedIndicator, InvalidRuleConfiguration
from ruleflow.rules import (
    BooleanIndicatorRule,
    BooleanRule,
    CrossedDownIndicatorRule,
    CrossedUpIndicatorRule,
    FixedRule,
    InPipeRule,
    IsEqualRule,
    IsFallingRule,
    IsHighestRule,
    IsLowestRule,
    IsRisingRule,
    OverIndicatorRule,
    UnderIndicatorRule,
)

NaN = float("nan")


class TestConstantRules:
    def test_boolean_rule(self):
        assert BooleanRule.TRUE.is_satisfied(0)
        assert not BooleanRule.FALSE.is_satisfied(0)
        assert BooleanRule(True).is_satisfied(42, None)

    def test_fixed_rule(self):
        rule = FixedRule(1, 3, 5)
        assert [rule.is_satisfied(i) for i in range(6)] == [False, True, False, True, False, True]

    def test_fixed_rule_rejects_non_integers(self):
        with pytest.raises(InvalidRuleConfiguration):
            FixedRule(1, 2.5)

    def test_boolean_indicator_rule(self, series):
        rule = BooleanIndicatorRule(FixedIndicator(series, True, False, 1))
        assert rule.is_satisfied(0)
        assert not rule.is_satisfied(1)
        # only real booleans count
        assert not rule.is_satisfied(2)
        assert not rule.is_satisfied(3)


class TestComparisons:
    def test_over_under_equal(self, close):
        assert OverIndicatorRule(close, 109).is_satisfied(2)
        assert not OverIndicatorRule(close, 110).is_satisfied(2)
        assert UnderIndicatorRule(close, 106).is_satisfied(1)
        assert IsEqualRule(close, 108).is_satisfied(3)

    def test_indicator_threshold(self, series, close):
        other = FixedIndicator(series, 99, 106)
        assert OverIndicatorRule(close, other).is_satisfied(0)
        assert UnderIndicatorRule(close, other).is_satisfied(1)

    def test_nan_is_never_satisfied(self, series):
        values = FixedIndicator(series, NaN)
        assert not OverIndicatorRule(values, 0).is_satisfied(0)
        assert not UnderIndicatorRule(values, 0).is_satisfied(0)
        assert not IsEqualRule(values, NaN).is_satisfied(0)

    def test_threshold_must_not_be_none(self, close):
        with pytest.raises(InvalidRuleConfiguration):
            OverIndicatorRule(close, None)
        with pytest.raises(InvalidRuleConfiguration):
            OverIndicatorRule(None, 1)


class TestCrosses:
    def test_crossed_up_skips_equal_bars(self, series):
        first = FixedIndicator(series, 8, 10, 10, 12, 13)
        rule = CrossedUpIndicatorRule(first, 10)
        assert [rule.is_satisfied(i) for i in range(5)] == [False, False, False, True, False]

    def test_crossed_down(self, series):
        first = FixedIndicator(series, 12, 11, 9, 8)
        rule = CrossedDownIndicatorRule(first, 10)
        assert [rule.is_satisfied(i) for i in range(4)] == [False, False, True, False]

    def test_no_cross_without_history(self, series):
        assert not CrossedUpIndicatorRule(FixedIndicator(series, 12), 10).is_satisfied(0)


class TestRanges:
    def test_in_pipe_is_inclusive(self, close):
        rule = InPipeRule(close, 110, 105)
        assert [rule.is_satisfied(i) for i in range(4)] == [False, True, True, True]

    def test_is_highest_and_lowest(self, make_series):
        close = ClosePriceIndicator(make_series(1, 3, 2, 5))
        assert IsHighestRule(close, 3).is_satisfied(3)
        assert not IsHighestRule(close, 3).is_satisfied(2)
        assert IsLowestRule(close, 2).is_satisfied(2)

    def test_is_rising_strictly(self, make_series):
        close = ClosePriceIndicator(make_series(1, 2, 3, 4))
        assert IsRisingRule(close, 3).is_satisfied(3)
        assert not IsFallingRule(close, 3).is_satisfied(3)
        assert not IsRisingRule(close, 3).is_satisfied(0)

    def test_is_rising_with_strength(self, make_series):
        close = ClosePriceIndicator(make_series(1, 2, 2, 4))
        assert IsRisingRule(close, 3, min_strength=0.6).is_satisfied(3)
        assert not IsRisingRule(close, 3).is_satisfied(3)

    def test_is_falling(self, make_series):
        close = ClosePriceIndicator(make_series(5, 4, 3, 2))
        assert IsFallingRule(close, 3).is_satisfied(3)

    @pytest.mark.parametrize("strength", [0, 1.5])
    def test_invalid_strength(self, close, strength):
        with pytest.raises(InvalidRuleConfiguration):
            IsRisingRule(close, 3, min_strength=strength)
