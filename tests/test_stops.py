"""Tests for static stop-loss / stop-gain rules and the price helpers."""
import pytest

from ruleflow import (
    ClosePriceIndicator,
    ConstantIndicator,
    FixedIndicator,
    InvalidRuleConfiguration,
    Position,
    Side,
)
from ruleflow.rules import (
    AverageTrueRangeStopGainRule,
    AverageTrueRangeStopLossRule,
    FixedAmountStopGainRule,
    FixedAmountStopLossRule,
    StopGainRule,
    StopLossPriceModel,
    StopGainPriceModel,
    StopLossRule,
    VolatilityStopGainRule,
    VolatilityStopLossRule,
    stop_gain_price,
    stop_gain_price_from_distance,
    stop_loss_price,
    stop_loss_price_from_distance,
    trailing_stop_gain_price,
    trailing_stop_gain_price_from_distance,
    trailing_stop_loss_price,
)


def _closes(make_series, *closes):
    series = make_series(*closes)
    return series, ClosePriceIndicator(series)


# ── Percentage ───────────────────────────────────────────────────────

class TestStopLossRule:
    def test_long_threshold_is_inclusive(self, make_series, make_record):
        _, close = _closes(make_series, 100, 90, 90.01, 89.99)
        rule = StopLossRule(close, 10)
        record = make_record(Side.BUY, (0, 100.0))
        assert [rule.is_satisfied(i, record) for i in range(4)] == [False, True, False, True]

    def test_short(self, make_series, make_record):
        _, close = _closes(make_series, 100, 110, 109.99)
        rule = StopLossRule(close, 10)
        record = make_record(Side.SELL, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)

    def test_undefined_conditions(self, make_series, make_record):
        _, close = _closes(make_series, 100, 80)
        rule = StopLossRule(close, 10)
        assert not rule.is_satisfied(1)
        assert not rule.is_satisfied(1, make_record(Side.BUY))
        assert not rule.is_satisfied(1, make_record(Side.BUY, (0, float("nan"))))
        closed = make_record(Side.BUY, (0, 100.0), (1, 80.0))
        assert not rule.is_satisfied(1, closed)

    def test_nan_reference_price(self, series, make_record):
        rule = StopLossRule(FixedIndicator(series, 100.0, float("nan")), 10)
        assert not rule.is_satisfied(1, make_record(Side.BUY, (0, 100.0)))

    def test_transaction_cost_moves_the_entry(self, make_series, make_record):
        series, close = _closes(make_series, 100, 90.9)
        rule = StopLossRule(close, 10)
        record = make_record(Side.BUY, (0, 100.0), cost_rate=0.01)
        assert rule.stop_price(series, record.current_position) == pytest.approx(90.9)

    @pytest.mark.parametrize("percentage", [0, -5, None, float("nan")])
    def test_invalid_percentage(self, close, percentage):
        with pytest.raises(InvalidRuleConfiguration):
            StopLossRule(close, percentage)

    def test_reference_required(self):
        with pytest.raises(InvalidRuleConfiguration):
            StopLossRule(None, 5)


class TestStopGainRule:
    def test_long(self, make_series, make_record):
        _, close = _closes(make_series, 100, 110, 109.99)
        rule = StopGainRule(close, 10)
        record = make_record(Side.BUY, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)

    def test_short(self, make_series, make_record):
        _, close = _closes(make_series, 100, 90, 90.01)
        rule = StopGainRule(close, 10)
        record = make_record(Side.SELL, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)

    def test_loss_does_not_trigger_gain(self, make_series, make_record):
        _, close = _closes(make_series, 100, 50)
        assert not StopGainRule(close, 10).is_satisfied(1, make_record(Side.BUY, (0, 100.0)))


# ── Fixed amount ─────────────────────────────────────────────────────

class TestFixedAmount:
    def test_stop_loss(self, make_series, make_record):
        _, close = _closes(make_series, 100, 95, 95.01)
        rule = FixedAmountStopLossRule(close, 5)
        record = make_record(Side.BUY, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)

    def test_stop_gain_short(self, make_series, make_record):
        _, close = _closes(make_series, 100, 95, 95.01)
        rule = FixedAmountStopGainRule(close, 5)
        record = make_record(Side.SELL, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)

    def test_amount_must_be_positive(self, close):
        with pytest.raises(InvalidRuleConfiguration):
            FixedAmountStopLossRule(close, 0)
        with pytest.raises(InvalidRuleConfiguration):
            FixedAmountStopGainRule(close, -1)


# ── Volatility / ATR ─────────────────────────────────────────────────

class TestVolatilityStops:
    def test_volatility_stop_loss(self, make_series, make_record):
        series, close = _closes(make_series, 100, 97, 97.5)
        rule = VolatilityStopLossRule(close, ConstantIndicator(series, 2), 1.5)
        record = make_record(Side.BUY, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)
        assert rule.stop_price(series, record.current_position) == pytest.approx(97.0)

    def test_volatility_read_at_evaluated_index(self, make_series, make_record):
        series, close = _closes(make_series, 100, 97, 97)
        rule = VolatilityStopGainRule(close, FixedIndicator(series, 1, 1, 4), 1)
        record = make_record(Side.SELL, (0, 100.0))
        assert rule.is_satisfied(1, record)
        assert not rule.is_satisfied(2, record)

    def test_nan_volatility(self, make_series, make_record):
        series, close = _closes(make_series, 100, 50)
        rule = VolatilityStopLossRule(close, FixedIndicator(series), 1)
        record = make_record(Side.BUY, (0, 100.0))
        assert not rule.is_satisfied(1, record)
        assert rule.stop_price(series, record.current_position) is None

    def test_average_true_range_stop_loss(self, make_series, make_record):
        # ATR(2) of these closes: 0, 1, 1, 1.5, 4.25
        series = make_series(100, 102, 101, 103, 96)
        rule = AverageTrueRangeStopLossRule(series, 2, 1.0)
        record = make_record(Side.BUY, (1, 102.0))
        assert not rule.is_satisfied(3, record)
        assert rule.is_satisfied(4, record)
        assert rule.stop_price(series, record.current_position) == pytest.approx(101.0)

    def test_average_true_range_stop_gain(self, make_series, make_record):
        series = make_series(100, 102, 101, 103, 96)
        rule = AverageTrueRangeStopGainRule(series, 2, 1.0)
        record = make_record(Side.BUY, (1, 102.0))
        assert not rule.is_satisfied(3, record)
        assert rule.stop_price(series, record.current_position) == pytest.approx(103.0)
        assert rule.atr_bar_count == 2

    def test_invalid_coefficient(self, series, close):
        with pytest.raises(InvalidRuleConfiguration):
            VolatilityStopLossRule(close, ConstantIndicator(series, 1), 0)
        with pytest.raises(InvalidRuleConfiguration):
            AverageTrueRangeStopLossRule(series, 0, 1.0)


# ── Stop price ───────────────────────────────────────────────────────

class TestStopPrice:
    def test_round_trip_with_evaluation(self, make_series, make_record):
        series, close = _closes(make_series, 100, 95)
        rule = StopLossRule(close, 5)
        record = make_record(Side.BUY, (0, 100.0))
        price = rule.stop_price(series, record.current_position)
        assert price == stop_loss_price(100.0, 5, True)
        # the evaluation threshold at the entry bar equals the reported stop
        assert rule.is_satisfied(1, record)

    def test_missing_position_or_entry(self, series, close):
        rule = StopGainRule(close, 5)
        assert rule.stop_price(series, None) is None
        assert rule.stop_price(series, Position(Side.BUY)) is None
        position = Position(Side.BUY)
        position.operate(0)
        assert rule.stop_price(series, position) is None

    def test_capabilities(self, close):
        assert isinstance(StopLossRule(close, 1), StopLossPriceModel)
        assert isinstance(StopGainRule(close, 1), StopGainPriceModel)
        assert not isinstance(StopGainRule(close, 1), StopLossPriceModel)


class TestPriceFunctions:
    def test_percentage(self):
        assert stop_loss_price(100, 10, True) == 90.0
        assert stop_loss_price(100, 10, False) == 110.0
        assert stop_gain_price(100, 10, True) == 110.0
        assert stop_gain_price(100, 10, False) == 90.0

    def test_distance(self):
        assert stop_loss_price_from_distance(100, 5, True) == 95.0
        assert stop_loss_price_from_distance(100, 5, False) == 105.0
        assert stop_gain_price_from_distance(100, 5, True) == 105.0
        assert stop_gain_price_from_distance(100, 5, False) == 95.0

    def test_trailing(self):
        assert trailing_stop_loss_price(130, 10, True) == 117.0
        assert trailing_stop_gain_price(120, 10, True) == 108.0
        assert trailing_stop_gain_price(80, 10, False) == 88.0
        assert trailing_stop_gain_price_from_distance(120, 3, True) == 117.0
        assert trailing_stop_gain_price_from_distance(80, 3, False) == 83.0

    def test_none_arguments(self):
        with pytest.raises(InvalidRuleConfiguration):
            stop_loss_price(None, 10, True)
        with pytest.raises(InvalidRuleConfiguration):
            trailing_stop_gain_price(100, None, True)
