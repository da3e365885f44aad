from ruleflow.rules.base import (
    Rule,
    StopPriceModel,
    StopLossPriceModel,
    StopGainPriceModel,
    open_position
)

from ruleflow.rules.leaf import (
    BooleanRule,
    FixedRule,
    BooleanIndicatorRule,
    OverIndicatorRule,
    UnderIndicatorRule,
    IsEqualRule,
    CrossedUpIndicatorRule,
    CrossedDownIndicatorRule,
    InPipeRule,
    IsHighestRule,
    IsLowestRule,
    IsRisingRule,
    IsFallingRule
)

from ruleflow.rules.calendar import (
    DayOfWeekRule,
    HourOfDayRule,
    MinuteOfHourRule,
    TimeRangeRule
)

from ruleflow.rules.combinators import (
    AndRule,
    OrRule,
    XorRule,
    NotRule,
    VoteRule,
    ChainLink,
    ChainRule,
    BeforeRule,
    OrWithThresholdRule,
    JustOnceRule
)

from ruleflow.rules.position import (
    WaitForRule,
    OpenedPositionMinimumBarCountRule,
    OpenPositionDurationRule,
    PositionFilter,
    PositionAggregation,
    PositionRule,
    RiskRewardRatioRule
)

from ruleflow.rules.distances import (
    StopDistance,
    PercentageDistance,
    FixedAmountDistance,
    VolatilityDistance,
    stop_loss_price,
    stop_loss_price_from_distance,
    stop_gain_price,
    stop_gain_price_from_distance,
    trailing_stop_loss_price,
    trailing_stop_gain_price,
    trailing_stop_gain_price_from_distance
)

from ruleflow.rules.lookback import (
    LookbackExtrema
)

from ruleflow.rules.stops import (
    ExitPriceRule,
    BaseStopLossRule,
    StopLossRule,
    FixedAmountStopLossRule,
    VolatilityStopLossRule,
    AverageTrueRangeStopLossRule,
    BaseStopGainRule,
    StopGainRule,
    FixedAmountStopGainRule,
    VolatilityStopGainRule,
    AverageTrueRangeStopGainRule
)

from ruleflow.rules.trailing import (
    BaseTrailingStopLossRule,
    TrailingStopLossRule,
    TrailingFixedAmountStopLossRule,
    VolatilityTrailingStopLossRule,
    AverageTrueRangeTrailingStopLossRule,
    BaseTrailingStopGainRule,
    TrailingStopGainRule,
    TrailingFixedAmountStopGainRule,
    VolatilityTrailingStopGainRule,
    AverageTrueRangeTrailingStopGainRule
)
