import logging

from ruleflow.configuration import PACKAGE_LOGGER_NAME

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())

from ruleflow.exceptions import (
    RuleflowError,
    InvalidRuleConfiguration,
    PositionStateError,
    InvalidSeriesData
)

from ruleflow.logging_utils import (
    get_logger,
    configure_logging
)

from ruleflow.models import (
    Side,
    Trade,
    Position,
    TradingRecord
)

from ruleflow.series import (
    Bar,
    BarSeries
)

from ruleflow.indicators import (
    Indicator,
    CachedIndicator,
    ClosePriceIndicator,
    OpenPriceIndicator,
    HighPriceIndicator,
    LowPriceIndicator,
    VolumeIndicator,
    DateTimeIndicator,
    ConstantIndicator,
    FixedIndicator,
    HighestValueIndicator,
    LowestValueIndicator,
    StandardDeviationIndicator,
    TrueRangeIndicator,
    ATRIndicator
)

from ruleflow import rules

from ruleflow.strategy import (
    Strategy
)

from ruleflow.engine import (
    BacktestEngine,
    BacktestResult
)
