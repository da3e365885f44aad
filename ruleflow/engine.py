"""
Bar-by-bar backtest loop.

The engine walks a ``BarSeries`` from its begin index to its end index (or a
sub-range), asks the strategy whether to operate on every bar, and records
entries / exits at the bar's close price in a ``TradingRecord``.  A position
still open when the data ends is left open.

Usage
-----
>>> close = ClosePriceIndicator(series)
>>> strategy = Strategy(CrossedUpIndicatorRule(close, 100), TrailingStopLossRule(close, 5))
>>> result = BacktestEngine().run(series, strategy)
>>> result.trades_df.head()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pandas as pd
from tqdm import tqdm

from ruleflow.exceptions import InvalidSeriesData
from ruleflow.logging_utils import get_logger
from ruleflow.models import Side, TradingRecord
from ruleflow.series import BarSeries
from ruleflow.strategy import Strategy

logger = get_logger(__name__)


@dataclass
class BacktestResult:
    """
    Container returned by ``BacktestEngine.run()``.

    Attributes
    ----------
    trading_record : TradingRecord
        Every trade executed during the run.
    trades_df : pd.DataFrame
        Closed positions in tabular form for analysis / export.
    """
    trading_record: TradingRecord
    trades_df: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def position_count(self) -> int:
        return self.trading_record.position_count


class BacktestEngine:
    """
    Runs a ``Strategy`` over a ``BarSeries``.

    Parameters
    ----------
    cost_rate : float
        Linear transaction cost applied to every execution.
    progress_bar : bool
        Show ``tqdm`` progress bar during the loop.
    """

    def __init__(self, cost_rate: float = 0.0, progress_bar: bool = False) -> None:
        self.cost_rate = cost_rate
        self.progress_bar = progress_bar

    def run(
        self,
        series: BarSeries,
        strategy: Strategy,
        side: Side = Side.BUY,
        amount: float = 1.0,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> BacktestResult:
        """
        Execute the backtest.

        Parameters
        ----------
        series : BarSeries
        strategy : Strategy
        side : Side
            Side of every entry trade.
        amount : float
            Quantity traded on each entry.
        start, end : int | None
            Inclusive index range; defaults to the whole series.

        Returns
        -------
        BacktestResult
        """
        if series is None or series.is_empty:
            raise InvalidSeriesData("Cannot backtest an empty series.")
        start = series.begin_index if start is None else max(start, series.begin_index)
        end = series.end_index if end is None else min(end, series.end_index)

        record = TradingRecord(Side(side), self.cost_rate)
        logger.info("Running %s on %s, bars %d..%d", strategy.name, series.name or "series", start, end)

        iterator = tqdm(range(start, end + 1), desc="Backtesting", disable=not self.progress_bar)
        for index in iterator:
            if strategy.should_operate(index, record):
                price = series.get_bar(index).close
                trade = record.operate(index, price, amount)
                logger.debug("%s trade at index %d, price %s", trade.side.name, index, price)

        if record.current_position.is_opened:
            logger.info("Position opened at index %d is still open at the end of the data.",
                        record.current_position.entry.index)
        logger.info("Backtest finished: %d closed positions", record.position_count)
        return BacktestResult(trading_record=record, trades_df=self._positions_to_dataframe(record, series))

    @staticmethod
    def _positions_to_dataframe(record: TradingRecord, series: BarSeries) -> pd.DataFrame:
        """Convert the closed positions of *record* into a pandas DataFrame."""
        if not record.positions:
            return pd.DataFrame()

        rows = []
        for position_id, position in enumerate(record.positions, start=1):
            entry, exit_ = position.entry, position.exit
            rows.append({
                "position_id": position_id,
                "side": entry.side.name,
                "entry_index": entry.index,
                "exit_index": exit_.index,
                "entry_datetime": series.get_bar(entry.index).end_time,
                "exit_datetime": series.get_bar(exit_.index).end_time,
                "entry_price": entry.price,
                "exit_price": exit_.price,
                "amount": entry.amount,
                "cost": entry.cost + exit_.cost,
                "gross_profit": position.gross_profit,
                "net_profit": position.profit,
                "bars_in_position": exit_.index - entry.index,
            })
        return pd.DataFrame(rows)
