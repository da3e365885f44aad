"""
Bar series: the append-only price history rules and indicators read from.

A ``BarSeries`` is built either bar by bar (live feeds, tests) or from a
pandas / polars DataFrame with the usual ``Datetime, Open, High, Low, Close,
Volume`` columns.  Indices are 0-based and never shift: appending a bar only
extends ``end_index``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
import polars as pl

from ruleflow.configuration import (
    CLOSE_COLUMN,
    DATETIME_COLUMN,
    HIGH_COLUMN,
    LOW_COLUMN,
    OPEN_COLUMN,
    REQUIRED_BAR_COLUMNS,
    VOLUME_COLUMN,
)
from ruleflow.exceptions import InvalidSeriesData


@dataclass(frozen=True, slots=True)
class Bar:
    """One OHLCV sample."""
    end_time: pd.Timestamp
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class BarSeries:
    """
    Ordered, append-only collection of bars.

    Parameters
    ----------
    name : str
        Free-form label (symbol, timeframe, ...).
    bars : iterable of Bar | None
        Initial bars, oldest first.
    """

    def __init__(self, name: str = "", bars: Optional[Iterable[Bar]] = None) -> None:
        self.name = name
        self._bars: List[Bar] = list(bars) if bars is not None else []

    # ------------------------------------------------------------------ #
    #  Construction helpers                                               #
    # ------------------------------------------------------------------ #

    @classmethod
    def from_frame(cls, frame: Union[pd.DataFrame, pl.DataFrame], name: str = "") -> "BarSeries":
        """
        Build a series from a pandas or polars DataFrame.

        Required columns: ``Datetime, Open, High, Low, Close``; ``Volume`` is
        optional.  Rows are sorted by ``Datetime``.
        """
        if isinstance(frame, pl.DataFrame):
            columns = set(frame.columns)
            _check_columns(columns)
            frame = frame.sort(DATETIME_COLUMN)
        elif isinstance(frame, pd.DataFrame):
            columns = set(frame.columns)
            _check_columns(columns)
            frame = frame.sort_values(DATETIME_COLUMN, ascending=True)
        else:
            raise InvalidSeriesData(
                f"Expected a pandas or polars DataFrame, got {type(frame).__name__}."
            )

        wanted = REQUIRED_BAR_COLUMNS + (VOLUME_COLUMN,)
        data = {col: frame[col].to_numpy() for col in frame.columns if col in wanted}
        times = pd.to_datetime(data[DATETIME_COLUMN])
        volumes = data.get(VOLUME_COLUMN, np.zeros(len(times)))
        series = cls(name)
        for i in range(len(times)):
            series.add_bar(
                times[i],
                data[OPEN_COLUMN][i],
                data[HIGH_COLUMN][i],
                data[LOW_COLUMN][i],
                data[CLOSE_COLUMN][i],
                volumes[i],
            )
        return series

    @classmethod
    def from_closes(
        cls,
        closes: Sequence[float],
        start: Any = "2024-01-01",
        freq: str = "1D",
        name: str = "",
    ) -> "BarSeries":
        """Series whose open/high/low all equal the close (handy for close-driven rules)."""
        times = pd.date_range(start=start, periods=len(closes), freq=freq)
        series = cls(name)
        for time, close in zip(times, closes):
            series.add_bar(time, close, close, close, close)
        return series

    def add_bar(
        self,
        end_time: Any,
        open: float,
        high: float,
        low: float,
        close: float,
        volume: float = 0.0,
    ) -> Bar:
        bar = Bar(pd.Timestamp(end_time), float(open), float(high), float(low), float(close), float(volume))
        if self._bars and bar.end_time < self._bars[-1].end_time:
            raise InvalidSeriesData(
                f"Bar end time {bar.end_time} is older than the last bar ({self._bars[-1].end_time})."
            )
        self._bars.append(bar)
        return bar

    # ------------------------------------------------------------------ #
    #  Access                                                             #
    # ------------------------------------------------------------------ #

    @property
    def begin_index(self) -> int:
        return 0 if self._bars else -1

    @property
    def end_index(self) -> int:
        return len(self._bars) - 1

    @property
    def bar_count(self) -> int:
        return len(self._bars)

    @property
    def is_empty(self) -> bool:
        return not self._bars

    def get_bar(self, index: int) -> Bar:
        if index < 0 or index > self.end_index:
            raise IndexError(f"Bar index {index} out of range [0, {self.end_index}].")
        return self._bars[index]

    @property
    def last_bar(self) -> Bar:
        return self.get_bar(self.end_index)

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self):
        return iter(self._bars)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                DATETIME_COLUMN: [b.end_time for b in self._bars],
                OPEN_COLUMN:     [b.open for b in self._bars],
                HIGH_COLUMN:     [b.high for b in self._bars],
                LOW_COLUMN:      [b.low for b in self._bars],
                CLOSE_COLUMN:    [b.close for b in self._bars],
                VOLUME_COLUMN:   [b.volume for b in self._bars],
            }
        )

    def __repr__(self) -> str:
        return f"BarSeries(name={self.name!r}, bars={len(self._bars)})"


def _check_columns(columns: set) -> None:
    missing = set(REQUIRED_BAR_COLUMNS) - columns
    if missing:
        raise InvalidSeriesData(
            f"Input DataFrame is missing required columns: {missing}. "
            f"Expected columns: {sorted(REQUIRED_BAR_COLUMNS)}"
        )
