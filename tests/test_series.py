"""Tests for BarSeries construction and access."""
import datetime as dt

import pandas as pd
import polars as pl
import pytest

from ruleflow import BarSeries, InvalidSeriesData


def _frame():
    return pd.DataFrame(
        {
            "Datetime": pd.to_datetime(["2024-01-03", "2024-01-01", "2024-01-02"]),
            "Open": [3.0, 1.0, 2.0],
            "High": [3.5, 1.5, 2.5],
            "Low": [2.5, 0.5, 1.5],
            "Close": [3.2, 1.2, 2.2],
            "Volume": [30, 10, 20],
        }
    )


class TestFromFrame:
    def test_pandas_rows_are_sorted(self):
        series = BarSeries.from_frame(_frame(), name="ES")
        assert series.bar_count == 3
        assert [bar.close for bar in series] == [1.2, 2.2, 3.2]
        assert series.get_bar(0).volume == 10.0
        assert series.name == "ES"

    def test_polars(self):
        frame = pl.DataFrame(
            {
                "Datetime": [dt.datetime(2024, 1, 2), dt.datetime(2024, 1, 1), dt.datetime(2024, 1, 3)],
                "Open": [2.0, 1.0, 3.0],
                "High": [2.5, 1.5, 3.5],
                "Low": [1.5, 0.5, 2.5],
                "Close": [2.2, 1.2, 3.2],
            }
        )
        series = BarSeries.from_frame(frame)
        assert [bar.open for bar in series] == [1.0, 2.0, 3.0]
        assert series.last_bar.end_time == pd.Timestamp("2024-01-03")

    def test_volume_is_optional(self):
        series = BarSeries.from_frame(_frame().drop(columns=["Volume"]))
        assert series.get_bar(2).volume == 0.0

    def test_missing_columns(self):
        with pytest.raises(InvalidSeriesData):
            BarSeries.from_frame(_frame().drop(columns=["Close"]))

    def test_unsupported_type(self):
        with pytest.raises(InvalidSeriesData):
            BarSeries.from_frame({"Close": [1.0]})


class TestAccess:
    def test_from_closes(self):
        series = BarSeries.from_closes([10, 11, 12])
        bar = series.get_bar(1)
        assert bar.open == bar.high == bar.low == bar.close == 11.0
        assert (series.begin_index, series.end_index) == (0, 2)
        assert len(series) == 3

    def test_empty_series(self):
        series = BarSeries()
        assert series.is_empty
        assert series.begin_index == -1
        assert series.end_index == -1

    def test_out_of_range(self):
        series = BarSeries.from_closes([10, 11])
        with pytest.raises(IndexError):
            series.get_bar(2)
        with pytest.raises(IndexError):
            series.get_bar(-1)

    def test_add_bar_rejects_older_timestamp(self):
        series = BarSeries.from_closes([10, 11], start="2024-01-10")
        with pytest.raises(InvalidSeriesData):
            series.add_bar("2024-01-01", 1, 1, 1, 1)

    def test_to_frame_round_trip(self):
        frame = BarSeries.from_frame(_frame()).to_frame()
        assert list(frame.columns) == ["Datetime", "Open", "High", "Low", "Close", "Volume"]
        assert frame["Close"].tolist() == [1.2, 2.2, 3.2]
