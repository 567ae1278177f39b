"""Tests for dashboard summary statistics and chart timeframes."""

import datetime as dt

import pandas as pd
import pytest

from stats import (
    calculate_52_week_stats,
    calculate_average_volume,
    normalize_range,
    range_start,
    round_price,
    slice_timeframe,
    summarize,
)

BARS = pd.DataFrame([
    {"Date": dt.date(2024, 1, 1), "Open": 100, "High": 105, "Low": 98, "Close": 103, "Volume": 1000000},
    {"Date": dt.date(2024, 1, 2), "Open": 103, "High": 108, "Low": 101, "Close": 106, "Volume": 1200000},
    {"Date": dt.date(2024, 1, 3), "Open": 106, "High": 110, "Low": 104, "Close": 108, "Volume": 900000},
    {"Date": dt.date(2024, 1, 4), "Open": 108, "High": 112, "Low": 106, "Close": 110, "Volume": 1100000},
    {"Date": dt.date(2024, 1, 5), "Open": 110, "High": 115, "Low": 108, "Close": 113, "Volume": 1300000},
])
EMPTY = BARS.iloc[0:0]


def test_52_week_high_and_low():
    assert calculate_52_week_stats(BARS) == (115.0, 98.0)
    assert calculate_52_week_stats(BARS.head(1)) == (105.0, 98.0)
    assert calculate_52_week_stats(EMPTY) == (0.0, 0.0)


def test_average_volume():
    assert calculate_average_volume(BARS) == 1100000
    assert calculate_average_volume(EMPTY) == 0


def test_average_volume_rounds_half_up():
    bars = BARS.head(2).assign(Volume=[1000001, 1000002])
    assert calculate_average_volume(bars) == 1000002


def test_summarize():
    stats = summarize(BARS)
    assert stats.fifty_two_week_high == 115.0
    assert stats.fifty_two_week_low == 98.0
    assert stats.average_volume == 1100000
    assert stats.as_of == dt.date(2024, 1, 5)


def test_round_price_breaks_ties_upward():
    assert round_price(0.125) == 0.13
    assert round_price(2.5, 0) == 3.0
    assert round_price(-2.5, 0) == -2.0
    assert round_price(101.234) == 101.23
    assert round_price(0.3752, 4) == 0.3752


def test_summarize_rounds_prices_half_up():
    bars = BARS.assign(High=[100.125] * 5, Low=[96.375] * 5)
    stats = summarize(bars)
    assert stats.fifty_two_week_high == 100.13
    assert stats.fifty_two_week_low == 96.38


@pytest.mark.parametrize("value, expected", [
    ("1d", "1D"), ("MAX", "MAX"), (None, "1M"), ("bogus", "1M"),
])
def test_normalize_range(value, expected):
    assert normalize_range(value) == expected


def test_range_start():
    today = dt.date(2024, 3, 31)
    assert range_start("1W", today) == dt.date(2024, 3, 24)
    assert range_start("1M", today) == dt.date(2024, 2, 29)
    assert range_start("1Y", today) == dt.date(2023, 3, 31)
    assert range_start("MAX", today) == dt.date(2019, 3, 31)


def test_slice_timeframe():
    today = dt.date(2024, 1, 7)
    assert list(slice_timeframe(BARS, "1D", today)["Date"]) == [dt.date(2024, 1, 5)]
    assert len(slice_timeframe(BARS, "1W", today)) == 5
    assert len(slice_timeframe(BARS, "MAX", today)) == 5
    assert slice_timeframe(EMPTY, "1M", today).empty
