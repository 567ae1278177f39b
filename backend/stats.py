# ----------------------------------
# Summary Statistics
# ----------------------------------
# Dashboard figures derived from stored bars: 52-week high/low,
# average volume and chart timeframe windows.

import datetime as dt
import math
from typing import Optional, Tuple

import pandas as pd

from models import StockStats

DEFAULT_RANGE = "1M"

# Calendar lookback per chart range. 1D looks back a week so a weekend
# still finds the latest session, then keeps only that bar.
RANGE_LOOKBACK = {
    "1D": dt.timedelta(days=7),
    "1W": dt.timedelta(days=7),
    "1M": pd.DateOffset(months=1),
    "6M": pd.DateOffset(months=6),
    "1Y": pd.DateOffset(years=1),
    "MAX": pd.DateOffset(years=5),
}


def normalize_range(range_: Optional[str]) -> str:
    range_ = (range_ or DEFAULT_RANGE).upper()
    return range_ if range_ in RANGE_LOOKBACK else DEFAULT_RANGE


def range_start(range_: str, today: dt.date) -> dt.date:
    """First calendar date included by a chart range."""
    lookback = RANGE_LOOKBACK[normalize_range(range_)]
    return (pd.Timestamp(today) - lookback).date()


def slice_timeframe(df: pd.DataFrame, range_: str, today: dt.date) -> pd.DataFrame:
    """Bars of ``df`` visible in a chart range; 1D keeps only the latest bar."""
    if df.empty:
        return df
    range_ = normalize_range(range_)
    if range_ == "1D":
        return df.tail(1)
    return df[pd.to_datetime(df["Date"]).dt.date >= range_start(range_, today)]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_price(value: float, places: int = 2) -> float:
    """Round to ``places`` decimals with ties going up (2.125 -> 2.13)."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def calculate_52_week_stats(df: pd.DataFrame) -> Tuple[float, float]:
    """(highest high, lowest low); (0, 0) for an empty frame."""
    if df.empty:
        return 0.0, 0.0
    return float(df["High"].max()), float(df["Low"].min())


def calculate_average_volume(df: pd.DataFrame) -> int:
    """Mean volume rounded half-up to a whole share count; 0 for an empty frame."""
    if df.empty:
        return 0
    return round_half_up(float(df["Volume"].sum()) / len(df))


def summarize(df: pd.DataFrame) -> StockStats:
    """Stats tile values for a non-empty, date-ordered frame."""
    high, low = calculate_52_week_stats(df)
    return StockStats(
        fifty_two_week_high=round_price(high),
        fifty_two_week_low=round_price(low),
        average_volume=calculate_average_volume(df),
        as_of=pd.Timestamp(df["Date"].iloc[-1]).date(),
    )
