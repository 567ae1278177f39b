# ----------------------------------
# Feature Engineering
# ----------------------------------
# This module turns a date-ordered OHLCV frame into model inputs.
# It includes functions for:
# - Technical indicators (SMA, RSI, annualized volatility)
# - Per-day feature rows
# - Next-day close targets for training

import logging
from typing import List, Tuple

import numpy as np
import pandas as pd

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Feature order is shared by training and inference
FEATURE_COLUMNS = [
    "Close", "Close_Lag1", "Close_Lag5", "SMA5", "SMA20",
    "RSI14", "Volatility", "Volume_M", "Range_Ratio",
]

FIRST_TRAINING_INDEX = 21  # Bars before this lack indicator history
TRADING_DAYS_PER_YEAR = 252


def calculate_sma(closes: pd.Series, window: int) -> pd.Series:
    """
    Simple moving average of closes.
    Positions before the window fills take the raw close at that position.
    """
    if window <= 0:
        raise ValueError("window must be > 0")
    closes = pd.Series(closes, dtype=float).reset_index(drop=True)
    sma = closes.rolling(window=window).mean()
    return sma.fillna(closes)


def calculate_rsi(closes: pd.Series, window: int = 14) -> pd.Series:
    """
    Relative Strength Index from simple average gains and losses over the
    last ``window`` close-to-close changes ending at each position.

    - 50 (neutral) where fewer than ``window`` changes are available
    - 100 where the average loss is exactly zero
    """
    if window <= 0:
        raise ValueError("window must be > 0")
    closes = pd.Series(closes, dtype=float).reset_index(drop=True)
    delta = closes.diff()
    gain = delta.clip(lower=0)
    loss = (-delta).clip(lower=0)

    avg_gain = gain.rolling(window=window).mean()
    avg_loss = loss.rolling(window=window).mean()

    with np.errstate(divide="ignore", invalid="ignore"):
        rs = avg_gain / avg_loss
        rsi = 100 - (100 / (1 + rs))
    rsi = rsi.where(avg_loss != 0, 100.0)
    rsi[avg_gain.isna()] = 50.0
    return rsi.clip(0.0, 100.0)


def calculate_volatility(closes, window: int = 20) -> float:
    """
    Annualized volatility of the trailing ``window`` closes: population
    standard deviation of their log returns times sqrt(252).
    Returns 0 when fewer than ``window`` closes are available.
    """
    closes = np.asarray(closes, dtype=float)
    if len(closes) < window:
        return 0.0
    returns = np.diff(np.log(closes[-window:]))
    return float(np.std(returns) * np.sqrt(TRADING_DAYS_PER_YEAR))


def rolling_volatility(closes: pd.Series, window: int = 20) -> pd.Series:
    """``calculate_volatility`` evaluated on every prefix ``closes[0..i]``."""
    closes = pd.Series(closes, dtype=float).reset_index(drop=True)
    log_returns = np.log(closes).diff()
    vol = log_returns.rolling(window=window - 1).std(ddof=0) * np.sqrt(TRADING_DAYS_PER_YEAR)
    return vol.fillna(0.0)


def add_indicators(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with the per-day feature columns attached."""
    df = df.reset_index(drop=True).copy()
    close = df["Close"].astype(float)

    df["Close_Lag1"] = close.shift(1)
    # Five sessions back, or the first close when there is not enough history
    df["Close_Lag5"] = close.shift(5).fillna(close.iloc[0] if len(close) else np.nan)
    df["SMA5"] = calculate_sma(close, 5)
    df["SMA20"] = calculate_sma(close, 20)
    df["RSI14"] = calculate_rsi(close, 14)
    df["Volatility"] = rolling_volatility(close, 20)
    df["Volume_M"] = df["Volume"].astype(float) / 1_000_000
    df["Range_Ratio"] = (df["High"] - df["Low"]) / close
    return df


def feature_row(df: pd.DataFrame, index: int) -> List[float]:
    """Feature vector for position ``index`` of a frame returned by ``add_indicators``."""
    return [float(v) for v in df.loc[index, FEATURE_COLUMNS]]


def prepare_features(df: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the training set from a date-ordered OHLCV frame.
    Args:
        df: Frame with Open, High, Low, Close and Volume columns
    Returns:
        Tuple of (features with shape (n - 22, 9), next-day close targets)
        for positions 21 through n - 2 inclusive
    """
    n = len(df)
    enriched = add_indicators(df)
    last = n - 1  # The final bar has no next-day target

    if last <= FIRST_TRAINING_INDEX:
        return np.empty((0, len(FEATURE_COLUMNS))), np.empty((0,))

    features = enriched.loc[FIRST_TRAINING_INDEX:last - 1, FEATURE_COLUMNS].to_numpy(dtype=float)
    targets = enriched["Close"].to_numpy(dtype=float)[FIRST_TRAINING_INDEX + 1:last + 1]

    logger.info(f"prepare_features: Feature shape: {features.shape}")
    return features, targets
