# ----------------------------------
# Database Seeding
# ----------------------------------
# This script registers the default company universe and fills in
# daily price history, either:
# - synthetic (random walk inside a per-symbol price band), or
# - downloaded from yfinance
# Use this to bootstrap a fresh database before serving predictions.

import argparse
import datetime as dt
import logging
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from sqlmodel import Session

import config
from data_loader import download_history, get_or_create_company, save_stock_data
from database import create_db_and_tables, get_session

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Typical trading band per symbol, used to anchor synthetic prices
PRICE_BANDS: Dict[str, Tuple[float, float]] = {
    "RELIANCE.NS": (2400, 2600),
    "TCS.NS": (3200, 3600),
    "INFY.NS": (1450, 1650),
    "HDFCBANK.NS": (1450, 1650),
    "ICICIBANK.NS": (850, 1050),
    "SBIN.NS": (520, 620),
    "LT.NS": (3200, 3600),
    "ITC.NS": (420, 520),
    "HINDUNILVR.NS": (2200, 2600),
    "ASIANPAINT.NS": (2800, 3200),
}
DEFAULT_BAND = (100.0, 200.0)


def generate_ohlcv(
    symbol: str,
    days: int,
    end: Optional[dt.date] = None,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """
    Random-walk OHLCV bars for the weekdays in the last ``days`` calendar days.
    Returns:
        Date/Open/High/Low/Close/Volume frame, ascending by date
    """
    rng = np.random.default_rng(seed)
    end = end or dt.date.today()
    dates = [d.date() for d in pd.bdate_range(end=end, periods=days)]

    low_band, high_band = PRICE_BANDS.get(symbol, DEFAULT_BAND)
    previous_close = (low_band + high_band) / 2

    rows = []
    for date in dates:
        open_ = previous_close * (1 + rng.uniform(-0.02, 0.02))
        close = open_ * (1 + rng.uniform(-0.04, 0.04))
        high = max(open_, close) * (1 + rng.uniform(0, 0.03))
        low = min(open_, close) * (1 - rng.uniform(0, 0.03))
        rows.append({
            "Date": date,
            "Open": round(open_, 2),
            "High": round(high, 2),
            "Low": round(low, 2),
            "Close": round(close, 2),
            "Volume": int(rng.integers(200_000, 5_000_000)),
        })
        previous_close = close

    return pd.DataFrame(rows)


def seed_companies(session: Session) -> None:
    for symbol, name in config.DEFAULT_COMPANIES:
        get_or_create_company(session, symbol, name)


def seed_symbol(session: Session, symbol: str, source: str, days: int, seed: Optional[int] = None) -> int:
    """Seed one symbol's history. Returns the number of bars written."""
    company = get_or_create_company(session, symbol)
    if source == "yfinance":
        df = download_history(symbol, period=f"{max(1, days // 365)}y")
    else:
        df = generate_ohlcv(symbol, days, seed=seed)
    written = save_stock_data(session, company.id, df)
    logger.info(f"Seeded {written} bars for {symbol} from {source}")
    return written


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed companies and price history")
    parser.add_argument("--symbol", type=str, help="Seed only this symbol (e.g., TCS.NS)")
    parser.add_argument("--source", choices=["synthetic", "yfinance"], default="synthetic",
                        help="Where price history comes from (default: synthetic)")
    parser.add_argument("--days", type=int, default=400,
                        help="Trading days of synthetic history, or calendar span for yfinance (default: 400)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for synthetic data")
    args = parser.parse_args()

    create_db_and_tables()
    with get_session() as session:
        seed_companies(session)
        symbols = [args.symbol] if args.symbol else [s for s, _ in config.DEFAULT_COMPANIES]
        total = 0
        for symbol in symbols:
            try:
                total += seed_symbol(session, symbol, args.source, args.days, args.seed)
            except Exception as e:
                logger.error(f"Error seeding {symbol}: {str(e)}")
        logger.info(f"Seeding completed: {total} bars for {len(symbols)} symbols")
