# ----------------------------------
# Stock Data Loading and Persistence
# ----------------------------------
# This module is the storage boundary for price history.
# It includes functions for:
# - Resolving a symbol to its company
# - Querying bars for a date range
# - Upserting bars (one row per company and date)
# - Fetching historical data from yfinance

import datetime as dt
import logging
from typing import Iterable, List, Optional

import pandas as pd
import yfinance as yf
from sqlmodel import Session, select

from models import Company, StockData

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]


class SymbolNotFoundError(LookupError):
    """Raised when a symbol has no registered company."""

    def __init__(self, symbol: str):
        super().__init__(f"Company with symbol {symbol} not found")
        self.symbol = symbol


def get_company(session: Session, symbol: str) -> Company:
    """Return the company registered under ``symbol``."""
    company = session.exec(select(Company).where(Company.symbol == symbol)).first()
    if company is None:
        raise SymbolNotFoundError(symbol)
    return company


def list_companies(session: Session) -> List[Company]:
    return list(session.exec(select(Company).order_by(Company.symbol)).all())


def get_or_create_company(session: Session, symbol: str, name: Optional[str] = None) -> Company:
    company = session.exec(select(Company).where(Company.symbol == symbol)).first()
    if company is None:
        company = Company(symbol=symbol, name=name or symbol)
        session.add(company)
        session.commit()
        session.refresh(company)
    return company


def fetch_bars(
    session: Session,
    company_id: int,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[StockData]:
    """All bars for a company between ``start`` and ``end`` (inclusive), ascending by date."""
    statement = select(StockData).where(StockData.company_id == company_id)
    if start is not None:
        statement = statement.where(StockData.date >= start)
    if end is not None:
        statement = statement.where(StockData.date <= end)
    return list(session.exec(statement.order_by(StockData.date)).all())


def bars_to_frame(bars: Iterable[StockData]) -> pd.DataFrame:
    """Convert bar rows into a Date/Open/High/Low/Close/Volume frame."""
    df = pd.DataFrame(
        [
            {
                "Date": b.date,
                "Open": b.open,
                "High": b.high,
                "Low": b.low,
                "Close": b.close,
                "Volume": b.volume,
            }
            for b in bars
        ],
        columns=["Date"] + OHLCV_COLUMNS,
    )
    # Handle duplicate dates by keeping the most recent entry
    return df.drop_duplicates(subset="Date", keep="last").reset_index(drop=True)


def load_price_frame(
    session: Session,
    symbol: str,
    days: int,
    today: Optional[dt.date] = None,
) -> pd.DataFrame:
    """
    Load the last ``days`` calendar days of bars for ``symbol``.
    Raises:
        SymbolNotFoundError: if the symbol is not registered
    """
    company = get_company(session, symbol)
    start = (today or dt.date.today()) - dt.timedelta(days=days)
    return bars_to_frame(fetch_bars(session, company.id, start=start))


def upsert_bar(
    session: Session,
    company_id: int,
    date: dt.date,
    open: float,
    high: float,
    low: float,
    close: float,
    volume: int,
) -> StockData:
    """Insert or overwrite the bar for (company_id, date). Caller commits."""
    bar = session.exec(
        select(StockData).where(StockData.company_id == company_id, StockData.date == date)
    ).first()
    if bar is None:
        bar = StockData(company_id=company_id, date=date)
    bar.open = float(open)
    bar.high = float(high)
    bar.low = float(low)
    bar.close = float(close)
    bar.volume = int(volume)
    session.add(bar)
    return bar


def save_stock_data(session: Session, company_id: int, df: pd.DataFrame) -> int:
    """Upsert every complete row of ``df`` (indexed or keyed by date). Returns rows written."""
    df = df.dropna(subset=OHLCV_COLUMNS)
    if "Date" in df.columns:
        df = df.set_index("Date")

    written = 0
    for index, row in df.iterrows():
        upsert_bar(
            session,
            company_id,
            pd.Timestamp(index).date(),
            row["Open"],
            row["High"],
            row["Low"],
            row["Close"],
            row["Volume"],
        )
        written += 1
    session.commit()
    return written


def download_history(symbol: str, period: str = "2y") -> pd.DataFrame:
    """
    Download daily bars for ``symbol`` from yfinance.
    Raises:
        ValueError: if yfinance returns no rows
    """
    logger.info(f"Downloading {symbol} data from yfinance.")
    ticker = yf.Ticker(symbol)
    df = ticker.history(period=period, interval="1d")
    if df.empty:
        raise ValueError(f"No data found for symbol {symbol} on yfinance.")
    # Handle duplicate dates by keeping the most recent entry
    return df[~df.index.duplicated(keep="last")]
