# ----------------------------------
# Real-time Quotes
# ----------------------------------
# Last-quote snapshots from Finnhub and their ingestion as today's bar.
# Outbound calls are spaced by a RateLimiter owned by the client.

import datetime as dt
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests
from sqlmodel import Session

import config
from data_loader import list_companies, upsert_bar

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class QuoteError(Exception):
    """Raised when a quote cannot be fetched or is unusable."""


@dataclass(frozen=True)
class Quote:
    symbol: str
    current: float
    high: float
    low: float
    open: float
    previous_close: float
    timestamp: int
    change_percent: float


class RateLimiter:
    """Enforces a minimum interval between successive calls to ``wait``."""

    def __init__(
        self,
        min_interval: float = config.QUOTE_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None

    def wait(self) -> None:
        if self._last_request is not None:
            elapsed = self._clock() - self._last_request
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self._last_request = self._clock()


class QuoteClient:
    def __init__(
        self,
        api_key: str = config.FINNHUB_API_KEY,
        base_url: str = config.FINNHUB_BASE_URL,
        timeout: float = config.QUOTE_TIMEOUT_SECONDS,
        rate_limiter: Optional[RateLimiter] = None,
        http: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("FINNHUB_API_KEY not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.rate_limiter = rate_limiter or RateLimiter()
        self.http = http or requests.Session()

    def get_quote(self, symbol: str) -> Quote:
        """
        Fetch the last quote for ``symbol``.
        Raises:
            QuoteError: on HTTP failure or a payload without a current price
        """
        self.rate_limiter.wait()
        logger.info(f"Fetching {symbol} from Finnhub API...")
        try:
            response = self.http.get(
                f"{self.base_url}/quote",
                params={"symbol": symbol, "token": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise QuoteError(f"Finnhub request failed for {symbol}: {e}") from e

        if not data or not data.get("c"):
            logger.warning(f"Invalid data for {symbol}: {data}")
            raise QuoteError(f"No current price for {symbol}")

        return Quote(
            symbol=symbol,
            current=float(data["c"]),
            high=float(data.get("h") or 0),
            low=float(data.get("l") or 0),
            open=float(data.get("o") or 0),
            previous_close=float(data.get("pc") or 0),
            timestamp=int(data.get("t") or 0),
            change_percent=float(data.get("dp") or 0),
        )


@dataclass
class IngestionReport:
    updated: List[str]
    failed: List[str]


def ingest_quotes(session: Session, client: QuoteClient, today: Optional[dt.date] = None) -> IngestionReport:
    """
    Fetch a quote for every registered company and upsert it as today's bar.
    Missing open/high/low fall back to the current price; the quote feed has
    no volume so it is stored as 0.
    """
    today = today or dt.date.today()
    report = IngestionReport(updated=[], failed=[])

    for company in list_companies(session):
        try:
            quote = client.get_quote(company.symbol)
        except QuoteError as e:
            logger.error(f"Failed to fetch {company.symbol}: {e}")
            report.failed.append(company.symbol)
            continue

        upsert_bar(
            session,
            company.id,
            today,
            open=quote.open or quote.current,
            high=quote.high or quote.current,
            low=quote.low or quote.current,
            close=quote.current,
            volume=0,
        )
        report.updated.append(company.symbol)

    if report.updated:
        session.commit()
    logger.info(f"Successfully fetched: {len(report.updated)}/{len(report.updated) + len(report.failed)} stocks")
    if report.failed:
        logger.warning(f"Failed stocks: {', '.join(report.failed)}")
    return report
