# Stock Dashboard API
# FastAPI server for company data, summary statistics and next-day predictions

import datetime as dt
import logging
import traceback
from typing import Dict, List

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

import config
from data_loader import (
    SymbolNotFoundError,
    bars_to_frame,
    fetch_bars,
    get_company,
    list_companies,
)
from database import create_db_and_tables, session_dependency
from model import TrainingError
from models import (
    Bar,
    CompanyOut,
    IngestionResponse,
    PredictionResult,
    PriceHistoryResponse,
    StatsResponse,
)
from quotes import QuoteClient, ingest_quotes
from service import InsufficientDataError, PredictionService
from stats import normalize_range, range_start, slice_timeframe, summarize

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Stock Dashboard API",
    description="API for company price history, summary statistics and next-day price predictions",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.prediction_service = PredictionService()


@app.on_event("startup")
def on_startup():
    create_db_and_tables()


def get_prediction_service(request: Request) -> PredictionService:
    return request.app.state.prediction_service


def get_quote_client(request: Request) -> QuoteClient:
    client = getattr(request.app.state, "quote_client", None)
    if client is None:
        client = QuoteClient()
        request.app.state.quote_client = client
    return client


def require_symbol(symbol: str) -> str:
    symbol = symbol.strip()
    if not symbol:
        raise HTTPException(status_code=400, detail="Symbol parameter is required")
    return symbol


@app.get("/api/predict", include_in_schema=False)
@app.get("/api/predict/", include_in_schema=False)
@app.get("/api/stats", include_in_schema=False)
@app.get("/api/stats/", include_in_schema=False)
@app.get("/api/stocks", include_in_schema=False)
@app.get("/api/stocks/", include_in_schema=False)
def missing_symbol():
    raise HTTPException(status_code=400, detail="Symbol parameter is required")


@app.get("/")
def root() -> Dict[str, str]:
    return {"message": "Stock Dashboard API"}


@app.get("/api/health")
def health_check() -> Dict[str, str]:
    return {"status": "healthy"}


@app.get("/api/companies", response_model=List[CompanyOut])
def get_companies(session: Session = Depends(session_dependency)):
    """List all registered companies ordered by symbol."""
    return [CompanyOut(id=c.id, symbol=c.symbol, name=c.name) for c in list_companies(session)]


@app.get("/api/stocks/{symbol}", response_model=PriceHistoryResponse)
def get_price_history(
    symbol: str,
    range: str = Query("1M", description="1D, 1W, 1M, 6M, 1Y or MAX"),
    session: Session = Depends(session_dependency),
):
    """
    Daily OHLCV bars for a chart range.

    Args:
        symbol: Stock symbol (e.g., 'RELIANCE.NS')
        range: Chart range; unknown values fall back to 1M
    """
    symbol = require_symbol(symbol)
    range_ = normalize_range(range)
    today = dt.date.today()
    try:
        company = get_company(session, symbol)
        df = bars_to_frame(fetch_bars(session, company.id, start=range_start(range_, today)))
        df = slice_timeframe(df, range_, today)
    except SymbolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error in get_price_history: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to fetch stock data")

    data = [
        Bar(t=row.Date, o=row.Open, h=row.High, l=row.Low, c=row.Close, v=int(row.Volume))
        for row in df.itertuples(index=False)
    ]
    return PriceHistoryResponse(symbol=symbol, range=range_, interval="1d", data=data, count=len(data))


@app.get("/api/stats/{symbol}", response_model=StatsResponse)
def get_stats(symbol: str, session: Session = Depends(session_dependency)):
    """52-week high/low and average volume over the last STATS_DAYS days."""
    symbol = require_symbol(symbol)
    start = dt.date.today() - dt.timedelta(days=config.STATS_DAYS)
    try:
        company = get_company(session, symbol)
        df = bars_to_frame(fetch_bars(session, company.id, start=start))
    except SymbolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error in get_stats: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to fetch stock data")

    if df.empty:
        raise HTTPException(status_code=404, detail="No stock data available for calculation")

    stats = summarize(df)
    return StatsResponse(
        symbol=symbol,
        stats=stats,
        data_points=len(df),
        period=f"{start.isoformat()} to {stats.as_of.isoformat()}",
    )


@app.get("/api/predict/{symbol}", response_model=PredictionResult)
def predict(
    symbol: str,
    session: Session = Depends(session_dependency),
    service: PredictionService = Depends(get_prediction_service),
):
    """
    Predict the next trading day's close for a symbol.

    Args:
        symbol: Stock symbol (e.g., 'RELIANCE.NS')

    Returns:
        Point estimate, heuristic confidence band and the indicator snapshot
    """
    symbol = require_symbol(symbol)
    try:
        return service.predict(session, symbol)
    except SymbolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TrainingError as e:
        logger.error(f"Prediction error for {symbol}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate prediction")
    except Exception as e:
        logger.error(f"Error in predict: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to generate prediction")


@app.post("/api/fetch-stock-data", response_model=IngestionResponse)
def fetch_stock_data(request: Request, session: Session = Depends(session_dependency)):
    """
    Pull a real-time quote for every company and store it as today's bar.
    This should be run periodically during market hours.
    """
    try:
        client = get_quote_client(request)
        report = ingest_quotes(session, client)
    except Exception as e:
        logger.error(f"Error in fetch_stock_data: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail=str(e))

    total = len(report.updated) + len(report.failed)
    return IngestionResponse(
        success=True,
        message=f"Updated {len(report.updated)}/{total} stocks with real-time data",
        updated=len(report.updated),
        failed=len(report.failed),
        failed_stocks=report.failed,
        timestamp=dt.datetime.now(dt.timezone.utc),
    )


if __name__ == "__main__":
    # Use reload=False when deploying or running in production
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
