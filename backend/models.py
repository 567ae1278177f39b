# ----------------------------------
# Database Models and API Schemas
# ----------------------------------
# This module defines:
# - SQL tables for companies and their daily price bars
# - Typed response records returned by the API

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Company(SQLModel, table=True):
    """
    Database model for a listed company.
    Fields:
    - id: Primary key
    - symbol: Stock ticker symbol (unique)
    - name: Display name
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    symbol: str = Field(index=True, unique=True)
    name: str
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


class StockData(SQLModel, table=True):
    """
    Database model for one trading session of a company.
    Fields:
    - id: Primary key
    - company_id: Owning company
    - date: Trading date (one row per company and date)
    - open/high/low/close: Price data
    - volume: Trading volume
    - created_at: Record creation timestamp
    """
    __table_args__ = (UniqueConstraint("company_id", "date", name="uq_stock_data_company_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    date: dt.date = Field(index=True)
    open: float
    high: float
    low: float
    close: float
    volume: int
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


class CamelModel(BaseModel):
    """Immutable record serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class PredictionFeatures(CamelModel):
    last_close: float
    sma5: float
    sma20: float
    rsi14: float
    volatility: float


class PredictionResult(CamelModel):
    symbol: str
    prediction_date: dt.date
    predicted_close: float
    lower: float
    upper: float
    model: str
    confidence: float  # [0, 100]
    features: PredictionFeatures


class CompanyOut(CamelModel):
    id: int
    symbol: str
    name: str


class Bar(BaseModel):
    t: dt.date
    o: float
    h: float
    l: float  # noqa: E741
    c: float
    v: int


class PriceHistoryResponse(CamelModel):
    symbol: str
    range: str
    interval: str
    data: List[Bar]
    count: int


class StockStats(CamelModel):
    fifty_two_week_high: float
    fifty_two_week_low: float
    average_volume: int
    as_of: dt.date


class StatsResponse(CamelModel):
    symbol: str
    stats: StockStats
    data_points: int
    period: str


class IngestionResponse(CamelModel):
    success: bool
    message: str
    updated: int
    failed: int
    failed_stocks: List[str]
    timestamp: dt.datetime
