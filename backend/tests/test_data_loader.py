"""Tests for company and bar persistence."""

import datetime as dt

from sqlmodel import select

from data_loader import fetch_bars, get_or_create_company, save_stock_data
from models import Company, StockData
from seed import generate_ohlcv


def test_new_rows_carry_timezone_aware_timestamps():
    company = Company(symbol="TCS.NS", name="Tata Consultancy Services")
    bar = StockData(company_id=1, date=dt.date(2024, 1, 2), open=1.0, high=1.0, low=1.0, close=1.0, volume=0)
    assert company.created_at.tzinfo is not None
    assert bar.created_at.tzinfo is not None
    assert company.created_at.utcoffset() == dt.timedelta(0)


def test_get_or_create_company_inserts_once(session):
    first = get_or_create_company(session, "TCS.NS", "Tata Consultancy Services")
    second = get_or_create_company(session, "TCS.NS", "Ignored")
    assert first.id is not None
    assert second.id == first.id
    assert second.name == "Tata Consultancy Services"
    assert len(session.exec(select(Company)).all()) == 1


def test_save_stock_data_upserts_by_date(session):
    company = get_or_create_company(session, "TCS.NS")
    df = generate_ohlcv("TCS.NS", days=10, end=dt.date(2024, 6, 14), seed=5)

    assert save_stock_data(session, company.id, df) == 10
    assert save_stock_data(session, company.id, df.tail(3).assign(Close=999.0)) == 3

    bars = fetch_bars(session, company.id)
    assert len(bars) == 10
    assert [bar.close for bar in bars[-3:]] == [999.0, 999.0, 999.0]
    assert len(session.exec(select(StockData)).all()) == 10
