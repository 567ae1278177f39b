"""Shared fixtures: a throwaway SQLite database, seeded companies and an API client."""

import os
import tempfile

# Point the engine at a temporary database before any backend module is imported
_DB_DIR = tempfile.mkdtemp(prefix="stock-dashboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from cache import PredictionCache
from data_loader import get_or_create_company, save_stock_data
from database import create_db_and_tables, engine
from main import app
from seed import generate_ohlcv
from service import PredictionService

TEST_SYMBOL = "TEST.NS"


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(engine)
    create_db_and_tables()
    with Session(engine) as session:
        yield session


@pytest.fixture
def price_frame():
    return generate_ohlcv(TEST_SYMBOL, days=120, end=dt.date.today(), seed=7)


@pytest.fixture
def company(session, price_frame):
    company = get_or_create_company(session, TEST_SYMBOL, "Test Company")
    save_stock_data(session, company.id, price_frame)
    return company


@pytest.fixture
def prediction_service():
    return PredictionService(cache=PredictionCache(), epochs=3, seed=42)


@pytest.fixture
def client(session, prediction_service):
    app.state.prediction_service = prediction_service
    with TestClient(app) as client:
        yield client
    if hasattr(app.state, "quote_client"):
        del app.state.quote_client
