"""HTTP tests for the dashboard API using FastAPI's TestClient."""

import datetime as dt
from concurrent.futures import ThreadPoolExecutor

import pytest

import service as service_module
from data_loader import get_or_create_company, save_stock_data
from main import app
from model import TrainingError
from quotes import Quote, QuoteError
from seed import generate_ohlcv
from stats import round_price

from conftest import TEST_SYMBOL

PREDICTION_FIELDS = {
    "symbol": str,
    "predictionDate": str,
    "predictedClose": (int, float),
    "lower": (int, float),
    "upper": (int, float),
    "model": str,
    "confidence": (int, float),
    "features": dict,
}


def assert_prediction_schema(data):
    for field, kind in PREDICTION_FIELDS.items():
        assert isinstance(data[field], kind), field
    assert set(data["features"]) == {"lastClose", "sma5", "sma20", "rsi14", "volatility"}
    dt.date.fromisoformat(data["predictionDate"])


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}


def test_companies(client, company):
    resp = client.get("/api/companies")
    assert resp.status_code == 200
    assert resp.json() == [{"id": company.id, "symbol": TEST_SYMBOL, "name": "Test Company"}]


def test_price_history_ranges(client, company, price_frame):
    resp = client.get(f"/api/stocks/{TEST_SYMBOL}", params={"range": "1D"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["range"] == "1D"
    assert body["interval"] == "1d"
    assert body["count"] == 1
    last = price_frame.iloc[-1]
    assert body["data"][0] == {
        "t": last["Date"].isoformat(),
        "o": last["Open"],
        "h": last["High"],
        "l": last["Low"],
        "c": last["Close"],
        "v": int(last["Volume"]),
    }

    body = client.get(f"/api/stocks/{TEST_SYMBOL}", params={"range": "MAX"}).json()
    assert body["count"] == len(price_frame)

    body = client.get(f"/api/stocks/{TEST_SYMBOL}", params={"range": "weird"}).json()
    assert body["range"] == "1M"
    dates = [row["t"] for row in body["data"]]
    assert dates == sorted(dates)


def test_price_history_unknown_symbol(client, session):
    assert client.get("/api/stocks/NOPE").status_code == 404


def test_stats(client, company, price_frame):
    resp = client.get(f"/api/stats/{TEST_SYMBOL}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["symbol"] == TEST_SYMBOL
    assert body["dataPoints"] == len(price_frame)
    stats = body["stats"]
    assert stats["fiftyTwoWeekHigh"] == round_price(price_frame["High"].max())
    assert stats["fiftyTwoWeekLow"] == round_price(price_frame["Low"].min())
    assert stats["asOf"] == price_frame["Date"].iloc[-1].isoformat()


def test_stats_without_bars(client, session):
    get_or_create_company(session, "EMPTY.NS")
    assert client.get("/api/stats/EMPTY.NS").status_code == 404
    assert client.get("/api/stats/NOPE").status_code == 404


def test_predict_success(client, company):
    resp = client.get(f"/api/predict/{TEST_SYMBOL}")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert_prediction_schema(data)
    assert data["symbol"] == TEST_SYMBOL
    assert data["model"] == "neural_network_regression"
    assert 0 <= data["confidence"] <= 100
    assert data["lower"] <= data["predictedClose"] <= data["upper"]


def test_predict_unknown_symbol(client, session):
    resp = client.get("/api/predict/NOPE")
    assert resp.status_code == 404
    assert "NOPE" in resp.json()["detail"]


def test_predict_blank_symbol(client, session):
    resp = client.get("/api/predict/%20")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Symbol parameter is required"


@pytest.mark.parametrize("path", [
    "/api/predict/", "/api/predict",
    "/api/stats/", "/api/stats",
    "/api/stocks/", "/api/stocks",
])
def test_missing_symbol_returns_400(client, session, path):
    resp = client.get(path)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Symbol parameter is required"


def test_predict_insufficient_history(client, session):
    company = get_or_create_company(session, "SHORT.NS")
    save_stock_data(session, company.id, generate_ohlcv("SHORT.NS", days=30, seed=3))
    resp = client.get("/api/predict/SHORT.NS")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient historical data for prediction"


def test_predict_training_failure(client, company, monkeypatch):
    def fail(*args, **kwargs):
        raise TrainingError("diverged")

    monkeypatch.setattr(service_module, "train_model", fail)
    resp = client.get(f"/api/predict/{TEST_SYMBOL}")
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to generate prediction"


class StubTrainedModel:
    rmse = 2.0

    def predict(self, features):
        return features[0] + 1.0


def test_concurrent_predictions_are_each_valid(client, company, monkeypatch):
    monkeypatch.setattr(service_module, "train_model", lambda *args, **kwargs: StubTrainedModel())
    with ThreadPoolExecutor(max_workers=2) as pool:
        responses = list(pool.map(lambda _: client.get(f"/api/predict/{TEST_SYMBOL}"), range(2)))

    for resp in responses:
        assert resp.status_code == 200, resp.text
        assert_prediction_schema(resp.json())
    cached = app.state.prediction_service.cache.get(TEST_SYMBOL)
    assert cached is not None
    assert cached.symbol == TEST_SYMBOL


class StubQuoteClient:
    def __init__(self, prices):
        self.prices = prices

    def get_quote(self, symbol):
        price = self.prices.get(symbol)
        if price is None:
            raise QuoteError(f"No current price for {symbol}")
        return Quote(symbol=symbol, current=price, high=price, low=price, open=price,
                     previous_close=price, timestamp=0, change_percent=0.0)


def test_fetch_stock_data(client, company, session):
    get_or_create_company(session, "MISSING.NS")
    app.state.quote_client = StubQuoteClient({TEST_SYMBOL: 123.45})

    resp = client.post("/api/fetch-stock-data")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["updated"] == 1
    assert body["failed"] == 1
    assert body["failedStocks"] == ["MISSING.NS"]

    bars = client.get(f"/api/stocks/{TEST_SYMBOL}", params={"range": "1D"}).json()["data"]
    assert bars[0]["t"] == dt.date.today().isoformat()
    assert bars[0]["c"] == 123.45
