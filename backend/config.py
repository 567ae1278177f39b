# ----------------------------------
# Service Configuration
# ----------------------------------
# Settings are read once from the environment at import time.
# Every value has a default suitable for local development.

import os
from typing import List, Optional


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _get_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/stock_dashboard.db")
DATABASE_ECHO = _get_bool("DATABASE_ECHO")

# HTTP
CORS_ORIGINS = _get_list("CORS_ORIGINS", "http://localhost:5173")  # Vite default port

# Prediction pipeline
PREDICTION_CACHE_TTL_SECONDS = float(os.getenv("PREDICTION_CACHE_TTL_SECONDS", 15 * 60))
HISTORY_DAYS = int(os.getenv("HISTORY_DAYS", 730))  # ~2 years of daily bars
MIN_HISTORY_BARS = 50
MIN_TRAINING_ROWS = 20
INFERENCE_WINDOW = 30  # Trailing sessions used to build today's feature vector

# Training hyperparameters
EPOCHS = int(os.getenv("EPOCHS", 100))
BATCH_SIZE = int(os.getenv("BATCH_SIZE", 32))
LEARNING_RATE = float(os.getenv("LEARNING_RATE", 0.001))
VALIDATION_SPLIT = float(os.getenv("VALIDATION_SPLIT", 0.2))
DROPOUT_RATE = float(os.getenv("DROPOUT_RATE", 0.2))
PREDICTION_SEED = _get_optional_int("PREDICTION_SEED")

# Summary statistics
STATS_DAYS = int(os.getenv("STATS_DAYS", 365))

# Real-time quotes
FINNHUB_API_KEY = os.getenv("FINNHUB_API_KEY", "")
FINNHUB_BASE_URL = os.getenv("FINNHUB_BASE_URL", "https://finnhub.io/api/v1")
QUOTE_MIN_INTERVAL_SECONDS = float(os.getenv("QUOTE_MIN_INTERVAL_SECONDS", 1.0))
QUOTE_TIMEOUT_SECONDS = float(os.getenv("QUOTE_TIMEOUT_SECONDS", 10.0))

# Default company universe
DEFAULT_COMPANIES = [
    ("RELIANCE.NS", "Reliance Industries"),
    ("TCS.NS", "Tata Consultancy Services"),
    ("INFY.NS", "Infosys"),
    ("HDFCBANK.NS", "HDFC Bank"),
    ("ICICIBANK.NS", "ICICI Bank"),
    ("SBIN.NS", "State Bank of India"),
    ("LT.NS", "Larsen & Toubro"),
    ("ITC.NS", "ITC"),
    ("HINDUNILVR.NS", "Hindustan Unilever"),
    ("ASIANPAINT.NS", "Asian Paints"),
]
