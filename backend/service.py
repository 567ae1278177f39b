# ----------------------------------
# Prediction Service
# ----------------------------------
# Request pipeline for next-day predictions:
# cache -> load history -> build features -> train -> predict -> cache.

import datetime as dt
import logging
from typing import Callable, Optional

from sqlmodel import Session

import config
from cache import PredictionCache
from data_loader import load_price_frame
from features import prepare_features
from model import predict_next_day, train_model
from models import PredictionResult

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when there is not enough history to train a model."""


class PredictionService:
    """
    Owns the prediction cache and the training settings for one process.
    Each cache miss trains a fresh model; nothing but the result is kept.
    """

    def __init__(
        self,
        cache: Optional[PredictionCache] = None,
        history_days: int = config.HISTORY_DAYS,
        epochs: int = config.EPOCHS,
        seed: Optional[int] = config.PREDICTION_SEED,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self.cache = cache if cache is not None else PredictionCache()
        self.history_days = history_days
        self.epochs = epochs
        self.seed = seed
        self._today = today

    def predict(self, session: Session, symbol: str) -> PredictionResult:
        """
        Next-day prediction for ``symbol``, served from cache when fresh.
        Raises:
            SymbolNotFoundError: unknown symbol
            InsufficientDataError: fewer than 50 bars or 20 training rows
            TrainingError: the network failed to train or predict
        """
        cached = self.cache.get(symbol)
        if cached is not None:
            logger.info(f"Returning cached prediction for {symbol}")
            return cached

        df = load_price_frame(session, symbol, self.history_days, today=self._today())
        if len(df) < config.MIN_HISTORY_BARS:
            raise InsufficientDataError("Insufficient historical data for prediction")

        logger.info(f"Training model for {symbol} with {len(df)} data points")
        features, targets = prepare_features(df)
        if len(features) < config.MIN_TRAINING_ROWS:
            raise InsufficientDataError("Insufficient data for reliable prediction")

        trained = train_model(features, targets, epochs=self.epochs, seed=self.seed)
        result = predict_next_day(symbol, trained, df, window=config.INFERENCE_WINDOW)

        self.cache.put(symbol, result)
        logger.info(
            f"Prediction for {symbol}: {result.predicted_close} "
            f"(confidence: {result.confidence}%)"
        )
        return result
