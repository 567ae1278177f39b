# Stock Price Prediction Model
# Defines the regression network, training and next-day inference

import logging
import math
import traceback
import datetime as dt
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
import tensorflow as tf
from tensorflow.keras.models import Sequential
from tensorflow.keras.layers import Dense, Dropout, Input
from tensorflow.keras.optimizers import Adam
from sklearn.preprocessing import StandardScaler

import config
from features import FEATURE_COLUMNS, add_indicators, feature_row
from models import PredictionFeatures, PredictionResult
from stats import round_price

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
tf.get_logger().setLevel("ERROR")

MODEL_NAME = "neural_network_regression"
CONFIDENCE_MULTIPLIER = 1.5


class TrainingError(Exception):
    """Raised when fitting or evaluating the network fails."""


@dataclass(frozen=True)
class NormalizationStats:
    means: np.ndarray
    stds: np.ndarray

    @classmethod
    def from_scaler(cls, scaler: StandardScaler) -> "NormalizationStats":
        # StandardScaler replaces a zero std with 1
        return cls(means=scaler.mean_.copy(), stds=scaler.scale_.copy())

    def apply(self, features: np.ndarray) -> np.ndarray:
        return (np.asarray(features, dtype=float) - self.means) / self.stds


@dataclass
class TrainedModel:
    network: tf.keras.Model
    rmse: float
    stats: NormalizationStats

    def predict(self, features) -> float:
        """Forward pass for one raw (unnormalized) feature vector."""
        x = self.stats.apply(np.asarray(features, dtype=float).reshape(1, -1))
        return float(self.network(x, training=False).numpy()[0, 0])


def create_model(
    input_dim: int = len(FEATURE_COLUMNS),
    learning_rate: float = config.LEARNING_RATE,
    dropout_rate: float = config.DROPOUT_RATE,
) -> Sequential:
    """
    Build the feed-forward regression network:
    9 inputs -> Dense(16, relu) -> Dropout -> Dense(8, relu) -> Dense(1, linear).
    """
    model = Sequential([
        Input(shape=(input_dim,)),
        Dense(16, activation="relu"),
        Dropout(dropout_rate),
        Dense(8, activation="relu"),
        Dense(1, activation="linear"),
    ])

    model.compile(
        optimizer=Adam(learning_rate=learning_rate),
        loss="mean_squared_error",
        metrics=["mae"],
    )
    return model


def train_model(
    features: np.ndarray,
    targets: np.ndarray,
    epochs: int = config.EPOCHS,
    batch_size: int = config.BATCH_SIZE,
    learning_rate: float = config.LEARNING_RATE,
    validation_split: float = config.VALIDATION_SPLIT,
    seed: Optional[int] = config.PREDICTION_SEED,
) -> TrainedModel:
    """
    Fit a fresh network on one symbol's training set.
    Args:
        features: Raw feature matrix, one row per training day
        targets: Next-day closes aligned with ``features``
        seed: Fixes weight initialization and shuffling when given
    Returns:
        TrainedModel holding the network, its RMSE over the full training
        set and the normalization statistics used for its inputs
    """
    try:
        features = np.asarray(features, dtype=float)
        targets = np.asarray(targets, dtype=float).reshape(-1, 1)

        if seed is not None:
            tf.keras.utils.set_random_seed(seed)

        scaler = StandardScaler()
        normalized = scaler.fit_transform(features)
        stats = NormalizationStats.from_scaler(scaler)

        model = create_model(input_dim=features.shape[1], learning_rate=learning_rate)
        logger.info(f"Training network on {features.shape[0]} samples for {epochs} epochs")
        model.fit(
            normalized,
            targets,
            epochs=epochs,
            batch_size=batch_size,
            validation_split=validation_split,
            shuffle=True,
            verbose=0,
        )

        predictions = model.predict(normalized, verbose=0)
        rmse = float(np.sqrt(np.mean((targets - predictions) ** 2)))
        if not math.isfinite(rmse):
            raise ValueError(f"Training produced a non-finite RMSE ({rmse})")

        return TrainedModel(network=model, rmse=rmse, stats=stats)

    except Exception as e:
        logger.error(f"Error in train_model: {e}")
        logger.error(traceback.format_exc())
        raise TrainingError(str(e)) from e


def next_trading_day(day: dt.date) -> dt.date:
    """The first weekday strictly after ``day`` (no holiday calendar)."""
    next_day = day + dt.timedelta(days=1)
    while next_day.weekday() >= 5:  # Saturday, Sunday
        next_day += dt.timedelta(days=1)
    return next_day


def confidence_band(predicted_close: float, rmse: float):
    """Heuristic band of +/- 1.5 RMSE around the point estimate."""
    return (
        predicted_close - CONFIDENCE_MULTIPLIER * rmse,
        predicted_close + CONFIDENCE_MULTIPLIER * rmse,
    )


def confidence_score(predicted_close: float, rmse: float) -> float:
    """
    100 minus RMSE as a percentage of the estimate, clamped to [0, 100].
    A non-positive estimate scores 0 on purpose; the plain formula would give 100.
    """
    if predicted_close <= 0:
        return 0.0
    return max(0.0, min(100.0, 100.0 - (rmse / predicted_close * 100.0)))


def predict_next_day(
    symbol: str,
    trained: TrainedModel,
    df: pd.DataFrame,
    window: int = config.INFERENCE_WINDOW,
) -> PredictionResult:
    """
    Predict the next session's close from the latest bars.

    Indicators are recomputed over the trailing ``window`` bars only, then the
    latest bar's feature vector is normalized with the training statistics.

    Args:
        symbol: Stock ticker symbol
        trained: Model returned by ``train_model``
        df: Date-ordered OHLCV frame with a Date column
        window: Number of trailing sessions used for the indicators
    """
    try:
        latest = add_indicators(df.tail(window))
        last_index = len(latest) - 1
        current = feature_row(latest, last_index)

        predicted_close = trained.predict(current)
        if not math.isfinite(predicted_close):
            raise ValueError(f"Network produced a non-finite prediction ({predicted_close})")
    except Exception as e:
        logger.error(f"Error in predict_next_day: {e}")
        logger.error(traceback.format_exc())
        raise TrainingError(str(e)) from e

    lower, upper = confidence_band(predicted_close, trained.rmse)
    last_date = pd.Timestamp(latest.loc[last_index, "Date"]).date()

    return PredictionResult(
        symbol=symbol,
        prediction_date=next_trading_day(last_date),
        predicted_close=round_price(predicted_close),
        lower=round_price(lower),
        upper=round_price(upper),
        model=MODEL_NAME,
        confidence=round_price(confidence_score(predicted_close, trained.rmse)),
        features=PredictionFeatures(
            last_close=round_price(float(latest.loc[last_index, "Close"])),
            sma5=round_price(float(latest.loc[last_index, "SMA5"])),
            sma20=round_price(float(latest.loc[last_index, "SMA20"])),
            rsi14=round_price(float(latest.loc[last_index, "RSI14"])),
            volatility=round_price(float(latest.loc[last_index, "Volatility"]), 4),
        ),
    )
