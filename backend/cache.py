# ----------------------------------
# Prediction Cache
# ----------------------------------
# Process-local memo of the latest prediction per symbol.
# Entries older than the TTL are reported as misses and replaced on refresh.

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import config
from models import PredictionResult


@dataclass(frozen=True)
class CacheEntry:
    result: PredictionResult
    created_at: float


class PredictionCache:
    """
    Symbol -> PredictionResult map with a fixed time-to-live.

    ``clock`` returns seconds and defaults to ``time.monotonic``; tests pass
    their own to move time forward. Concurrent writers for the same symbol
    are last-write-wins.
    """

    def __init__(
        self,
        ttl_seconds: float = config.PREDICTION_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, symbol: str) -> Optional[PredictionResult]:
        entry = self._entries.get(symbol)
        if entry is None:
            return None
        if self._clock() - entry.created_at >= self.ttl_seconds:
            return None
        return entry.result

    def put(self, symbol: str, result: PredictionResult) -> None:
        self._entries[symbol] = CacheEntry(result=result, created_at=self._clock())

    def __len__(self) -> int:
        return len(self._entries)
