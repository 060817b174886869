"""
trend.py – short-term trend oracle
==================================
Classifies an instrument as BULLISH / BEARISH from the EMA-9 vs EMA-21
cross of its last 30 one-minute closes. Anything that prevents a clean
read (fetch failure, fewer than 25 candles) is NEUTRAL – the advisor must
never stall on this signal.

Results are memoised per symbol for TREND_TTL_SEC so a busy book of
sessions on the same instrument costs one klines call, not one per
session per tick.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Sequence, Tuple

import numpy as np

from shared.config import TREND_TTL_SEC
from shared.errors import Unavailable
from shared.logging import get_logger
from shared.utils import normalize_symbol

from .models import Trend

log = get_logger("market_data.trend")

FAST, SLOW  = 9, 21
CANDLES     = 30
MIN_CANDLES = 25
SCALP_INTERVAL = "1m"


def ema(prices: Sequence[float], period: int) -> float:
    """Last EMA value, seeded with the SMA of the first `period` prices."""
    arr = np.asarray(prices, dtype=float)
    if len(arr) < period:
        return 0.0
    k = 2.0 / (period + 1)
    value = arr[:period].mean()
    for p in arr[period:]:
        value = p * k + value * (1 - k)
    return float(value)


def classify(closes: Sequence[float]) -> Trend:
    if len(closes) < MIN_CANDLES:
        return Trend.NEUTRAL
    return Trend.BULLISH if ema(closes, FAST) > ema(closes, SLOW) else Trend.BEARISH


class TrendOracle:
    """
    `closes_fn(symbol, interval, limit)` is usually `BinanceClient.closes`.
    """

    def __init__(self,
                 closes_fn: Callable[[str, str, int], Sequence[float]],
                 ttl: float = TREND_TTL_SEC,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._closes = closes_fn
        self._ttl    = ttl
        self._clock  = clock
        self._lock   = threading.Lock()
        self._memo: Dict[str, Tuple[float, Trend]] = {}

    def short_term_trend(self, symbol: str) -> Trend:
        sym = normalize_symbol(symbol)
        now = self._clock()
        with self._lock:
            hit = self._memo.get(sym)
        if hit and now - hit[0] < self._ttl:
            return hit[1]

        try:
            trend = classify(self._closes(sym, SCALP_INTERVAL, CANDLES))
        except Unavailable as exc:
            log.warning("%s klines unavailable – %s", sym, exc)
            return Trend.NEUTRAL

        with self._lock:
            self._memo[sym] = (now, trend)
        return trend
