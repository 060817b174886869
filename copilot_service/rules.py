"""
rules.py  – reusable helpers for the co-pilot advisor & planner
===============================================================
Pure-function utilities only; no Redis, no HTTP, no locks.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from market_data.models import DepthSnapshot, Trade
from shared.constants import LONG, SIDES, TRADE_BUY, TRADE_SELL, Pressure
from shared.errors import InvalidInput

# --- PnL thresholds (percent) ----------------------------------------
LIQUIDITY_CHECK_PNL = -0.3
HARD_STOP_PNL       = -0.5
TAKE_PROFIT_PNL     = 0.5
PROFIT_LOCK_PNL     = 0.2
FEE_SAVER_PNL       = 0.1
FEE_SAVER_AGE_SEC   = 60

# --- order book ------------------------------------------------------
DEPTH_LEVELS       = 20
WALL_ADVICE_LEVELS = 10
THIN_RATIO         = 0.5      # own side < half of the other side → thin

# --- entry planning (fractions of price) -----------------------------
MAKER_OFFSET      = 0.0001
BASE_STOP         = 0.0015
BASE_TARGET       = 0.003
WALL_RANGE        = 0.01
WALL_ADVICE_RANGE = 0.002


def normalize_side(side: str) -> str:
    s = (side or "").strip().upper()
    if s not in SIDES:
        raise InvalidInput(f"side must be LONG or SHORT, got {side!r}")
    return s


def pnl_pct(side: str, entry: float, current: float) -> float:
    if side == LONG:
        return (current - entry) / entry * 100
    return (entry - current) / entry * 100


def threat_side(side: str) -> str:
    """Trade side that works against a position: sells hurt longs."""
    return TRADE_SELL if side == LONG else TRADE_BUY


def is_opposing(side: str, trade: Optional[Trade], now: float,
                threshold: float, window_sec: float) -> bool:
    """
    A cached large print threatens the position: opposite side, notional
    above `threshold`, printed less than `window_sec` ago (`now` in epoch s).
    """
    if trade is None:
        return False
    age = now - trade.timestamp / 1000.0
    return (trade.side == threat_side(side)
            and trade.notional > threshold
            and age < window_sec)


def step_pressure(state: Pressure, started_at: Optional[float], opposing: bool,
                  now: float, confirm_sec: float) -> Tuple[Pressure, Optional[float]]:
    """
    quiet ──opposing──▶ pressure-building ──opposing > confirm_sec──▶ confirmed-exit
      ▲                         │                                       │
      └───────── not opposing ──┴───────────────────────────────────────┘
    """
    if not opposing:
        return Pressure.QUIET, None
    if state == Pressure.QUIET or started_at is None:
        return Pressure.BUILDING, now
    if now - started_at > confirm_sec:
        return Pressure.CONFIRMED, started_at
    return Pressure.BUILDING, started_at


def book_volumes(depth: DepthSnapshot) -> Tuple[float, float]:
    bid = float(np.sum([lvl.quantity for lvl in depth.bids])) if depth.bids else 0.0
    ask = float(np.sum([lvl.quantity for lvl in depth.asks])) if depth.asks else 0.0
    return bid, ask


def liquidity_thin(side: str, depth: DepthSnapshot) -> bool:
    """
    LONG needs support (bids), SHORT needs resistance (asks). Raw top-N
    quantities, no adjustment for own size or partial fills.
    """
    bid, ask = book_volumes(depth)
    if side == LONG:
        return bid < ask * THIN_RATIO
    return ask < bid * THIN_RATIO


def baseline_levels(side: str, price: float) -> Tuple[float, float, float]:
    """Maker entry just inside the quote, fixed-percentage stop & target."""
    if side == LONG:
        entry = price * (1 - MAKER_OFFSET)
        return entry, entry * (1 - BASE_STOP), entry * (1 + BASE_TARGET)
    entry = price * (1 + MAKER_OFFSET)
    return entry, entry * (1 + BASE_STOP), entry * (1 - BASE_TARGET)


def find_wall(side: str, entry: float, depth: DepthSnapshot,
              threshold: float, max_dist: float = WALL_RANGE) -> Optional[float]:
    """
    First level (best price first) on the protective side of `entry`
    whose notional exceeds `threshold` and that sits within `max_dist`.
    """
    if side == LONG:
        for lvl in depth.bids:
            if lvl.notional > threshold and entry * (1 - max_dist) < lvl.price < entry:
                return lvl.price
        return None
    for lvl in depth.asks:
        if lvl.notional > threshold and entry < lvl.price < entry * (1 + max_dist):
            return lvl.price
    return None
