"""
advisor.py – the per-second co-pilot evaluation loop
====================================================

Every ADVISOR_INTERVAL_SEC, for every session:

1. resolve the current price (fresh cached whale print, else live quote;
   nothing → skip this session this tick)
2. PnL from entry and side
3. opposing-whale hysteresis (quiet → pressure-building → confirmed-exit)
4. pick the advice – first match wins:

     confirmed whale exit  > hard stop (-0.5 %) > take profit (+0.5 %)
     > thin liquidity      > trend flip         > profit lock (+0.2 %)
     > fee saver           > pressure building  > neutral

5. write advice, reason, PnL and hysteresis state back in one swap.

Adapters are called with no lock held; the store lock is only taken for
the final write-back. A failing session or adapter is logged and the tick
moves on to the next session.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from market_data.models import Trade, Trend
from shared.config import (
    ADVISOR_INTERVAL_SEC, LARGE_TRADE_USD, WHALE_CONFIRM_SEC, WHALE_WINDOW_SEC,
)
from shared.constants import LONG, Advice, Pressure
from shared.errors import Unavailable
from shared.logging import get_logger
from shared.redis_client import heartbeat

from . import rules as R
from .sessions import SessionStore, TradeSession
from .trade_feed import TradeFeedCache

log = get_logger("copilot.advisor")

SERVICE = "copilot_advisor"


@dataclass(frozen=True)
class Evaluation:
    advice: Advice
    reason: str
    pnl_pct: float
    pressure: Pressure
    pressure_started_at: Optional[float]


class Advisor:
    """
    `market` needs `latest_price(symbol)` and `depth(symbol, levels)`;
    `trend` needs `short_term_trend(symbol)`. `publisher` receives the
    session dict whenever its advice label changes.
    """

    def __init__(self,
                 store: SessionStore,
                 feed: TradeFeedCache,
                 market: Any,
                 trend: Any,
                 *,
                 interval: float = ADVISOR_INTERVAL_SEC,
                 large_trade_usd: float = LARGE_TRADE_USD,
                 whale_window_sec: float = WHALE_WINDOW_SEC,
                 whale_confirm_sec: float = WHALE_CONFIRM_SEC,
                 publisher: Optional[Callable[[Dict[str, Any]], None]] = None,
                 heartbeat_fn: Optional[Callable[[str], None]] = heartbeat,
                 clock: Callable[[], float] = time.time) -> None:
        self.store   = store
        self.feed    = feed
        self.market  = market
        self.trend   = trend
        self.interval = interval
        self.large_trade_usd   = large_trade_usd
        self.whale_window_sec  = whale_window_sec
        self.whale_confirm_sec = whale_confirm_sec
        self.publisher    = publisher
        self.heartbeat_fn = heartbeat_fn
        self.clock = clock

        self.ticks = 0
        self.last_tick_at: Optional[float] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stale_warned: Dict[str, int] = {}      # session id → print ts

    # ───── inputs ───────────────────────────────────────────────────
    def resolve_price(self, s: TradeSession, whale: Optional[Trade],
                      now: Optional[float] = None) -> Optional[float]:
        # a print newer than the session wins over the quote for as long as
        # it stays cached, so an old one can mask the live price
        if whale is not None and whale.timestamp > s.created_at * 1000:
            now = self.clock() if now is None else now
            if now - whale.timestamp / 1000 >= self.whale_window_sec:
                if self._stale_warned.get(s.id) != whale.timestamp:
                    self._stale_warned[s.id] = whale.timestamp
                    log.warning("%s pricing from a %.0f s old print at %s",
                                s.id, now - whale.timestamp / 1000, whale.price)
            return whale.price
        try:
            return self.market.latest_price(s.symbol)
        except Unavailable as exc:
            log.warning("%s no price this tick – %s", s.id, exc)
            return None

    def _trend_against(self, s: TradeSession) -> bool:
        try:
            t = self.trend.short_term_trend(s.symbol)
        except Unavailable as exc:
            log.warning("%s trend unavailable – %s", s.symbol, exc)
            return False
        return t == (Trend.BEARISH if s.side == LONG else Trend.BULLISH)

    def _liquidity_thin(self, s: TradeSession) -> bool:
        try:
            depth = self.market.depth(s.symbol, R.DEPTH_LEVELS)
        except Unavailable as exc:
            log.warning("%s depth unavailable – %s", s.symbol, exc)
            return False        # assume safe when the book is unknown
        return R.liquidity_thin(s.side, depth)

    # ───── one session ──────────────────────────────────────────────
    def evaluate(self, s: TradeSession, now: float) -> Optional[Evaluation]:
        """Compute the next state of `s`; None when no price is available."""
        whale = self.feed.lookup(s.symbol)
        price = self.resolve_price(s, whale, now)
        if price is None:
            return None

        pnl = R.pnl_pct(s.side, s.entry_price, price)
        opposing = R.is_opposing(s.side, whale, now,
                                 self.large_trade_usd, self.whale_window_sec)
        pressure, started = R.step_pressure(s.pressure, s.pressure_started_at,
                                            opposing, now, self.whale_confirm_sec)
        advice, reason = self._decide(s, now, pnl, pressure, started, whale)
        return Evaluation(advice, reason, pnl, pressure, started)

    def _decide(self, s: TradeSession, now: float, pnl: float,
                pressure: Pressure, started: Optional[float],
                whale: Optional[Trade]) -> Tuple[Advice, str]:
        flow = "selling" if s.side == LONG else "buying"

        if pressure == Pressure.CONFIRMED:
            move = "dump" if s.side == LONG else "pump"
            return (Advice.EXIT,
                    f"Whale {move} confirmed (${whale.notional / 1e6:.1f}M). Exit now.")
        if pnl < R.HARD_STOP_PNL:
            return Advice.EXIT, f"Stop hit ({R.HARD_STOP_PNL:+.1f}%)."
        if pnl > R.TAKE_PROFIT_PNL:
            return Advice.TRIM, f"Target reached ({R.TAKE_PROFIT_PNL:+.1f}%). Take profit."
        if pnl < R.LIQUIDITY_CHECK_PNL and self._liquidity_thin(s):
            wall = "Support" if s.side == LONG else "Resistance"
            return Advice.HIGH_RISK, f"{wall} is thin. High risk of further move against you."
        if self._trend_against(s):
            return Advice.WARN, "Short-term momentum lost. Exit suggested."
        if pnl > R.PROFIT_LOCK_PNL:
            return Advice.TRIM, "Lock profit: move stop to entry."
        if now - s.created_at < R.FEE_SAVER_AGE_SEC and pnl > R.FEE_SAVER_PNL:
            return Advice.WARN, "Price escaping. Move the resting order closer to market."
        if pressure == Pressure.BUILDING:
            if s.pressure == Pressure.QUIET:
                return Advice.WARN, f"Measuring {flow} pressure... standby."
            left = max(0, int(self.whale_confirm_sec - (now - started)))
            return Advice.WARN, f"{flow.capitalize()} pressure detected... hold ({left}s)."
        return Advice.NEUTRAL, "Market ranging, volume balanced."

    # ───── one tick ─────────────────────────────────────────────────
    def evaluate_once(self, now: Optional[float] = None) -> int:
        """Evaluate every session once; returns how many were updated."""
        now = self.clock() if now is None else now
        updated = 0
        for s in self.store.sessions():
            try:
                ev = self.evaluate(s, now)
                if ev is None:
                    continue
                res = self.store.apply(
                    s.id,
                    advice=ev.advice,
                    reason=ev.reason,
                    pnl_pct=ev.pnl_pct,
                    pressure=ev.pressure,
                    pressure_started_at=ev.pressure_started_at,
                    updated_at=now,
                )
            except Exception:                                # noqa: BLE001
                log.exception("%s evaluation failed", s.id)
                continue
            if res is None:
                continue                                     # stopped meanwhile
            updated += 1
            before, after = res
            log.debug("%s %s | PnL %+.2f%% | %s",
                      after.symbol, after.advice.value, after.pnl_pct, after.reason)
            if before.advice != after.advice:
                log.info("%s advice %s → %s (%s)", after.id,
                         before.advice.value, after.advice.value, after.reason)
                self._emit(after)

        self.ticks += 1
        self.last_tick_at = now
        return updated

    def _emit(self, s: TradeSession) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher({"event": "advice-changed", **s.to_dict()})
        except Exception:                                    # noqa: BLE001
            log.exception("advice publish failed for %s", s.id)

    # ───── loop ─────────────────────────────────────────────────────
    def run(self) -> None:
        log.info("advisor up – every %.1f s", self.interval)
        while not self._stop.is_set():
            t0 = time.monotonic()
            try:
                self.evaluate_once()
            except Exception:                                # noqa: BLE001
                log.exception("advisor tick failed")
            if self.heartbeat_fn is not None:
                self.heartbeat_fn(SERVICE)
            self._stop.wait(max(0.0, self.interval - (time.monotonic() - t0)))
        log.info("advisor stopped after %d ticks", self.ticks)

    def start(self) -> bool:
        """Launch the loop thread; False while an earlier loop is still alive."""
        if self._thread is not None and self._thread.is_alive():
            if self._stop.is_set():
                log.warning("advisor still finishing its last tick – not restarted")
            return False
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="copilot-advisor", daemon=True)
        self._thread.start()
        return True

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop and wait for the current tick to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                log.warning("advisor did not stop within %.1f s", timeout)
            else:
                self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
