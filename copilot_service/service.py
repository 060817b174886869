"""
service.py – the co-pilot as the outside world sees it
------------------------------------------------------
`CoPilot` owns one SessionStore, one TradeFeedCache, the Advisor loop and
the EntryPlanner. Collaborators are passed in; `build_copilot()` wires the
production ones (Binance REST, EMA trend oracle, Redis advice channel).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from market_data.models import Trade
from shared.config import ADVICE_CHANNEL
from shared.logging import get_logger
from shared.redis_client import publish

from .advisor import Advisor
from .entry_planner import EntryPlan, EntryPlanner
from .sessions import SessionStore, TradeSession
from .trade_feed import TradeFeedCache

log = get_logger("copilot.service")


class CoPilot:
    def __init__(self, store: SessionStore, feed: TradeFeedCache,
                 advisor: Advisor, planner: EntryPlanner) -> None:
        self.store   = store
        self.feed    = feed
        self.advisor = advisor
        self.planner = planner

    # ───── session control ─────────────────────────────────────────
    def start_session(self, owner: str, symbol: str, side: str, entry_price: float) -> str:
        return self.store.start(owner, symbol, side, entry_price)

    def stop_session(self, session_id: str) -> bool:
        return self.store.stop(session_id)

    def get_snapshot(self, session_id: str) -> TradeSession:
        return self.store.require(session_id)

    def list_sessions(self, owner: Optional[str] = None) -> List[TradeSession]:
        return self.store.sessions(owner)

    def plan_entry(self, symbol: str, side: str) -> EntryPlan:
        return self.planner.plan(symbol, side)

    def wall_advice(self, symbol: str, side: str, entry_price: float) -> str:
        return self.planner.wall_advice(symbol, side, entry_price)

    # ───── ingestion ───────────────────────────────────────────────
    def on_trade(self, trade: Trade) -> bool:
        return self.feed.ingest(trade)

    # ───── lifecycle ───────────────────────────────────────────────
    def start(self) -> None:
        self.advisor.start()

    def stop(self) -> None:
        self.advisor.stop()

    def status(self) -> Dict[str, Any]:
        return {
            "sessions": len(self.store),
            "whales_cached": len(self.feed),
            "advisor_running": self.advisor.running,
            "ticks": self.advisor.ticks,
            "last_tick_at": self.advisor.last_tick_at,
        }


def build_copilot() -> CoPilot:
    from market_data.binance_client import BinanceClient
    from market_data.trend import TrendOracle

    client  = BinanceClient()
    store   = SessionStore()
    feed    = TradeFeedCache()
    advisor = Advisor(
        store, feed, client, TrendOracle(client.closes),
        publisher=lambda event: publish(ADVICE_CHANNEL, event),
    )
    return CoPilot(store, feed, advisor, EntryPlanner(client))
