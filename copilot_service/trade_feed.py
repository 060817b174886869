"""
trade_feed.py – most recent qualifying (large) trade per instrument
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, Optional

from market_data.models import Trade
from shared.config import LARGE_TRADE_USD
from shared.logging import get_logger
from shared.utils import normalize_symbol

log = get_logger("copilot.trade_feed")


class TradeFeedCache:
    """
    Holds one trade per symbol – a newer qualifying print overwrites the
    older one, nothing is queued and nothing expires here. Consumers judge
    staleness from `Trade.timestamp`.
    """

    def __init__(self, threshold: float = LARGE_TRADE_USD) -> None:
        self.threshold = threshold
        self._lock = threading.Lock()
        self._latest: Dict[str, Trade] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._latest)

    def ingest(self, trade: Trade) -> bool:
        """Store `trade` if its notional is above the threshold."""
        if trade.notional <= self.threshold:
            return False
        sym = normalize_symbol(trade.symbol)
        if sym != trade.symbol:
            trade = replace(trade, symbol=sym)
        with self._lock:
            self._latest[sym] = trade
        log.debug("%s whale %s $%.0f @ %.8g (%s)",
                  sym, trade.side, trade.notional, trade.price, trade.exchange)
        return True

    def lookup(self, symbol: str) -> Optional[Trade]:
        with self._lock:
            return self._latest.get(normalize_symbol(symbol))

    def clear(self) -> None:
        with self._lock:
            self._latest.clear()
