"""
trade_stream.py – Redis pub/sub → co-pilot ingestion
----------------------------------------------------
The exchange websocket consumer lives outside this repo; it publishes
every normalised print as JSON on TRADE_CHANNEL:

    {"symbol": "BTCUSDT", "price": 64000.5, "size": 12.3,
     "side": "sell", "exchange": "binance", "timestamp": 1718000000000}

We decode each message and hand it to `on_trade` (the co-pilot's
ingest path). Malformed messages are logged and skipped.
"""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Optional

import redis

from shared.config import TRADE_CHANNEL
from shared.errors import InvalidInput
from shared.logging import get_logger
from shared.redis_client import rds

from .models import Trade

log = get_logger("market_data.trade_stream")


class TradeStream:
    def __init__(self,
                 on_trade: Callable[[Trade], Any],
                 channel: str = TRADE_CHANNEL,
                 client: Optional[redis.Redis] = None) -> None:
        self.on_trade = on_trade
        self.channel  = channel
        self.client   = client if client is not None else rds
        self._stop    = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def handle(self, message: dict) -> bool:
        """Process one pub/sub message; True when a trade was forwarded."""
        if message.get("type") != "message":
            return False
        try:
            trade = Trade.from_dict(json.loads(message["data"]))
        except (TypeError, ValueError, InvalidInput) as exc:
            log.warning("dropping malformed trade on %s – %s", self.channel, exc)
            return False
        self.on_trade(trade)
        return True

    def run(self) -> None:
        """Blocking listener loop; returns once `stop()` is called."""
        try:
            ps = self.client.pubsub(ignore_subscribe_messages=True)
            ps.subscribe(self.channel)
        except redis.RedisError as exc:
            log.error("cannot subscribe to %s – %s", self.channel, exc)
            return
        log.info("trade stream listening on %s", self.channel)
        try:
            while not self._stop.is_set():
                try:
                    m = ps.get_message(timeout=1.0)
                except redis.RedisError as exc:
                    log.error("trade stream error – %s", exc)
                    self._stop.wait(2.0)
                    continue
                if m:
                    self.handle(m)
        finally:
            ps.close()

    def start(self) -> bool:
        if self._thread is not None and self._thread.is_alive():
            return False
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="trade-stream", daemon=True)
        self._thread.start()
        return True

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None
