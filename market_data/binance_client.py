"""
binance_client.py – light wrapper around the Binance futures REST API
---------------------------------------------------------------------
Keeps the advisor / planner clean and testable: they only see
`latest_price`, `depth` and `closes`. Every base URL in
BINANCE_BASE_URLS is tried in turn; when all of them fail the call raises
`Unavailable` so callers can degrade instead of crash.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import requests

from shared.config import BINANCE_BASE_URLS, HTTP_TIMEOUT_SEC
from shared.errors import Unavailable
from shared.logging import get_logger
from shared.utils import is_positive, normalize_symbol

from .models import DepthSnapshot

log = get_logger("market_data.binance")

# ───── endpoints ───────────────────────────────────────────────────────
PATH_PRICE  = "/fapi/v1/ticker/price"
PATH_DEPTH  = "/fapi/v1/depth"
PATH_KLINES = "/fapi/v1/klines"

DEPTH_LIMITS = (5, 10, 20, 50, 100, 500, 1000)     # values the API accepts


class BinanceClient:
    """
    Thin OO façade so the co-pilot doesn't depend on the REST layout.
    """

    def __init__(self,
                 base_urls: Sequence[str] = BINANCE_BASE_URLS,
                 timeout: float = HTTP_TIMEOUT_SEC,
                 session: Optional[requests.Session] = None) -> None:
        self.base_urls = [u.rstrip("/") for u in base_urls]
        self.timeout   = timeout
        self.http      = session or requests.Session()

    # ───── transport ───────────────────────────────────────────────
    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        last: Exception | None = None
        for base in self.base_urls:
            try:
                resp = self.http.get(base + path, params=params, timeout=self.timeout)
                resp.raise_for_status()
                return resp.json()
            except (requests.RequestException, ValueError) as exc:
                last = exc
                log.debug("%s%s failed – %s", base, path, exc)
        raise Unavailable(f"{path} {params.get('symbol', '')}: {last}")

    # ───── market queries ───────────────────────────────────────────
    def latest_price(self, symbol: str) -> float:
        sym = normalize_symbol(symbol)
        j = self._get(PATH_PRICE, {"symbol": sym})
        try:
            price = float(j["price"])
        except (KeyError, TypeError, ValueError) as exc:
            raise Unavailable(f"{sym}: bad price payload {j!r}") from exc
        if not is_positive(price):
            raise Unavailable(f"{sym}: non-positive price {price}")
        return price

    def depth(self, symbol: str, levels: int = 20) -> DepthSnapshot:
        """
        Top-of-book snapshot. `levels` is rounded up to the next limit the
        API accepts and the answer trimmed back to `levels` per side.
        """
        sym = normalize_symbol(symbol)
        limit = next((n for n in DEPTH_LIMITS if n >= levels), DEPTH_LIMITS[-1])
        j = self._get(PATH_DEPTH, {"symbol": sym, "limit": limit})
        try:
            snap = DepthSnapshot.from_pairs(j["bids"][:levels], j["asks"][:levels])
        except (KeyError, TypeError, ValueError) as exc:
            raise Unavailable(f"{sym}: bad depth payload") from exc
        return snap

    def closes(self, symbol: str, interval: str = "1m", limit: int = 30) -> List[float]:
        """Close prices oldest → newest."""
        sym = normalize_symbol(symbol)
        rows = self._get(PATH_KLINES, {"symbol": sym, "interval": interval, "limit": limit})
        try:
            return [float(r[4]) for r in rows]
        except (IndexError, TypeError, ValueError) as exc:
            raise Unavailable(f"{sym}: bad klines payload") from exc
