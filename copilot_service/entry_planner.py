"""
entry_planner.py – one-shot entry / stop / target suggestion
============================================================

Baseline (percent of the live quote):

    LONG   entry = p·0.9999   stop = entry·0.9985   target = entry·1.003
    SHORT  entry = p·1.0001   stop = entry·1.0015   target = entry·0.997

If the book shows a wall (one level worth more than LARGE_ORDER_USD) on
the protective side within 1 % of the entry, the stop is parked
WALL_STOP_OFFSET price units behind it instead. A depth failure leaves
the baseline untouched; a quote failure raises `Unavailable`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from shared.config import LARGE_ORDER_USD, WALL_STOP_OFFSET
from shared.constants import LONG
from shared.errors import InvalidInput, Unavailable
from shared.logging import get_logger
from shared.utils import is_positive, normalize_symbol

from . import rules as R

log = get_logger("copilot.entry_planner")

WALL_AT_ENTRY  = "Huge {} wall at entry. High chance of fill."
LIQUIDITY_OK   = "Liquidity normal."
LIQUIDITY_WAIT = "Analyzing liquidity..."


@dataclass(frozen=True)
class EntryPlan:
    symbol: str
    side: str
    entry: float
    stop_loss: float
    take_profit: float
    wall_price: Optional[float] = None      # wall that anchored the stop

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EntryPlanner:
    def __init__(self, market: Any,
                 large_order_usd: float = LARGE_ORDER_USD,
                 wall_offset: float = WALL_STOP_OFFSET) -> None:
        self.market = market
        self.large_order_usd = large_order_usd
        self.wall_offset = wall_offset

    @staticmethod
    def _symbol(symbol: str) -> str:
        sym = normalize_symbol(symbol)
        if not sym:
            raise InvalidInput("symbol must not be empty")
        return sym

    def plan(self, symbol: str, side: str) -> EntryPlan:
        sym, s = self._symbol(symbol), R.normalize_side(side)
        price = self.market.latest_price(sym)
        entry, stop, target = R.baseline_levels(s, price)

        try:
            depth = self.market.depth(sym, R.DEPTH_LEVELS)
        except Unavailable as exc:
            log.warning("%s depth unavailable, baseline plan – %s", sym, exc)
            return EntryPlan(sym, s, entry, stop, target)

        wall = R.find_wall(s, entry, depth, self.large_order_usd)
        if wall is None:
            return EntryPlan(sym, s, entry, stop, target)

        stop = wall - self.wall_offset if s == LONG else wall + self.wall_offset
        log.info("%s %s stop anchored behind wall @ %.8g → %.8g", sym, s, wall, stop)
        return EntryPlan(sym, s, entry, stop, target, wall_price=wall)

    def wall_advice(self, symbol: str, side: str, candidate_entry: float) -> str:
        """Is there a wall within 0.2 % of `candidate_entry` on the entry side?"""
        sym, s = self._symbol(symbol), R.normalize_side(side)
        if not is_positive(candidate_entry):
            raise InvalidInput(f"entry price must be > 0, got {candidate_entry!r}")

        try:
            depth = self.market.depth(sym, R.WALL_ADVICE_LEVELS)
        except Unavailable as exc:
            log.warning("%s depth unavailable – %s", sym, exc)
            return LIQUIDITY_WAIT

        levels = depth.bids if s == LONG else depth.asks
        for lvl in levels:
            if (lvl.notional > self.large_order_usd
                    and abs(lvl.price - candidate_entry) / candidate_entry < R.WALL_ADVICE_RANGE):
                return WALL_AT_ENTRY.format("buy" if s == LONG else "sell")
        return LIQUIDITY_OK
