"""
models.py – value objects shared by the adapters and the advisor
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Tuple

from shared.constants import TRADE_BUY, TRADE_SELL
from shared.errors import InvalidInput
from shared.utils import is_positive, normalize_symbol


class Trend(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class Trade:
    """One market print. `timestamp` is epoch milliseconds."""
    symbol: str
    price: float
    size: float
    side: str                 # "buy" | "sell"
    timestamp: int
    exchange: str = ""
    notional: float = field(init=False)     # always price × size

    def __post_init__(self) -> None:
        object.__setattr__(self, "notional", self.price * self.size)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Trade":
        """
        Build from a stream message; raises InvalidInput on anything that
        would poison the cache (missing symbol, non-positive price/size,
        unknown side). A `notional` key in the message is ignored.
        """
        try:
            symbol = normalize_symbol(str(raw["symbol"]))
            price  = float(raw["price"])
            size   = float(raw["size"])
            side   = str(raw["side"]).lower()
            ts     = int(raw["timestamp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f"malformed trade: {exc}") from exc

        if not symbol:
            raise InvalidInput("trade without symbol")
        if not (is_positive(price) and is_positive(size)):
            raise InvalidInput(f"{symbol}: price/size must be > 0")
        if side not in (TRADE_BUY, TRADE_SELL):
            raise InvalidInput(f"{symbol}: unknown trade side {side!r}")

        return cls(
            symbol=symbol,
            price=price,
            size=size,
            side=side,
            timestamp=ts,
            exchange=str(raw.get("exchange", "")),
        )


@dataclass(frozen=True)
class BookLevel:
    price: float
    quantity: float

    @property
    def notional(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class DepthSnapshot:
    """Point-in-time book; both sides ordered best price first."""
    bids: Tuple[BookLevel, ...] = field(default_factory=tuple)
    asks: Tuple[BookLevel, ...] = field(default_factory=tuple)

    @classmethod
    def from_pairs(cls, bids, asks) -> "DepthSnapshot":
        """Accepts `[[price, qty], …]` with str or float entries."""
        return cls(
            bids=tuple(BookLevel(float(p), float(q)) for p, q, *_ in bids),
            asks=tuple(BookLevel(float(p), float(q)) for p, q, *_ in asks),
        )
