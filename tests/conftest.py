"""Shared fixtures: fake market / trend adapters, a hand-driven clock,
and a fully wired advisor that never touches Redis or the network."""

from typing import List, Optional

import pytest

from copilot_service.advisor import Advisor
from copilot_service.entry_planner import EntryPlanner
from copilot_service.service import CoPilot
from copilot_service.sessions import SessionStore
from copilot_service.trade_feed import TradeFeedCache
from market_data.models import BookLevel, DepthSnapshot, Trade, Trend

T0 = 1_700_000_000.0


class FakeClock:
    def __init__(self, t: float = T0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> float:
        self.t += dt
        return self.t


class FakeMarket:
    """Quote + depth adapter; set `price_error` / `depth_error` to fail."""

    def __init__(self, price: float = 100.0, depth: Optional[DepthSnapshot] = None) -> None:
        self.price = price
        self.book = depth or DepthSnapshot()
        self.price_error: Optional[Exception] = None
        self.depth_error: Optional[Exception] = None
        self.price_calls: List[str] = []
        self.depth_calls: List[tuple] = []

    def latest_price(self, symbol: str) -> float:
        self.price_calls.append(symbol)
        if self.price_error is not None:
            raise self.price_error
        return self.price

    def depth(self, symbol: str, levels: int) -> DepthSnapshot:
        self.depth_calls.append((symbol, levels))
        if self.depth_error is not None:
            raise self.depth_error
        return self.book


class FakeTrend:
    def __init__(self, trend: Trend = Trend.NEUTRAL) -> None:
        self.trend = trend
        self.calls: List[str] = []

    def short_term_trend(self, symbol: str) -> Trend:
        self.calls.append(symbol)
        return self.trend


def book(bids=(), asks=()) -> DepthSnapshot:
    return DepthSnapshot(
        bids=tuple(BookLevel(p, q) for p, q in bids),
        asks=tuple(BookLevel(p, q) for p, q in asks),
    )


def whale(side: str, at: float, price: float = 100.0, notional: float = 1_000_000.0,
          symbol: str = "BTCUSDT") -> Trade:
    return Trade(symbol=symbol, price=price, size=notional / price, side=side,
                 timestamp=int(at * 1000), exchange="binance")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def market():
    return FakeMarket()


@pytest.fixture()
def trend():
    return FakeTrend()


@pytest.fixture()
def store(clock):
    return SessionStore(clock=clock)


@pytest.fixture()
def feed():
    return TradeFeedCache()


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def advisor(store, feed, market, trend, clock, events):
    return Advisor(store, feed, market, trend,
                   interval=0.01, publisher=events.append,
                   heartbeat_fn=None, clock=clock)


@pytest.fixture()
def copilot(store, feed, advisor, market):
    return CoPilot(store, feed, advisor, EntryPlanner(market))
