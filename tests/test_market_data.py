"""Tests for the market-data adapters: REST client, trade stream, models."""

import json
import threading
from unittest.mock import MagicMock

import pytest
import requests

from copilot_service.trade_feed import TradeFeedCache
from market_data.binance_client import BinanceClient
from market_data.models import DepthSnapshot, Trade
from market_data.trade_stream import TradeStream
from shared.errors import InvalidInput, Unavailable
from shared.utils import normalize_symbol


def _resp(payload, status=200):
    r = MagicMock()
    r.json.return_value = payload
    if status >= 400:
        r.raise_for_status.side_effect = requests.HTTPError(f"{status}")
    return r


@pytest.fixture()
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture()
def client(http):
    return BinanceClient(base_urls=["https://a.test", "https://b.test/"], timeout=1.5, session=http)


class TestBinanceClient:
    def test_latest_price(self, client, http):
        http.get.return_value = _resp({"symbol": "BTCUSDT", "price": "64000.10"})
        assert client.latest_price("btc") == pytest.approx(64000.10)
        http.get.assert_called_once_with(
            "https://a.test/fapi/v1/ticker/price", params={"symbol": "BTCUSDT"}, timeout=1.5
        )

    def test_fails_over_to_next_host(self, client, http):
        http.get.side_effect = [requests.ConnectionError("down"), _resp({"price": "1.5"})]
        assert client.latest_price("BTCUSDT") == 1.5
        assert http.get.call_args_list[1].args[0] == "https://b.test/fapi/v1/ticker/price"

    def test_all_hosts_down_is_unavailable(self, client, http):
        http.get.side_effect = requests.Timeout("slow")
        with pytest.raises(Unavailable):
            client.latest_price("BTCUSDT")
        assert http.get.call_count == 2

    def test_http_error_is_unavailable(self, client, http):
        http.get.return_value = _resp({"code": -1121}, status=400)
        with pytest.raises(Unavailable):
            client.latest_price("NOPEUSDT")

    def test_bad_price_payload(self, client, http):
        http.get.return_value = _resp({"price": "0"})
        with pytest.raises(Unavailable):
            client.latest_price("BTCUSDT")

    def test_depth_parses_and_trims(self, client, http):
        http.get.return_value = _resp({
            "bids": [["100.0", "2"], ["99.9", "3"], ["99.8", "4"]],
            "asks": [["100.1", "1"], ["100.2", "5"], ["100.3", "6"]],
        })
        snap = client.depth("BTCUSDT", levels=2)
        assert http.get.call_args.kwargs["params"] == {"symbol": "BTCUSDT", "limit": 5}
        assert [l.price for l in snap.bids] == [100.0, 99.9]
        assert [l.quantity for l in snap.asks] == [1.0, 5.0]
        assert snap.bids[0].notional == pytest.approx(200.0)

    def test_depth_limit_rounded_up(self, client, http):
        http.get.return_value = _resp({"bids": [], "asks": []})
        client.depth("BTCUSDT", levels=15)
        assert http.get.call_args.kwargs["params"]["limit"] == 20

    def test_bad_depth_payload(self, client, http):
        http.get.return_value = _resp({"msg": "nope"})
        with pytest.raises(Unavailable):
            client.depth("BTCUSDT", 20)

    def test_closes(self, client, http):
        http.get.return_value = _resp([[0, "1", "2", "0.5", "1.5", "10"], [1, "1.5", "3", "1", "2.5", "10"]])
        assert client.closes("BTCUSDT", "1m", 2) == [1.5, 2.5]
        assert http.get.call_args.kwargs["params"] == {"symbol": "BTCUSDT", "interval": "1m", "limit": 2}


class TestTradeModel:
    def test_from_dict_derives_notional(self):
        t = Trade.from_dict({"symbol": "btc", "price": "100", "size": 2, "side": "SELL",
                             "timestamp": 1, "exchange": "bybit"})
        assert t.symbol == "BTCUSDT"
        assert t.side == "sell"
        assert t.notional == 200.0
        assert t.exchange == "bybit"

    def test_supplied_notional_ignored(self):
        t = Trade.from_dict({"symbol": "BTCUSDT", "price": 100, "size": 2, "side": "buy",
                             "timestamp": 1, "notional": 900_000})
        assert t.notional == 200.0

    @pytest.mark.parametrize("raw", [
        {"price": 1, "size": 1, "side": "buy", "timestamp": 1},
        {"symbol": "BTC", "price": 0, "size": 1, "side": "buy", "timestamp": 1},
        {"symbol": "BTC", "price": 1, "size": -1, "side": "buy", "timestamp": 1},
        {"symbol": "BTC", "price": 1, "size": 1, "side": "long", "timestamp": 1},
        {"symbol": "BTC", "price": "x", "size": 1, "side": "buy", "timestamp": 1},
    ])
    def test_from_dict_rejects_garbage(self, raw):
        with pytest.raises(InvalidInput):
            Trade.from_dict(raw)

    def test_depth_from_pairs(self):
        snap = DepthSnapshot.from_pairs([["1.5", "2"]], [])
        assert snap.bids[0].price == 1.5 and snap.asks == ()


class TestTradeStream:
    def _msg(self, payload, kind="message"):
        data = payload if isinstance(payload, str) else json.dumps(payload)
        return {"type": kind, "channel": "market:trades", "data": data}

    def test_forwards_valid_trade(self):
        seen = []
        stream = TradeStream(seen.append, client=MagicMock())
        ok = stream.handle(self._msg({"symbol": "BTCUSDT", "price": 64000, "size": 10,
                                      "side": "sell", "timestamp": 1718000000000}))
        assert ok is True
        assert seen[0].notional == 640_000
        assert seen[0].timestamp == 1718000000000

    def test_skips_malformed_json(self):
        seen = []
        assert TradeStream(seen.append, client=MagicMock()).handle(self._msg("{not json")) is False
        assert seen == []

    def test_skips_invalid_trade(self):
        seen = []
        stream = TradeStream(seen.append, client=MagicMock())
        assert stream.handle(self._msg({"symbol": "BTCUSDT", "price": -1, "size": 1,
                                        "side": "buy", "timestamp": 1})) is False

    def test_inflated_notional_is_not_a_whale(self):
        cache = TradeFeedCache()
        stream = TradeStream(cache.ingest, client=MagicMock())
        stream.handle(self._msg({"symbol": "BTCUSDT", "price": 100, "size": 2, "side": "sell",
                                 "timestamp": 1, "notional": 900_000}))
        assert cache.lookup("BTCUSDT") is None

    def test_ignores_control_messages(self):
        seen = []
        assert TradeStream(seen.append, client=MagicMock()).handle(self._msg("1", kind="subscribe")) is False

    def test_run_until_stopped(self):
        redis_client = MagicMock()
        pubsub = redis_client.pubsub.return_value
        seen = []
        stream = TradeStream(seen.append, channel="trades", client=redis_client)
        trade = self._msg({"symbol": "ETH", "price": 3000, "size": 200, "side": "buy", "timestamp": 5})

        def next_message(timeout):
            stream.stop()
            return trade

        pubsub.get_message.side_effect = next_message
        stream.run()
        pubsub.subscribe.assert_called_once_with("trades")
        pubsub.close.assert_called_once()
        assert seen[0].symbol == "ETHUSDT"

    def test_restart_refused_while_listener_alive(self):
        entered, release = threading.Event(), threading.Event()
        redis_client = MagicMock()

        def stuck(timeout):
            entered.set()
            release.wait(5.0)

        redis_client.pubsub.return_value.get_message.side_effect = stuck
        stream = TradeStream(lambda t: None, client=redis_client)
        try:
            assert stream.start() is True
            assert entered.wait(2.0)
            stream.stop(timeout=0.1)
            assert stream.start() is False
            assert len([t for t in threading.enumerate() if t.name == "trade-stream"]) == 1
        finally:
            release.set()
            stream.stop()
        redis_client.pubsub.return_value.subscribe.assert_called_once()


class TestNormalizeSymbol:
    @pytest.mark.parametrize("raw, expected", [
        ("btcusdt", "BTCUSDT"),
        ("btc", "BTCUSDT"),
        (" eth ", "ETHUSDT"),
        ("BTC/USDT", "BTCUSDT"),
        ("BTCUSDT.P", "BTCUSDT"),
        ("BTCUSDT-PERP", "BTCUSDT"),
        ("BTC-USDT-SWAP", "BTCUSDT"),
        ("btcusdt@binance", "BTCUSDT"),
        ("solusdc:bybit", "SOLUSDC"),
        ("BINANCE:BTCUSDT", "BTCUSDT"),
        ("BINANCE:BTCUSDT.P", "BTCUSDT"),
        ("bybit:eth", "ETHUSDT"),
        ("", ""),
        ("   ", ""),
    ])
    def test_variants(self, raw, expected):
        assert normalize_symbol(raw) == expected

    @pytest.mark.parametrize("raw", ["FOO:BTCUSDT", "btcusdt@nowhere"])
    def test_unknown_venue_tag_rejected(self, raw):
        with pytest.raises(InvalidInput):
            normalize_symbol(raw)
