"""
constants.py – single source of hard-coded names
"""

from enum import Enum

# Redis keys
KEY_HEARTBEAT     = "heartbeat:{}"        # service-specific

# sides
LONG  = "LONG"
SHORT = "SHORT"
SIDES = (LONG, SHORT)

TRADE_BUY  = "buy"
TRADE_SELL = "sell"

DEFAULT_QUOTE = "USDT"
KNOWN_QUOTES  = ("USDT", "USDC", "BUSD", "FDUSD", "USD")
# venue tags seen as `BINANCE:BTCUSDT` or `btcusdt@binance`
KNOWN_VENUES  = frozenset({"BINANCE", "BYBIT", "OKX", "BITGET", "COINBASE", "KRAKEN",
                           "BITMEX", "DERIBIT", "KUCOIN", "MEXC", "GATEIO", "HTX"})


class Advice(str, Enum):
    NEUTRAL   = "NEUTRAL"       # monitoring / ranging
    WARN      = "WARN"          # pressure, trend flip, fee saver
    TRIM      = "TRIM"          # lock profit / target reached
    EXIT      = "EXIT"          # whale confirmed / stop hit
    HIGH_RISK = "HIGH_RISK"     # support or resistance thin


class Pressure(str, Enum):
    QUIET     = "quiet"
    BUILDING  = "pressure-building"
    CONFIRMED = "confirmed-exit"
