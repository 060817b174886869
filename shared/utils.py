"""
utils.py – small generic helpers reused in multiple packages
"""

from __future__ import annotations

import math
import re

from .constants import DEFAULT_QUOTE, KNOWN_QUOTES, KNOWN_VENUES
from .errors import InvalidInput

# BTCUSDT.P  BTCUSDT-PERP  BTC-USDT-SWAP  btcusdt@binance  BINANCE:BTCUSDT
_SUFFIX_RE = re.compile(r"(\.[A-Z0-9]+|[-_](PERP|SWAP|FUTURES?))$")


def normalize_symbol(symbol: str, default_quote: str = DEFAULT_QUOTE) -> str:
    """
    Canonical instrument name: upper-case, exchange tag / suffix stripped,
    separators removed, bare base assets completed with `default_quote`.
    Returns "" for blank input; raises InvalidInput when a `:` or `@` tag
    names no known venue on either side.
    """
    sym = (symbol or "").strip().upper()
    for sep in ("@", ":"):
        head, found, tail = sym.partition(sep)
        if not found:
            continue
        if head in KNOWN_VENUES:
            sym = tail
        elif tail in KNOWN_VENUES:
            sym = head
        else:
            raise InvalidInput(f"unknown venue tag in symbol {symbol!r}")
    sym = _SUFFIX_RE.sub("", sym)
    sym = sym.replace("/", "").replace("-", "").replace("_", "")
    if sym and default_quote and not sym.endswith(KNOWN_QUOTES):
        sym += default_quote
    return sym


def is_positive(x: float) -> bool:
    """True for finite numbers > 0 (rejects NaN / inf / bool)."""
    if isinstance(x, bool):
        return False
    try:
        return math.isfinite(x) and x > 0
    except TypeError:
        return False
