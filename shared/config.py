"""
config.py – centralised env-var handling for the co-pilot
=========================================================

• Loads the first `.env` file it finds (cwd or /app) exactly **once**.
• `env(key, default=None, cast=None)` for one-off lookups with automatic
  type-casting (int, float, bool); a bad value falls back to the default.
• `env_list(key, default)` for comma-separated values.

Every tunable of the advisor / planner is read here so the defaults live
in one place; components still take them as constructor arguments.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

# ───── locate & load .env (first one wins) ────────────────────────────
for candidate in (Path.cwd() / ".env", Path("/app/.env")):
    if candidate.is_file():
        load_dotenv(dotenv_path=candidate, override=False)
        break


def env(key: str, default: Any = None, cast: Optional[type] = None) -> Any:
    val = os.getenv(key)
    if val is None or val == "":
        return default
    if cast is None:
        return val
    try:
        if cast is bool:
            return val.strip().lower() in ("1", "true", "yes", "y")
        return cast(val)
    except (ValueError, TypeError):
        return default


def env_list(key: str, default: str) -> List[str]:
    return [s.strip() for s in str(env(key, default)).split(",") if s.strip()]


# ───── process / plumbing ─────────────────────────────────────────────
REDIS_URL     = env("REDIS_URL", "redis://redis:6379/0")
API_PORT      = env("API_PORT", 8000, int)
TRADE_CHANNEL = env("TRADE_CHANNEL", "market:trades")
ADVICE_CHANNEL = env("ADVICE_CHANNEL", "copilot:advice")

# ───── market data ────────────────────────────────────────────────────
BINANCE_BASE_URLS = env_list(
    "BINANCE_BASE_URLS", "https://fapi.binance.com,https://fapi1.binance.com"
)
HTTP_TIMEOUT_SEC = env("HTTP_TIMEOUT_SEC", 5.0, float)
TREND_TTL_SEC    = env("TREND_TTL_SEC", 15.0, float)

# ───── advisor / planner thresholds ───────────────────────────────────
ADVISOR_INTERVAL_SEC = env("ADVISOR_INTERVAL_SEC", 1.0, float)
LARGE_TRADE_USD      = env("LARGE_TRADE_USD", 500_000.0, float)
LARGE_ORDER_USD      = env("LARGE_ORDER_USD", 500_000.0, float)
WHALE_WINDOW_SEC     = env("WHALE_WINDOW_SEC", 60.0, float)
WHALE_CONFIRM_SEC    = env("WHALE_CONFIRM_SEC", 10.0, float)
WALL_STOP_OFFSET     = env("WALL_STOP_OFFSET", 5.0, float)


__all__ = ["env", "env_list"]
