"""
redis_client.py – singleton Redis connection + helpers
======================================================

• 100 % lazy: first call triggers connect; retries a few times, then the
  caller gets the error (helpers below log it and carry on).
• `heartbeat(service)` once per loop so an ops dashboard can watch us.
• `publish(channel, payload)` JSON-encodes an event for the delivery layer.
  Both helpers try a single connect so a loop tick never waits on retries.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Mapping, Optional

import redis

from .config import REDIS_URL, env
from .constants import KEY_HEARTBEAT
from .logging import get_logger

CONNECT_RETRIES = env("REDIS_CONNECT_RETRIES", 3, int)
RETRY_COOLDOWN_SEC = env("REDIS_RETRY_COOLDOWN_SEC", 30.0, float)
log = get_logger("shared.redis")

# ───── LAZY SINGLETON ─────────────────────────────────────────────────
class _LazyRedis:
    """Proxy object that connects on first attribute access (auto-retry)."""
    _client: Optional[redis.Redis] = None
    _failed_at: float = 0.0

    def __getattr__(self, name: str) -> Callable[..., Any]:  # noqa: D401
        return getattr(self.ensure(), name)

    def ensure(self, retries: int = CONNECT_RETRIES) -> redis.Redis:
        """Connected client; `retries=1` never sleeps."""
        if self._client is None:
            self._connect(retries)
        return self._client

    def _connect(self, retries: int) -> None:
        # fail fast while Redis is known to be down so loops keep their pace
        if time.time() - self._failed_at < RETRY_COOLDOWN_SEC:
            raise redis.ConnectionError(f"Redis at {REDIS_URL} still unavailable")
        for attempt in range(1, retries + 1):
            try:
                client = redis.Redis.from_url(
                    REDIS_URL,
                    decode_responses=True,
                    socket_timeout=2,
                )
                client.ping()
                self._client = client
                log.info("Connected to Redis at %s", REDIS_URL)
                return
            except redis.RedisError as exc:
                log.warning("Redis unavailable (attempt %d/%d) – %s",
                            attempt, retries, exc)
                if attempt < retries:
                    time.sleep(2)
        self._failed_at = time.time()
        raise redis.ConnectionError(f"cannot reach Redis at {REDIS_URL}")

# Exposed singleton used by all packages
rds: redis.Redis = _LazyRedis()  # type: ignore[assignment]

# ───── HELPER FUNCTIONS ───────────────────────────────────────────────
def heartbeat(service: str) -> None:
    """Store current epoch-seconds in `heartbeat:<service>`."""
    try:
        rds.ensure(retries=1).set(KEY_HEARTBEAT.format(service), time.time())
    except redis.RedisError as exc:
        log.error("heartbeat failed – %s", exc)

def publish(channel: str, payload: Mapping[str, Any]) -> None:
    """Fire-and-forget JSON publish; a Redis outage is logged, not raised."""
    try:
        rds.ensure(retries=1).publish(channel, json.dumps(payload, default=str))
    except redis.RedisError as exc:
        log.error("publish to %s failed – %s", channel, exc)
