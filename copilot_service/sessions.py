"""
sessions.py – in-memory book of co-pilot sessions
=================================================

One lock guards the whole map. Sessions are frozen records: every write
swaps the full record, so a reader never sees advice from one tick next
to PnL from another. Only the advisor calls `apply`; everybody else may
`start`, `stop` and read copies.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from shared.constants import Advice, Pressure
from shared.errors import InvalidInput, NotFound
from shared.logging import get_logger
from shared.utils import is_positive, normalize_symbol

from . import rules as R

log = get_logger("copilot.sessions")

INIT_REASON = "Initializing co-pilot..."

# fields fixed at creation
IDENTITY = frozenset({"id", "owner", "symbol", "side", "entry_price", "created_at"})


@dataclass(frozen=True)
class TradeSession:
    id: str
    owner: str
    symbol: str
    side: str                 # "LONG" | "SHORT"
    entry_price: float
    created_at: float         # epoch seconds
    advice: Advice = Advice.NEUTRAL
    reason: str = INIT_REASON
    pnl_pct: float = 0.0
    pressure: Pressure = Pressure.QUIET
    pressure_started_at: Optional[float] = None
    updated_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["advice"] = self.advice.value
        d["pressure"] = self.pressure.value
        return d


class SessionStore:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, TradeSession] = {}
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # ───── lifecycle ────────────────────────────────────────────────
    def start(self, owner: str, symbol: str, side: str, entry_price: float) -> str:
        sym = normalize_symbol(symbol)
        if not sym:
            raise InvalidInput("symbol must not be empty")
        if not is_positive(entry_price):
            raise InvalidInput(f"entry price must be > 0, got {entry_price!r}")
        s = R.normalize_side(side)

        session = TradeSession(
            id=f"{sym}-{uuid.uuid4().hex}",
            owner=(owner or "").strip() or "anonymous",
            symbol=sym,
            side=s,
            entry_price=float(entry_price),
            created_at=self._clock(),
        )
        with self._lock:
            self._sessions[session.id] = session
        log.info("session %s started – %s %s @ %.8g (owner %s)",
                 session.id, s, sym, session.entry_price, session.owner)
        return session.id

    def stop(self, session_id: str) -> bool:
        with self._lock:
            gone = self._sessions.pop(session_id, None)
        if gone is not None:
            log.info("session %s stopped", session_id)
        return gone is not None

    # ───── reads ────────────────────────────────────────────────────
    def snapshot(self, session_id: str) -> Optional[TradeSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def require(self, session_id: str) -> TradeSession:
        s = self.snapshot(session_id)
        if s is None:
            raise NotFound(f"unknown session {session_id}")
        return s

    def sessions(self, owner: Optional[str] = None) -> List[TradeSession]:
        with self._lock:
            book = list(self._sessions.values())
        if owner is not None:
            book = [s for s in book if s.owner == owner]
        return book

    # ───── advisor write-back ──────────────────────────────────────
    def apply(self, session_id: str,
              **changes: Any) -> Optional[Tuple[TradeSession, TradeSession]]:
        """
        Atomically replace the advisory fields of one session.
        Returns (before, after), or None when the session was stopped
        while the advisor was still computing.
        """
        frozen = IDENTITY.intersection(changes)
        if frozen:
            raise InvalidInput(f"immutable session fields: {sorted(frozen)}")
        with self._lock:
            before = self._sessions.get(session_id)
            if before is None:
                return None
            after = replace(before, **changes)
            self._sessions[session_id] = after
        return before, after
