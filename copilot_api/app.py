#!/usr/bin/env python3
"""
app.py – co-pilot REST API + process entry-point
------------------------------------------------
Environment
-----------
REDIS_URL             redis://host:port/db        (default: redis://redis:6379/0)
API_PORT              REST port                   (default: 8000)
ADVISOR_INTERVAL_SEC  seconds between ticks       (default: 1)
BINANCE_BASE_URLS     comma-separated REST hosts  (default: fapi / fapi1)

Endpoints
---------
POST   /sessions              start tracking a position
DELETE /sessions/{id}         stop tracking (idempotent)
GET    /sessions/{id}         current advice snapshot
GET    /sessions?owner=       all sessions (optionally one owner's)
GET    /plan                  entry / stop / target suggestion
GET    /wall-advice           is there a wall at my entry?
GET    /status                loop health
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from copilot_service.service import CoPilot, build_copilot
from market_data.trade_stream import TradeStream
from shared.config import API_PORT
from shared.errors import InvalidInput, NotFound, Unavailable
from shared.logging import get_logger

log = get_logger("copilot_api")


class StartSession(BaseModel):
    owner: str = ""
    symbol: str
    side: str
    entry_price: float = Field(..., description="fill price of the position")


def create_app(copilot: CoPilot) -> FastAPI:
    app = FastAPI(title="Trading Co-Pilot", docs_url=None, redoc_url=None)
    app.state.copilot = copilot

    @app.post("/sessions", status_code=201)
    def start_session(body: StartSession) -> Dict[str, Any]:
        try:
            sid = copilot.start_session(body.owner, body.symbol, body.side, body.entry_price)
        except InvalidInput as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return copilot.get_snapshot(sid).to_dict()

    @app.delete("/sessions/{session_id}")
    def stop_session(session_id: str) -> Dict[str, Any]:
        return {"stopped": copilot.stop_session(session_id)}

    @app.get("/sessions/{session_id}")
    def get_snapshot(session_id: str) -> Dict[str, Any]:
        try:
            return copilot.get_snapshot(session_id).to_dict()
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))

    @app.get("/sessions")
    def list_sessions(owner: Optional[str] = None) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in copilot.list_sessions(owner)]

    @app.get("/plan")
    def plan_entry(symbol: str, side: str) -> Dict[str, Any]:
        try:
            return copilot.plan_entry(symbol, side).to_dict()
        except InvalidInput as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except Unavailable as exc:
            raise HTTPException(status_code=503, detail=str(exc))

    @app.get("/wall-advice")
    def wall_advice(symbol: str, side: str,
                    entry: float = Query(..., description="candidate entry price")) -> Dict[str, str]:
        try:
            return {"advice": copilot.wall_advice(symbol, side, entry)}
        except InvalidInput as exc:
            raise HTTPException(status_code=422, detail=str(exc))

    @app.get("/status")
    def status() -> Dict[str, Any]:
        return copilot.status()

    return app


def main() -> None:
    copilot = build_copilot()
    stream  = TradeStream(copilot.on_trade)
    app     = create_app(copilot)

    copilot.start()
    stream.start()
    log.info("co-pilot API on :%d", API_PORT)
    try:
        uvicorn.run(app, host="0.0.0.0", port=API_PORT, log_level="warning")
    finally:
        stream.stop()
        copilot.stop()
        log.info("co-pilot shut down")


if __name__ == "__main__":
    main()
