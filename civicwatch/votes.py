from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .db import connect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["votes"])

# Public party label -> column name. Only these two parties are tallied.
PARTY_COLUMNS = {"PartyA": "party_a", "PartyB": "party_b"}


class VoteIn(BaseModel):
    state: Optional[str] = None
    party: Optional[str] = None


def _tally(state: str, party_a: int = 0, party_b: int = 0) -> Dict[str, Any]:
    return {"state": state, "PartyA": int(party_a), "PartyB": int(party_b)}


def list_votes(db_path: str) -> List[Dict[str, Any]]:
    with connect(db_path) as con:
        rows = con.execute("SELECT state, party_a, party_b FROM votes ORDER BY state").fetchall()
    return [_tally(r["state"], r["party_a"], r["party_b"]) for r in rows]


def get_votes(db_path: str, state: str) -> Dict[str, Any]:
    with connect(db_path) as con:
        row = con.execute("SELECT state, party_a, party_b FROM votes WHERE state = ?", (state,)).fetchone()
    if not row:
        return _tally(state)
    return _tally(row["state"], row["party_a"], row["party_b"])


def cast_vote(db_path: str, state: str, party: str) -> Dict[str, Any]:
    """Add one vote for `party` in `state`, creating the tally on first vote."""
    col = PARTY_COLUMNS[party]
    with connect(db_path) as con:
        con.execute(
            f"""
            INSERT INTO votes (state, {col}) VALUES (?, 1)
            ON CONFLICT(state) DO UPDATE SET {col} = {col} + 1
            """,
            (state,),
        )
        con.commit()
        row = con.execute("SELECT state, party_a, party_b FROM votes WHERE state = ?", (state,)).fetchone()
    return _tally(row["state"], row["party_a"], row["party_b"])


def _db_path(request: Request) -> str:
    return request.app.state.settings.db_path


@router.get("/votes")
def votes(request: Request):
    try:
        return list_votes(_db_path(request))
    except sqlite3.Error as e:
        logger.exception("list votes failed: %s", e)
        return JSONResponse(status_code=500, content={"error": "Error fetching votes"})


@router.get("/votes/{state}")
def state_votes(state: str, request: Request):
    try:
        return get_votes(_db_path(request), state)
    except sqlite3.Error as e:
        logger.exception("get votes failed state=%s: %s", state, e)
        return JSONResponse(status_code=500, content={"error": "Error fetching state votes"})


@router.post("/vote")
def vote(body: VoteIn, request: Request):
    state = (body.state or "").strip()
    party = (body.party or "").strip()
    if not state or not party:
        return JSONResponse(status_code=400, content={"message": "State and party are required"})
    if party not in PARTY_COLUMNS:
        return JSONResponse(status_code=400, content={"message": f"Unknown party. Use one of: {', '.join(PARTY_COLUMNS)}"})
    try:
        tally = cast_vote(_db_path(request), state, party)
    except sqlite3.Error as e:
        logger.exception("cast vote failed state=%s party=%s: %s", state, party, e)
        return JSONResponse(status_code=500, content={"error": "Error updating votes"})
    return {"message": "Vote counted!", "vote": tally}
