"""
FastAPI Backend — Nation Turn Engine API v1.

Thin transport over the kernel and runtime. Every request opens the
configured record store; no nation state is held between requests.

Endpoints:
  POST /turn             — run one global turn, return its summary
  GET  /nations          — list nation ids
  GET  /nations/{id}     — one nation record
  POST /nations          — found a new nation
  GET  /ranking          — nations ordered by HDI, highest first
  GET  /metrics          — world aggregates
  GET  /health
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from nation_kernel.founding import found_nation
from nation_kernel.invariants import MalformedRecordError
from nation_runtime.observability import collect_world_metrics
from nation_runtime.record_store import (
    RecordStore,
    StoreListError,
    StoreReadError,
    StoreWriteError,
)
from nation_runtime.turn import run_global_turn

from backend.config import Settings, build_store

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

SETTINGS = Settings.from_env()

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Nation Turn Engine API",
    version="1.0.0",
    description="Persistent nations advanced by deterministic global turns",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[SETTINGS.frontend_url, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TurnRequest(BaseModel):
    max_workers: Optional[int] = Field(None, ge=1)
    timeout_seconds: Optional[float] = Field(None, gt=0)


class FoundNationRequest(BaseModel):
    name: str
    capital: str
    government_type: str
    founder: str = ""
    motto: str = ""
    flag_url: str = ""


# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def get_store() -> Iterator[RecordStore]:
    """One store per request; closed afterwards when the adapter supports it."""
    try:
        store = build_store(SETTINGS)
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    try:
        yield store
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            close()


def _read_or_raise(store: RecordStore, nation_id: str) -> Dict[str, Any]:
    try:
        record = store.read(nation_id)
    except MalformedRecordError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except StoreReadError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    if record is None:
        raise HTTPException(status_code=404, detail=f"Nation {nation_id!r} not found")
    return record.to_dict()


def _list_or_raise(store: RecordStore) -> List[str]:
    try:
        return sorted(store.list())
    except StoreListError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post("/turn")
def run_turn(req: Optional[TurnRequest] = None, store: RecordStore = Depends(get_store)):
    """Run one global turn. An aborted turn answers 503 with the summary."""
    req = req or TurnRequest()
    summary = run_global_turn(
        store,
        max_workers=(
            SETTINGS.turn_max_workers if req.max_workers is None else req.max_workers
        ),
        timeout=(
            SETTINGS.turn_timeout_seconds
            if req.timeout_seconds is None
            else req.timeout_seconds
        ),
    )
    if summary.aborted:
        return JSONResponse(status_code=503, content=summary.to_dict())
    return summary.to_dict()


@app.get("/nations")
def list_nations(store: RecordStore = Depends(get_store)):
    return {"nations": _list_or_raise(store)}


@app.get("/nations/{nation_id}")
def get_nation(nation_id: str, store: RecordStore = Depends(get_store)):
    return _read_or_raise(store, nation_id)


@app.post("/nations", status_code=201)
def create_nation(req: FoundNationRequest, store: RecordStore = Depends(get_store)):
    """Found a nation with baseline statistics. The id derives from the name."""
    try:
        record = found_nation(
            req.name,
            req.capital,
            req.government_type,
            founder=req.founder,
            motto=req.motto,
            flag_url=req.flag_url,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if record.id in _list_or_raise(store):
        raise HTTPException(
            status_code=409, detail=f"Nation {record.id!r} already exists",
        )
    try:
        store.write(record.id, record)
    except StoreWriteError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    logger.info("Founded nation %s (%s)", record.id, record.government_type)
    return record.to_dict()


@app.get("/ranking")
def ranking(store: RecordStore = Depends(get_store)):
    """Readable nations ordered by HDI (desc), ties broken by id."""
    rows = []
    for nation_id in _list_or_raise(store):
        try:
            record = store.read(nation_id)
        except (MalformedRecordError, StoreReadError) as exc:
            logger.warning("Ranking skips %s: %s", nation_id, exc)
            continue
        if record is not None:
            rows.append(record)
    rows.sort(key=lambda r: (-r.stats.hdi, r.id))
    return {
        "ranking": [
            {
                "rank": position,
                "id": r.id,
                "name": r.name,
                "governmentType": r.government_type,
                "capital": r.capital,
                "hdi": round(r.stats.hdi, 3),
                "population": r.stats.population,
                "owner": r.extra.get("founder", ""),
            }
            for position, r in enumerate(rows, 1)
        ]
    }


@app.get("/metrics")
def metrics(store: RecordStore = Depends(get_store)):
    try:
        return collect_world_metrics(store).to_dict()
    except StoreListError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@app.get("/health")
def health():
    return {"status": "ok", "version": "1.0.0", "store": SETTINGS.nation_store}
