# gigsim/webapp.py
from __future__ import annotations

import dataclasses
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from gigsim.engine import PerformanceEngine
from gigsim.errors import DuplicatePerformanceError, MissingEntityError
from gigsim.log import configure_logging, get_logger
from gigsim.models import PerformanceRequest
from gigsim.settings import Settings, get_settings
from gigsim.simulation import position_rng
from gigsim.sqlite_store import SQLiteGigStore
from gigsim.store import GigDataStore, MemoryGigStore

logger = get_logger(__name__)


class PositionIn(BaseModel):
    setlist_id: str
    venue_id: str
    position: int = Field(ge=1)
    song_id: Optional[str] = None
    performance_item_id: Optional[str] = None
    promoter_id: Optional[str] = None
    city_id: Optional[str] = None

    @model_validator(mode="after")
    def _one_subject(self) -> "PositionIn":
        if (self.song_id is None) == (self.performance_item_id is None):
            raise ValueError("exactly one of song_id or performance_item_id is required")
        return self


def _as_json(obj: Any) -> Any:
    if obj is None:
        return None
    return jsonable_encoder(dataclasses.asdict(obj))


def build_store(settings: Settings) -> GigDataStore:
    if settings.store_backend == "sqlite":
        return SQLiteGigStore(settings.sqlite_path)
    return MemoryGigStore()


def create_app(store: Optional[GigDataStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    store = store or build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(store, SQLiteGigStore):
            await store.initialize()
        yield

    app = FastAPI(title="gigsim", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = PerformanceEngine(
        store, social_buzz_window_days=settings.social_buzz_window_days)

    @app.exception_handler(MissingEntityError)
    async def _missing(request: Request, exc: MissingEntityError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(DuplicatePerformanceError)
    async def _duplicate(request: Request, exc: DuplicatePerformanceError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"error": str(exc)})

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/gigs/{gig_id}/positions")
    async def perform_position(gig_id: str, body: PositionIn) -> Dict[str, Any]:
        engine: PerformanceEngine = app.state.engine
        request = PerformanceRequest(
            gig_id=gig_id,
            setlist_id=body.setlist_id,
            venue_id=body.venue_id,
            position=body.position,
            song_id=body.song_id,
            item_id=body.performance_item_id,
            promoter_id=body.promoter_id,
            city_id=body.city_id,
        )
        result = await engine.process_position(
            request, position_rng(settings.rng_seed, body.position, gig_id))
        return {
            "performance": _as_json(result.record),
            "stage_event": _as_json(result.stage_event),
        }

    @app.get("/gigs/{gig_id}/performances")
    async def list_performances(gig_id: str) -> Dict[str, Any]:
        records = await app.state.engine.store.list_performance_records(gig_id)
        return {"gig_id": gig_id, "performances": [_as_json(r) for r in records]}

    @app.get("/gigs/{gig_id}/stage-events")
    async def list_stage_events(gig_id: str) -> Dict[str, Any]:
        events = await app.state.engine.store.list_stage_events(gig_id)
        return {"gig_id": gig_id, "stage_events": [_as_json(e) for e in events]}

    return app
