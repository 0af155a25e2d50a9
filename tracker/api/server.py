"""
Cycle Tracker: Command API Server
=================================

HTTP surface over the TrackerEngine command set. Every write endpoint
returns the freshly computed projection so a renderer never has to
issue a second request.

Endpoints:
- GET  /health
- GET  /api/v1/projection          -> Current projection
- POST /api/v1/tap                 -> Record an observed event
- POST /api/v1/undo                -> Drop the last event
- POST /api/v1/start/known-cycle   -> Cycle starts now
- POST /api/v1/start/new-schedule  -> A schedule starts, cycle unknown
- POST /api/v1/position/unknown    -> Forget position, next tap seeds
- POST /api/v1/reset               -> Hard reset
- GET  /api/v1/save-code           -> Export save code
- POST /api/v1/save-code           -> Load save code

Usage:
    uvicorn tracker.api.server:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..engine import TrackerEngine, TrackerConfig
from ..contracts.base import Result
from .mapper import map_projection_to_dict


logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class TapRequest(BaseModel):
    event: str


class SaveCodeRequest(BaseModel):
    code: str


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(engine: Optional[TrackerEngine] = None) -> FastAPI:
    """
    Build the API around an engine.

    Without an engine, one is created at startup from environment config.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "engine", None) is None:
            logger.info("Initializing tracker engine from environment")
            app.state.engine = TrackerEngine(TrackerConfig.from_env())
        yield
        logger.info("Shutting down tracker API")

    app = FastAPI(
        title="Cycle Tracker API",
        version="0.1.0",
        description="Command surface for the schedule position tracker",
        lifespan=lifespan
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    def _engine() -> TrackerEngine:
        current = app.state.engine
        if current is None:
            raise HTTPException(status_code=503, detail="Engine not initialized")
        return current

    def _respond(result: Result) -> dict:
        if result.is_failure:
            raise HTTPException(status_code=400, detail=result.error.message)
        return map_projection_to_dict(_engine().get_projection())

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    async def health_check():
        """System status."""
        engine = _engine()
        return {"status": "online", "table_version": engine.table.version}

    @app.get("/api/v1/projection")
    async def get_projection():
        return map_projection_to_dict(_engine().get_projection())

    @app.post("/api/v1/tap")
    async def tap(request: TapRequest):
        return _respond(_engine().tap(request.event))

    @app.post("/api/v1/undo")
    async def undo():
        return _respond(_engine().undo())

    @app.post("/api/v1/start/known-cycle")
    async def start_known_cycle():
        return _respond(_engine().start_known_cycle())

    @app.post("/api/v1/start/new-schedule")
    async def start_new_schedule():
        return _respond(_engine().start_new_schedule_unknown_cycle())

    @app.post("/api/v1/position/unknown")
    async def mark_unknown_position():
        return _respond(_engine().mark_unknown_position())

    @app.post("/api/v1/reset")
    async def hard_reset():
        return _respond(_engine().hard_reset())

    @app.get("/api/v1/save-code")
    async def export_save_code():
        return {"code": _engine().export_save_code()}

    @app.post("/api/v1/save-code")
    async def load_save_code(request: SaveCodeRequest):
        if not request.code.strip():
            raise HTTPException(status_code=400, detail="Please enter a save code")
        engine = _engine()
        if not engine.load_save_code(request.code):
            raise HTTPException(status_code=400, detail="Invalid save code")
        return map_projection_to_dict(engine.get_projection())

    return app


app = create_app()
