import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from conquest.engine import GameEngine
from conquest.models import AIDifficulty, Faction, MatchSettings
from conquest.state_utils import snapshot_from_state


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, populate_by_name=True)

    port: int = Field(default=8000, alias="PORT")
    cors_allow_origins: str = Field(default="*", alias="CORS_ALLOW_ORIGINS")
    frame_interval_ms: float = Field(default=16.0, alias="FRAME_INTERVAL_MS")
    include_ai_state: bool = Field(default=False, alias="INCLUDE_AI_STATE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


class MatchIn(BaseModel):
    """New match setup; omitted fields keep the running match's values."""

    width: Optional[float] = None
    height: Optional[float] = None
    player1_ai: Optional[bool] = None
    player2_ai: Optional[bool] = None
    ai_opponents: Optional[int] = None
    ai_difficulty: Optional[AIDifficulty] = None
    seed: Optional[str] = None


class SelectIn(BaseModel):
    planet_id: int


class FleetIn(BaseModel):
    target_id: int = Field(..., description="Target planet id")
    percentage: float = Field(..., ge=0, le=1, description="Share of the source garrison")
    source_id: Optional[int] = Field(None, description="Defaults to the selected planet")
    faction: Optional[Faction] = Field(None, description="Issuing human player (hot-seat)")


class UpgradeIn(BaseModel):
    faction: Optional[Faction] = None


class SpeedIn(BaseModel):
    speed: float


class DifficultyIn(BaseModel):
    difficulty: AIDifficulty


def _engine(request: Request) -> GameEngine:
    return request.app.state.engine


def _now_ms() -> float:
    return time.monotonic() * 1000.0


async def _run_ticker(app: FastAPI, interval_s: float) -> None:
    while True:
        app.state.engine.tick(_now_ms())
        await asyncio.sleep(interval_s)


def create_app(
    config: Optional[ApiSettings] = None,
    match: Optional[MatchSettings] = None,
) -> FastAPI:
    config = config or ApiSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        print(
            f"[conquest-api] ticking every {config.frame_interval_ms:.0f}ms "
            f"planets={len(app.state.engine.state.planets)}"
        )
        task = asyncio.create_task(_run_ticker(app, config.frame_interval_ms / 1000.0))
        try:
            yield
        finally:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            print("[conquest-api] ticker stopped")

    app = FastAPI(title="Conquest API", version="0.1.0", lifespan=lifespan)
    app.state.engine = GameEngine(match or MatchSettings())
    app.state.config = config

    origins = [o.strip() for o in config.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _snapshot(engine: GameEngine) -> Dict[str, Any]:
        return snapshot_from_state(
            engine.state,
            is_running=engine.is_running,
            speed=engine.speed,
            include_ai_state=config.include_ai_state,
        )

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/snapshot")
    async def snapshot(request: Request) -> Dict[str, Any]:
        return _snapshot(_engine(request))

    @app.post("/start")
    async def start(request: Request) -> Dict[str, bool]:
        _engine(request).start()
        return {"accepted": True}

    @app.post("/pause")
    async def pause(request: Request) -> Dict[str, bool]:
        _engine(request).pause()
        return {"accepted": True}

    @app.post("/reset")
    async def reset(request: Request) -> Dict[str, bool]:
        _engine(request).reset()
        return {"accepted": True}

    @app.post("/match")
    async def new_match(payload: MatchIn, request: Request) -> Dict[str, Any]:
        """
        Replace the running match with a fresh one using the given setup.
        """
        current = _engine(request).settings
        updates = payload.model_dump(exclude_none=True)
        settings = MatchSettings(**{**current.model_dump(), **updates})
        request.app.state.engine = GameEngine(settings)
        return {"accepted": True, "snapshot": _snapshot(request.app.state.engine)}

    @app.post("/select")
    async def select(payload: SelectIn, request: Request) -> Dict[str, bool]:
        _engine(request).select(payload.planet_id)
        return {"accepted": True}

    @app.post("/deselect")
    async def deselect(request: Request) -> Dict[str, bool]:
        _engine(request).deselect()
        return {"accepted": True}

    @app.post("/fleets")
    async def send_fleet(payload: FleetIn, request: Request) -> Dict[str, bool]:
        accepted = _engine(request).send_fleet(
            payload.target_id,
            payload.percentage,
            source_id=payload.source_id,
            faction=payload.faction,
        )
        return {"accepted": accepted}

    @app.post("/upgrade")
    async def upgrade(request: Request, payload: Optional[UpgradeIn] = None) -> Dict[str, bool]:
        faction = payload.faction if payload else None
        return {"accepted": _engine(request).upgrade_planet_level(faction=faction)}

    @app.post("/redo")
    async def redo(request: Request) -> Dict[str, bool]:
        return {"accepted": _engine(request).redo_last_action()}

    @app.post("/speed")
    async def speed(payload: SpeedIn, request: Request) -> Dict[str, bool]:
        return {"accepted": _engine(request).set_speed(payload.speed)}

    @app.post("/difficulty")
    async def difficulty(payload: DifficultyIn, request: Request) -> Dict[str, bool]:
        _engine(request).set_ai_difficulty(payload.difficulty)
        return {"accepted": True}

    @app.websocket("/ws")
    async def ws(websocket: WebSocket) -> None:
        await websocket.accept()
        try:
            while True:
                await websocket.send_json(_snapshot(websocket.app.state.engine))
                await asyncio.sleep(config.frame_interval_ms / 1000.0)
        except WebSocketDisconnect:
            return

    return app


_CONFIG = ApiSettings()
app = create_app(_CONFIG)


if __name__ == "__main__":
    logging.basicConfig(
        level=_CONFIG.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "services.api.main:app", host="0.0.0.0", port=_CONFIG.port, reload=False
    )
