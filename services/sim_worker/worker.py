#!/usr/bin/env python3
"""
Headless simulation worker.

Plays AI-versus-AI matches back to back with a fixed simulated step and reports
each result. Useful for soak-testing balance and the AI difficulty profiles.
"""
from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from conquest.engine import GameEngine
from conquest.models import AIDifficulty, Faction, MatchSettings
from conquest.state_utils import faction_summaries


class WorkerSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, populate_by_name=True)

    matches: int = Field(default=0, alias="WORKER_MATCHES")  # 0 = until stopped
    max_ticks: int = Field(default=20000, alias="WORKER_MAX_TICKS")
    fixed_step_ms: float = Field(default=50.0, alias="WORKER_STEP_MS")
    ai_opponents: int = Field(default=1, alias="WORKER_AI_OPPONENTS")
    ai_difficulty: AIDifficulty = Field(default=AIDifficulty.MEDIUM, alias="WORKER_DIFFICULTY")
    seed: Optional[str] = Field(default=None, alias="WORKER_SEED")
    # wall-clock pause between ticks; 0 runs as fast as possible
    tick_sleep: float = Field(default=0.0, alias="WORKER_TICK_SLEEP")
    report_every: int = Field(default=1000, alias="WORKER_REPORT_EVERY")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@dataclass
class MatchResult:
    match_number: int
    ticks: int
    winner: Optional[Faction]
    finished: bool
    captures: Dict[Faction, int]

    def describe(self) -> str:
        outcome = self.winner.value if self.winner else "draw"
        if not self.finished:
            outcome = "unfinished"
        captures = " ".join(f"{f.value}={n}" for f, n in sorted(self.captures.items()))
        return (
            f"match={self.match_number} ticks={self.ticks} "
            f"outcome={outcome} captures[{captures}]"
        )


class SimulationWorker:
    def __init__(self, config: Optional[WorkerSettings] = None) -> None:
        self.config = config or WorkerSettings()
        self.results: List[MatchResult] = []
        self._stop = asyncio.Event()

    def match_settings(self, match_number: int) -> MatchSettings:
        # each match of a seeded run gets its own reproducible layout
        seed = self.config.seed
        if seed is not None:
            seed = f"{seed}:{match_number}"
        return MatchSettings(
            player1_ai=True,
            player2_ai=True,
            ai_opponents=self.config.ai_opponents,
            ai_difficulty=self.config.ai_difficulty,
            seed=seed,
        )

    def new_engine(self) -> GameEngine:
        return GameEngine(self.match_settings(len(self.results) + 1))

    def _step(self, engine: GameEngine, captures: Dict[Faction, int]) -> None:
        summary = engine.advance(self.config.fixed_step_ms)
        for faction, count in summary.captures.items():
            captures[faction] = captures.get(faction, 0) + count

    def _result(self, engine: GameEngine, captures: Dict[Faction, int]) -> MatchResult:
        state = engine.state
        result = MatchResult(
            match_number=len(self.results) + 1,
            ticks=state.tick,
            winner=state.winner,
            finished=state.game_over,
            captures=captures,
        )
        self.results.append(result)
        return result

    def _report(self, engine: GameEngine) -> None:
        parts = [
            f"{s['id']}:planets={s['planets']} ships={s['ships']}"
            for s in faction_summaries(engine.state)
        ]
        print(f"[conquest-worker] tick={engine.state.tick} " + " ".join(parts))

    def play_match(self, max_ticks: Optional[int] = None) -> MatchResult:
        """Run one match to game over or the tick limit, synchronously."""
        limit = max_ticks if max_ticks is not None else self.config.max_ticks
        engine = self.new_engine()
        captures: Dict[Faction, int] = {}
        while engine.is_running and engine.state.tick < limit:
            self._step(engine, captures)
        return self._result(engine, captures)

    async def _play_match_async(self) -> MatchResult:
        engine = self.new_engine()
        captures: Dict[Faction, int] = {}
        while (
            not self._stop.is_set()
            and engine.is_running
            and engine.state.tick < self.config.max_ticks
        ):
            self._step(engine, captures)
            if self.config.report_every and engine.state.tick % self.config.report_every == 0:
                self._report(engine)
            # yield so signal handlers get a chance to run
            await asyncio.sleep(self.config.tick_sleep)
        return self._result(engine, captures)

    async def run(self) -> None:
        print(
            f"[conquest-worker] starting matches={self.config.matches or 'unbounded'} "
            f"step={self.config.fixed_step_ms}ms difficulty={self.config.ai_difficulty.value}"
        )
        try:
            while not self._stop.is_set():
                result = await self._play_match_async()
                print(f"[conquest-worker] {result.describe()}")
                if self.config.matches and len(self.results) >= self.config.matches:
                    break
        finally:
            print("[conquest-worker] stopping loop")

    def stop(self) -> None:
        self._stop.set()


async def main() -> None:
    config = WorkerSettings()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    worker = SimulationWorker(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
