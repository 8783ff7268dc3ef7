#!/usr/bin/env python3
"""
Engine facade: owns the authoritative GameState and advances it.

Every mutation goes through this class and replaces the state wholesale, so
a command never observes a half-applied tick. Commands are best-effort: they
return True when something changed and False for a rejected no-op.
"""
from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Optional

from conquest.helper.factions_helper import human_faction, with_difficulty
from conquest.helper.world_helpers import create_galaxy
from conquest.kinematics import update_fleet_positions
from conquest.models import SIM_CONFIG, MatchSettings
from conquest.models import (
    AIDifficulty,
    AiMove,
    Faction,
    Fleet,
    GameSpeed,
    GameState,
    LastAction,
    PlayerType,
    SendFleetAction,
    TickSummary,
    UpgradeAction,
)
from conquest.puppet import AI_STRATEGY, generate_ai_moves
from conquest.world import (
    check_game_over,
    dispatch_fleet,
    process_fleet_arrivals,
    produce_planets,
    upgrade_planet,
)

logger = logging.getLogger(__name__)

PRODUCTION_INTERVAL_MS: float = SIM_CONFIG.production.interval_ms
AI_DECISION_INTERVAL_MS: float = SIM_CONFIG.engine.ai_decision_interval_ms
MAX_FRAME_DELTA_MS: float = SIM_CONFIG.engine.max_frame_delta_ms


class GameEngine:
    def __init__(
        self,
        settings: Optional[MatchSettings] = None,
        seed: Optional[object] = None,
        rng: Optional[random.Random] = None,
        ai_strategy: str = AI_STRATEGY,
    ) -> None:
        self.settings = settings or MatchSettings()
        self._seed = seed if seed is not None else self.settings.seed
        self._rng = rng or random.Random()
        self._ai_strategy = ai_strategy
        self._speed = GameSpeed.NORMAL
        self._last_action: Optional[LastAction] = None
        self._last_summary: Optional[TickSummary] = None
        self._last_timestamp: Optional[float] = None
        self._production_timer = 0.0
        self._ai_timer = 0.0
        # matches start running, as after a reset
        self._running = True
        self._state = self._new_state()

    # ---------- Read side ----------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def speed(self) -> GameSpeed:
        return self._speed

    @property
    def last_action(self) -> Optional[LastAction]:
        return self._last_action

    @property
    def last_summary(self) -> Optional[TickSummary]:
        return self._last_summary

    def _new_state(self) -> GameState:
        s = self.settings
        return create_galaxy(
            s.width,
            s.height,
            player1_ai=s.player1_ai,
            ai_difficulty=s.ai_difficulty,
            player2_ai=s.player2_ai,
            num_ai_opponents=s.ai_opponents,
            seed=self._seed,
        )

    def _reset_clock(self) -> None:
        self._last_timestamp = None
        self._production_timer = 0.0
        self._ai_timer = 0.0

    # ---------- Lifecycle ----------

    def start(self) -> None:
        self._running = True
        self._reset_clock()

    def pause(self) -> None:
        self._running = False

    def reset(self) -> None:
        """Fresh layout, cleared last action, running again."""
        self._reset_clock()
        self._last_action = None
        self._last_summary = None
        self._state = self._new_state()
        self._running = True

    def set_speed(self, speed: float) -> bool:
        try:
            new_speed = GameSpeed(speed)
        except ValueError:
            logger.debug("Rejected unknown speed %r", speed)
            return False
        self._speed = new_speed
        return True

    def set_ai_difficulty(self, difficulty: AIDifficulty) -> None:
        """Switch every AI player in the current match to ``difficulty``."""
        self.settings = self.settings.model_copy(update={"ai_difficulty": difficulty})
        self._state = replace(
            self._state, players=with_difficulty(self._state.players, difficulty)
        )

    # ---------- Commands ----------

    def _issuer(self, faction: Optional[Faction]) -> Optional[Faction]:
        if faction is not None:
            player = self._state.player(faction)
            if player is None or player.type != PlayerType.HUMAN:
                return None
            return faction
        return human_faction(self._state.players)

    def select(self, planet_id: int) -> None:
        self._state = replace(self._state, selected_planet=planet_id)

    def deselect(self) -> None:
        self._state = replace(self._state, selected_planet=None)

    def send_fleet(
        self,
        target_id: int,
        percentage: float,
        source_id: Optional[int] = None,
        faction: Optional[Faction] = None,
    ) -> bool:
        state = self._state
        if state.game_over:
            return False
        issuer = self._issuer(faction)
        if issuer is None:
            logger.debug("Rejected send: no human player to issue it")
            return False
        if source_id is None:
            source_id = state.selected_planet
        source = state.planet(source_id)
        if source is None or source.owner != issuer:
            logger.debug("Rejected send from %r for %s", source_id, issuer.value)
            return False

        dispatched = dispatch_fleet(
            state.planets,
            source.id,
            target_id,
            percentage,
            state.next_fleet_id,
            self._rng,
        )
        if dispatched is None:
            return False
        planets, fleet = dispatched
        self._state = replace(
            state,
            planets=planets,
            fleets=state.fleets + (fleet,),
            next_fleet_id=state.next_fleet_id + 1,
        )
        self._last_action = SendFleetAction(
            faction=issuer,
            source_planet_id=source.id,
            target_planet_id=target_id,
            percentage=percentage,
        )
        return True

    def upgrade_planet_level(self, faction: Optional[Faction] = None) -> bool:
        """Upgrade the selected planet if the issuing player owns it and can pay."""
        state = self._state
        if state.game_over:
            return False
        issuer = self._issuer(faction)
        planet = state.planet(state.selected_planet)
        if issuer is None or planet is None or planet.owner != issuer:
            return False

        planets, upgraded = upgrade_planet(planet.id, state.planets)
        if not upgraded:
            return False
        self._state = replace(state, planets=planets)
        self._last_action = UpgradeAction(faction=issuer, planet_id=planet.id)
        return True

    def redo_last_action(self) -> bool:
        """Replay the last human command against the current state."""
        action = self._last_action
        if action is None or self._state.game_over:
            return False
        if isinstance(action, SendFleetAction):
            return self.send_fleet(
                action.target_planet_id,
                action.percentage,
                source_id=action.source_planet_id,
                faction=action.faction,
            )
        # upgrades act on the selection
        self.select(action.planet_id)
        return self.upgrade_planet_level(faction=action.faction)

    # ---------- Ticking ----------

    def tick(self, timestamp_ms: float) -> Optional[TickSummary]:
        """
        Host frame callback. The first frame after start/reset only records the
        reference time; later frames advance by the clamped, speed-scaled delta.
        """
        if not self._running:
            return None
        if self._last_timestamp is None:
            self._last_timestamp = timestamp_ms
            return None
        wall_delta = max(0.0, timestamp_ms - self._last_timestamp)
        self._last_timestamp = timestamp_ms
        delta = min(wall_delta, MAX_FRAME_DELTA_MS) * self._speed.value
        return self.advance(delta)

    def _materialize(
        self, moves: List[AiMove], state: GameState, summary: TickSummary
    ) -> GameState:
        planets = state.planets
        fleets: List[Fleet] = list(state.fleets)
        next_id = state.next_fleet_id
        for move in moves:
            # an earlier move this tick may have drained the source
            source = next((p for p in planets if p.id == move.source_planet_id), None)
            if source is None or source.owner != move.faction:
                continue
            dispatched = dispatch_fleet(
                planets,
                move.source_planet_id,
                move.target_planet_id,
                move.percentage,
                next_id,
                self._rng,
            )
            if dispatched is None:
                continue
            planets, fleet = dispatched
            fleets.append(fleet)
            next_id += 1
            summary.fleets_launched += 1
        return replace(state, planets=planets, fleets=tuple(fleets), next_fleet_id=next_id)

    def advance(self, delta_ms: float) -> TickSummary:
        """Run one tick of ``delta_ms`` simulated milliseconds."""
        state = self._state
        summary = TickSummary(tick=state.tick + 1)

        fleets = update_fleet_positions(state.fleets, delta_ms)
        fleets, planets = process_fleet_arrivals(fleets, state.planets, summary)

        self._production_timer += delta_ms
        if self._production_timer >= PRODUCTION_INTERVAL_MS:
            planets = produce_planets(planets)
            self._production_timer = 0.0
            summary.produced = True

        game_over, winner = check_game_over(planets)
        state = replace(state, planets=planets, fleets=fleets)

        self._ai_timer += delta_ms
        if self._ai_timer >= AI_DECISION_INTERVAL_MS:
            self._ai_timer = 0.0
            if not game_over:
                moves = generate_ai_moves(state, self._rng, self._ai_strategy)
                state = self._materialize(moves, state, summary)

        self._state = replace(
            state, game_over=game_over, winner=winner, tick=summary.tick
        )
        self._last_summary = summary
        if game_over:
            logger.info(
                "Game over at tick %d, winner=%s",
                summary.tick,
                winner.value if winner else "draw",
            )
            self.pause()
        return summary
