import random
from dataclasses import replace
from typing import Sequence

import pytest

from conquest.engine import GameEngine
from conquest.helper.factions_helper import build_players
from conquest.helper.world_helpers import make_planet
from conquest.models import (
    AIDifficulty,
    Faction,
    Fleet,
    GameState,
    MatchSettings,
    Planet,
    PlanetSize,
)
from conquest.world import create_fleet


def build_state(
    planets: Sequence[Planet],
    fleets: Sequence[Fleet] = (),
    player1_ai: bool = False,
    player2_ai: bool = True,
    ai_opponents: int = 1,
    difficulty: AIDifficulty = AIDifficulty.MEDIUM,
) -> GameState:
    players = build_players(player1_ai, player2_ai, ai_opponents, difficulty)
    return GameState(
        planets=tuple(planets),
        fleets=tuple(fleets),
        players=players,
        num_ai_opponents=ai_opponents,
        next_fleet_id=len(fleets),
    )


def arrived_fleet(source: Planet, target: Planet, ships: int, fleet_id: int = 0) -> Fleet:
    """A fleet whose ships already sit on the target's center."""
    fleet = create_fleet(source, target, ships, fleet_id)
    parked = tuple(replace(s, x=target.x, y=target.y) for s in fleet.ships)
    return replace(fleet, ships=parked, x=target.x, y=target.y)


@pytest.fixture
def duel_planets():
    """Player1 home, a neutral and Player2's home, far apart."""
    return [
        make_planet(0, 100.0, 100.0, PlanetSize.MEDIUM, Faction.PLAYER1, 100),
        make_planet(1, 400.0, 100.0, PlanetSize.MEDIUM, Faction.NEUTRAL, 20),
        make_planet(2, 700.0, 500.0, PlanetSize.LARGE, Faction.PLAYER2, 10),
    ]


@pytest.fixture
def engine():
    return GameEngine(MatchSettings(seed="1234"), rng=random.Random(5))


def install(engine: GameEngine, state: GameState) -> None:
    engine._state = state
