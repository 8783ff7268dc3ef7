#!/usr/bin/env python3
"""
Helpers for building public-facing snapshots from the engine state.
"""
from __future__ import annotations

from typing import Any, Dict, List

from conquest.helper.factions_helper import faction_color
from conquest.models import Faction, Fleet, GameSpeed, GameState, Planet
from conquest.puppet import evaluate_player_strength, get_ai_debug_state


def planet_payload(planet: Planet) -> Dict[str, Any]:
    return {
        "id": planet.id,
        "x": planet.x,
        "y": planet.y,
        "size": planet.size.value,
        "level": int(planet.level),
        "owner": planet.owner.value,
        "garrison": planet.garrison,
        "production_rate": planet.production_rate,
        "radius": planet.radius,
    }


def fleet_payload(fleet: Fleet) -> Dict[str, Any]:
    return {
        "id": fleet.id,
        "owner": fleet.owner.value,
        "ship_count": fleet.ship_count,
        "source_planet_id": fleet.source_planet_id,
        "target_planet_id": fleet.target_planet_id,
        "x": fleet.x,
        "y": fleet.y,
        "direction": list(fleet.direction),
        "ships": [
            {
                "x": s.x,
                "y": s.y,
                "angle": s.angle,
                "target_x": s.target_x,
                "target_y": s.target_y,
            }
            for s in fleet.ships
        ],
    }


def faction_summaries(state: GameState) -> List[Dict[str, Any]]:
    """
    Per-player totals for UI panels: planets owned, ships (garrisons plus
    in-flight fleets), production and overall strength.
    """
    summaries = []
    for player in state.players:
        owned = [p for p in state.planets if p.owner == player.id]
        in_flight = sum(f.ship_count for f in state.fleets if f.owner == player.id)
        summaries.append(
            {
                "id": player.id.value,
                "type": player.type.value,
                "color": player.color,
                "ai_difficulty": player.ai_difficulty.value if player.ai_difficulty else None,
                "planets": len(owned),
                "ships": sum(p.garrison for p in owned) + in_flight,
                "production": sum(p.production_rate for p in owned),
                "strength": evaluate_player_strength(state, player.id),
            }
        )
    return summaries


def snapshot_from_state(
    state: GameState,
    is_running: bool,
    speed: GameSpeed = GameSpeed.NORMAL,
    include_ai_state: bool = False,
) -> Dict[str, Any]:
    """
    Generate a snapshot payload suitable for API consumers.
    """
    ai_state = get_ai_debug_state(state) if include_ai_state else None
    return {
        "tick": state.tick,
        "generator_seed": state.generator_seed,
        "width": state.width,
        "height": state.height,
        "is_running": is_running,
        "speed": speed.value,
        "planets": [planet_payload(p) for p in state.planets],
        "fleets": [fleet_payload(f) for f in state.fleets],
        "players": faction_summaries(state),
        "selected_planet": state.selected_planet,
        "game_over": state.game_over,
        "winner": state.winner.value if state.winner else None,
        "num_ai_opponents": state.num_ai_opponents,
        "neutral_color": faction_color(Faction.NEUTRAL),
        "ai_state": ai_state,
    }
