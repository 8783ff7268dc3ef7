#!/usr/bin/env python3
from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, List, Optional, Sequence

from conquest.helper.factions_helper import ai_players
from conquest.helper.world_helpers import distance
from conquest.models import SIM_CONFIG, DifficultyProfile
from conquest.models import (
    AIDifficulty,
    AiMove,
    Faction,
    Fleet,
    GameState,
    Planet,
)

logger = logging.getLogger(__name__)

# Difficulty profiles from JSON
DIFFICULTY_SETTINGS: Dict[AIDifficulty, DifficultyProfile] = SIM_CONFIG.ai_difficulty
DEFAULT_DIFFICULTY = AIDifficulty.MEDIUM
# Which strategy the engine wires into the tick loop
AI_STRATEGY: str = SIM_CONFIG.engine.ai_strategy

# Suboptimal play picks a random source among this many strongest planets
TOP_SOURCE_CHOICES = 3

# Target ownership weights (difficulty strategy)
OWN_WEAK_PLANET_WEIGHT = 1.5  # own planet worth reinforcing
OWN_PLANET_WEIGHT = 0.1  # own planet otherwise
NEUTRAL_TARGET_WEIGHT = 1.0
ENEMY_AGGRESSION_SCALE = 2.0  # enemy weight = aggressiveness * scale
WEAK_PLANET_RATIO = 0.5  # "weak" = garrison below this share of the source's

# Force sizing (difficulty strategy)
ENEMY_SEND_MARGIN = 5  # extra ships over the enemy garrison
NEUTRAL_SEND_MARGIN = 2  # extra ships over the neutral garrison
REINFORCE_SHARE = 0.5  # send about half the target's garrison
REINFORCE_MIN_SEND = 0.2
REINFORCE_MAX_SEND = 0.5

# Attack-value weights (best-attack strategy)
BEST_ATTACK_MIN_SOURCE_GARRISON = 5
DISTANCE_SCALE = 1000.0
DISTANCE_OFFSET = 10.0
UNDEFENDED_GARRISON_FACTOR = 10.0
PRODUCTION_SCALE = 10.0
NEUTRAL_TARGET_BONUS = 1.5
THREATENED_OWN_FACTOR = 0.8
COMMITTED_TARGET_PENALTY = 0.5
CONTESTED_TARGET_BONUS = 1.5
ATTACK_MARGIN = 1.2
MIN_ATTACK_SEND = 0.5
MAX_ATTACK_SEND = 0.9
BEST_REINFORCE_SEND = 0.3

# Player strength weights
GARRISON_WEIGHT = 1.0
FLEET_WEIGHT = 1.0
PRODUCTION_WEIGHT = 5.0
PLANET_COUNT_WEIGHT = 10.0


def difficulty_profile(state: GameState, faction: Faction) -> DifficultyProfile:
    player = state.player(faction)
    difficulty = player.ai_difficulty if player and player.ai_difficulty else DEFAULT_DIFFICULTY
    return DIFFICULTY_SETTINGS[difficulty]


def _owned(planets: Sequence[Planet], faction: Faction) -> List[Planet]:
    return [p for p in planets if p.owner == faction]


# ---------- Scoring (difficulty strategy) ----------


def distance_factor(source: Planet, target: Planet) -> float:
    """Closer targets score higher."""
    return 1.0 / (distance(source.x, source.y, target.x, target.y) + 1.0)


def garrison_factor(target: Planet) -> float:
    """Weaker targets score higher."""
    return 1.0 / (target.garrison + 1.0)


def ownership_factor(
    source: Planet,
    target: Planet,
    faction: Faction,
    reinforcing: bool,
    aggressiveness: float,
) -> float:
    if target.owner == faction:
        if reinforcing and target.garrison < source.garrison * WEAK_PLANET_RATIO:
            return OWN_WEAK_PLANET_WEIGHT
        return OWN_PLANET_WEIGHT
    if target.owner == Faction.NEUTRAL:
        return NEUTRAL_TARGET_WEIGHT
    return aggressiveness * ENEMY_AGGRESSION_SCALE


def score_target(
    source: Planet,
    target: Planet,
    faction: Faction,
    reinforcing: bool,
    aggressiveness: float,
) -> float:
    return (
        distance_factor(source, target)
        * garrison_factor(target)
        * ownership_factor(source, target, faction, reinforcing, aggressiveness)
    )


def best_scored_target(
    source: Planet,
    candidates: Sequence[Planet],
    faction: Faction,
    reinforcing: bool,
    aggressiveness: float,
) -> Planet:
    """Highest score wins; ties go to the earliest candidate."""
    best = candidates[0]
    best_score = float("-inf")
    for target in candidates:
        s = score_target(source, target, faction, reinforcing, aggressiveness)
        if s > best_score:
            best_score = s
            best = target
    return best


def send_percentage(
    source: Planet,
    target: Planet,
    faction: Faction,
    profile: DifficultyProfile,
) -> float:
    """Enough to beat the target plus a margin, or a modest top-up for own planets."""
    low = profile.min_send_percentage
    high = profile.max_send_percentage
    if target.owner == faction:
        wanted = target.garrison * REINFORCE_SHARE / source.garrison
        return min(REINFORCE_MAX_SEND, max(REINFORCE_MIN_SEND, wanted))
    margin = NEUTRAL_SEND_MARGIN if target.owner == Faction.NEUTRAL else ENEMY_SEND_MARGIN
    wanted = (target.garrison + margin) / source.garrison
    return min(high, max(low, wanted))


def keep_one_ship(percentage: float, source: Planet) -> float:
    return min(percentage, (source.garrison - 1) / source.garrison)


# ---------- Decisions ----------


def make_ai_decision(
    state: GameState, faction: Faction, rng: Optional[random.Random] = None
) -> Optional[AiMove]:
    """
    Pick at most one move for ``faction``, tuned by its difficulty profile.

    Low decision quality means a random source among the strongest few, a random
    target and a random force size; high quality means the strongest source, the
    best-scored target and a force sized to win.
    """
    rng = rng or random
    profile = difficulty_profile(state, faction)

    own_planets = _owned(state.planets, faction)
    if not own_planets:
        return None
    if all(p.garrison <= 1 for p in own_planets):
        return None
    targets = [p for p in state.planets if p.owner != faction]
    if not targets:
        return None

    reinforcing = rng.random() < profile.reinforce_chance and len(own_planets) > 1
    candidates = targets + own_planets if reinforcing else targets

    sources = sorted(own_planets, key=lambda p: p.garrison, reverse=True)
    source_index = 0
    if rng.random() > profile.decision_quality:
        source_index = rng.randrange(min(TOP_SOURCE_CHOICES, len(sources)))
    source = sources[source_index]
    if source.garrison <= 1:
        return None

    if rng.random() < profile.decision_quality:
        target = best_scored_target(
            source, candidates, faction, reinforcing, profile.aggressiveness
        )
    else:
        target = rng.choice(candidates)

    if target.id == source.id:
        others = [p for p in candidates if p.id != source.id]
        if not others:
            return None
        target = rng.choice(others)

    if rng.random() < profile.decision_quality:
        percentage = send_percentage(source, target, faction, profile)
    else:
        percentage = profile.min_send_percentage + rng.random() * (
            profile.max_send_percentage - profile.min_send_percentage
        )

    return AiMove(
        faction=faction,
        source_planet_id=source.id,
        target_planet_id=target.id,
        percentage=keep_one_ship(percentage, source),
    )


def _incoming_ships(fleets: Sequence[Fleet], target: Planet, faction: Faction) -> tuple[int, int]:
    """(friendly, enemy) ships already flying at ``target``."""
    friendly = 0
    enemy = 0
    for fl in fleets:
        if fl.target_planet_id != target.id:
            continue
        if fl.owner == faction:
            friendly += fl.ship_count
        else:
            enemy += fl.ship_count
    return friendly, enemy


def attack_value(source: Planet, target: Planet, state: GameState) -> float:
    """
    Desirability of sending from ``source`` to ``target``; higher = better.
    Accounts for ships already in flight toward the target.
    """
    dist = distance(source.x, source.y, target.x, target.y)
    dist_factor = DISTANCE_SCALE / (dist + DISTANCE_OFFSET)
    production_factor = target.production_rate * PRODUCTION_SCALE

    friendly, enemy = _incoming_ships(state.fleets, target, source.owner)
    adjusted_defense = target.garrison + enemy - friendly
    adjusted_garrison_factor = (
        source.garrison / adjusted_defense
        if adjusted_defense > 0
        else UNDEFENDED_GARRISON_FACTOR
    )

    value = dist_factor * adjusted_garrison_factor * production_factor

    if target.owner == Faction.NEUTRAL:
        value *= NEUTRAL_TARGET_BONUS
    elif target.owner == source.owner:
        # own planets only matter when they are about to fall
        under_threat = enemy > target.garrison + friendly
        value = value * THREATENED_OWN_FACTOR if under_threat else 0.0

    if friendly > 0:
        value *= COMMITTED_TARGET_PENALTY
    if enemy > 0:
        value *= CONTESTED_TARGET_BONUS
    return value


def find_best_attack_move(
    state: GameState, faction: Faction, rng: Optional[random.Random] = None
) -> Optional[AiMove]:
    """
    Deterministic alternative to make_ai_decision: score every (source, target)
    pair and return the single best one. ``rng`` is accepted for a common
    strategy signature and ignored.
    """
    own_planets = _owned(state.planets, faction)
    if not own_planets:
        return None

    best: Optional[AiMove] = None
    best_value = -1.0
    for source in own_planets:
        if source.garrison < BEST_ATTACK_MIN_SOURCE_GARRISON:
            continue
        for target in state.planets:
            if target.id == source.id:
                continue
            value = attack_value(source, target, state)
            if value <= best_value:
                continue
            if target.owner != faction:
                needed = target.garrison * ATTACK_MARGIN / source.garrison
                percentage = max(min(needed, MAX_ATTACK_SEND), MIN_ATTACK_SEND)
            else:
                percentage = BEST_REINFORCE_SEND
            best = AiMove(
                faction=faction,
                source_planet_id=source.id,
                target_planet_id=target.id,
                percentage=percentage,
            )
            best_value = value
    return best


STRATEGIES: Dict[str, Callable[..., Optional[AiMove]]] = {
    "difficulty": make_ai_decision,
    "best_attack": find_best_attack_move,
}


def generate_ai_moves(
    state: GameState,
    rng: Optional[random.Random] = None,
    strategy: str = AI_STRATEGY,
) -> List[AiMove]:
    """At most one move per AI player, in roster order."""
    decide = STRATEGIES.get(strategy, make_ai_decision)
    moves: List[AiMove] = []
    for player in ai_players(state.players):
        move = decide(state, player.id, rng)
        if move is not None:
            logger.debug(
                "AI %s: %d -> %d (%.2f)",
                player.id.value,
                move.source_planet_id,
                move.target_planet_id,
                move.percentage,
            )
            moves.append(move)
    return moves


def evaluate_player_strength(state: GameState, faction: Faction) -> float:
    planets = _owned(state.planets, faction)
    fleets = [f for f in state.fleets if f.owner == faction]
    total_garrison = sum(p.garrison for p in planets)
    total_fleet_ships = sum(f.ship_count for f in fleets)
    total_production = sum(p.production_rate for p in planets)
    return (
        total_garrison * GARRISON_WEIGHT
        + total_fleet_ships * FLEET_WEIGHT
        + total_production * PRODUCTION_WEIGHT
        + len(planets) * PLANET_COUNT_WEIGHT
    )


# ---------- Debug helper ----------


def get_ai_debug_state(state: GameState) -> dict[str, Any]:
    """
    Build a JSON-serializable snapshot of AI state for debugging UI.
    """
    factions_debug = []
    for player in ai_players(state.players):
        profile = difficulty_profile(state, player.id)
        factions_debug.append(
            {
                "id": player.id.value,
                "difficulty": (player.ai_difficulty or DEFAULT_DIFFICULTY).value,
                "strength": evaluate_player_strength(state, player.id),
                "planets_owned": len(_owned(state.planets, player.id)),
                "profile": profile.model_dump(),
            }
        )
    return {
        "tick": state.tick,
        "strategy": AI_STRATEGY,
        "factions": factions_debug,
    }
