#!/usr/bin/env python3
from __future__ import annotations

from typing import Optional, Tuple

from conquest.models.sim_config import SIM_CONFIG, SimulationSettings
from conquest.models.world_config import (
    AIDifficulty,
    Faction,
    Player,
    PlayerType,
)

PLAYING_FACTIONS: Tuple[Faction, ...] = (
    Faction.PLAYER1,
    Faction.PLAYER2,
    Faction.PLAYER3,
)


def faction_color(faction: Faction, sim_cfg: SimulationSettings = SIM_CONFIG) -> str:
    return sim_cfg.faction_colors.get(faction, "#ffffff")


def _make_player(
    faction: Faction, is_ai: bool, difficulty: AIDifficulty
) -> Player:
    player_type = PlayerType.AI if is_ai else PlayerType.HUMAN
    return Player(
        id=faction,
        type=player_type,
        color=faction_color(faction),
        ai_difficulty=difficulty if is_ai else None,
    )


def build_players(
    player1_ai: bool,
    player2_ai: bool,
    num_ai_opponents: int,
    difficulty: AIDifficulty,
) -> Tuple[Player, ...]:
    """
    Build the fixed roster for a match.
    Player1 and Player2 are always present; Player3 joins (always AI) when two AI
    opponents are requested. Difficulty applies to every AI player.
    """
    players = [
        _make_player(Faction.PLAYER1, player1_ai, difficulty),
        _make_player(Faction.PLAYER2, player2_ai, difficulty),
    ]
    if num_ai_opponents > 1:
        players.append(_make_player(Faction.PLAYER3, True, difficulty))
    return tuple(players)


def human_faction(players: Tuple[Player, ...]) -> Optional[Faction]:
    """First human player in roster order, or None for an all-AI match."""
    for player in players:
        if player.type == PlayerType.HUMAN:
            return player.id
    return None


def ai_players(players: Tuple[Player, ...]) -> Tuple[Player, ...]:
    return tuple(p for p in players if p.type == PlayerType.AI)


def with_difficulty(
    players: Tuple[Player, ...], difficulty: AIDifficulty
) -> Tuple[Player, ...]:
    """Return the roster with every AI player switched to the given difficulty."""
    return tuple(
        Player(
            id=p.id,
            type=p.type,
            color=p.color,
            ai_difficulty=difficulty if p.type == PlayerType.AI else None,
        )
        for p in players
    )
