from .sim_config import SIM_CONFIG, SimulationSettings, DifficultyProfile
from .match_config import MatchSettings
from .world_config import (
    Faction,
    PlanetSize,
    PlanetLevel,
    PlayerType,
    AIDifficulty,
    GameSpeed,
    Planet,
    Ship,
    Fleet,
    Player,
    GameState,
    SendFleetAction,
    UpgradeAction,
    LastAction,
    AiMove,
    TickSummary,
)

__all__ = [
    "SIM_CONFIG",
    "SimulationSettings",
    "DifficultyProfile",
    "MatchSettings",
    "Faction",
    "PlanetSize",
    "PlanetLevel",
    "PlayerType",
    "AIDifficulty",
    "GameSpeed",
    "Planet",
    "Ship",
    "Fleet",
    "Player",
    "GameState",
    "SendFleetAction",
    "UpgradeAction",
    "LastAction",
    "AiMove",
    "TickSummary",
]
