from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Dict, Tuple, Union


class Faction(str, Enum):
    NEUTRAL = "neutral"
    PLAYER1 = "player1"
    PLAYER2 = "player2"
    PLAYER3 = "player3"


class PlanetSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class PlanetLevel(IntEnum):
    ONE = 1
    TWO = 2
    THREE = 3


class PlayerType(str, Enum):
    HUMAN = "human"
    AI = "ai"


class AIDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GameSpeed(float, Enum):
    SLOW = 0.5
    NORMAL = 1.0
    FAST = 2.0


@dataclass(frozen=True)
class Planet:
    id: int
    x: float
    y: float
    size: PlanetSize
    level: PlanetLevel
    owner: Faction
    garrison: int  # 0..MAX_GARRISON
    production_rate: float  # base_production(size) * multiplier(level)
    radius: float  # fixed by size


@dataclass(frozen=True)
class Ship:
    """Presentation-only kinematic record; never used for combat math."""

    x: float
    y: float
    angle: float  # radians, low-pass filtered toward direction of travel
    target_x: float
    target_y: float


@dataclass(frozen=True)
class Fleet:
    id: int
    owner: Faction
    ship_count: int  # authoritative strength, constant for the fleet's lifetime
    source_planet_id: int
    target_planet_id: int
    x: float  # centroid of ships
    y: float
    direction: Tuple[float, float]  # unit vector source -> target
    ships: Tuple[Ship, ...] = ()


@dataclass(frozen=True)
class Player:
    id: Faction
    type: PlayerType
    color: str
    ai_difficulty: Optional[AIDifficulty] = None  # only set for AI players


@dataclass(frozen=True)
class GameState:
    planets: Tuple[Planet, ...]
    fleets: Tuple[Fleet, ...]
    players: Tuple[Player, ...]
    selected_planet: Optional[int] = None
    game_over: bool = False
    winner: Optional[Faction] = None
    num_ai_opponents: int = 1
    width: float = 800.0
    height: float = 600.0
    tick: int = 0
    next_fleet_id: int = 0
    generator_seed: Optional[int] = None

    def planet(self, planet_id: Optional[int]) -> Optional[Planet]:
        if planet_id is None:
            return None
        for planet in self.planets:
            if planet.id == planet_id:
                return planet
        return None

    def player(self, faction: Faction) -> Optional[Player]:
        for player in self.players:
            if player.id == faction:
                return player
        return None


@dataclass(frozen=True)
class SendFleetAction:
    """Replayable human send-fleet command."""

    faction: Faction
    source_planet_id: int
    target_planet_id: int
    percentage: float


@dataclass(frozen=True)
class UpgradeAction:
    """Replayable human upgrade command."""

    faction: Faction
    planet_id: int


LastAction = Union[SendFleetAction, UpgradeAction]


@dataclass(frozen=True)
class AiMove:
    """A single move intent produced by the AI for one faction."""

    faction: Faction
    source_planet_id: int
    target_planet_id: int
    percentage: float


@dataclass
class TickSummary:
    """Aggregated outcome of a single tick."""

    tick: int
    captures: Dict[Faction, int] = field(default_factory=dict)
    fleets_arrived: int = 0
    fleets_launched: int = 0
    produced: bool = False
