import json
from pathlib import Path
from typing import Annotated, Dict, Literal

from pydantic import BaseModel, PositiveInt, PositiveFloat, model_validator
from pydantic import Field  # type: ignore

from .world_config import AIDifficulty, Faction, PlanetSize

# # NOTE: The loaded config lives in-process only; every service that imports
# # this module gets its own validated copy.


class PlanetSizeProfile(BaseModel):
    radius: PositiveFloat
    base_production: PositiveFloat


class LevelModifiers(BaseModel):
    # keyed by current level
    production_multiplier: Dict[int, PositiveFloat]
    upgrade_cost: Dict[int, PositiveInt]


class ProductionModifiers(BaseModel):
    interval_ms: PositiveFloat
    max_garrison: PositiveInt


class LayoutModifiers(BaseModel):
    min_planets: PositiveInt
    max_planets: PositiveInt
    min_planet_distance: Annotated[float, Field(ge=0)]
    max_placement_attempts: PositiveInt
    quadrant_placement_attempts: PositiveInt
    fill_attempts: PositiveInt
    edge_padding: Annotated[float, Field(ge=0)]
    home_garrison: PositiveInt
    neutral_garrison_min: Annotated[int, Field(ge=0)]
    neutral_garrison_max: Annotated[int, Field(ge=0)]
    minimum_dimension: PositiveFloat
    default_width: PositiveFloat
    default_height: PositiveFloat
    size_weights: Dict[PlanetSize, Annotated[float, Field(ge=0)]]

    @model_validator(mode="after")
    def _check_ranges(self) -> "LayoutModifiers":
        if self.min_planets > self.max_planets:
            raise ValueError("min_planets must not exceed max_planets")
        if self.neutral_garrison_min > self.neutral_garrison_max:
            raise ValueError("neutral_garrison_min must not exceed neutral_garrison_max")
        return self


class FleetModifiers(BaseModel):
    speed: PositiveFloat  # units per second of simulated time
    arrival_snap_distance: PositiveFloat
    heading_smoothing: Annotated[float, Field(gt=0, le=1)]
    max_visible_ships: PositiveInt
    formation_spread: Annotated[float, Field(ge=0)]


class EngineModifiers(BaseModel):
    ai_decision_interval_ms: PositiveFloat
    max_frame_delta_ms: PositiveFloat
    ai_strategy: Literal["difficulty", "best_attack"]


class DifficultyProfile(BaseModel):
    decision_quality: Annotated[float, Field(ge=0, le=1)]
    aggressiveness: Annotated[float, Field(ge=0, le=1)]
    reinforce_chance: Annotated[float, Field(ge=0, le=1)]
    min_send_percentage: Annotated[float, Field(gt=0, le=1)]
    max_send_percentage: Annotated[float, Field(gt=0, le=1)]

    @model_validator(mode="after")
    def _check_send_range(self) -> "DifficultyProfile":
        if self.min_send_percentage > self.max_send_percentage:
            raise ValueError("min_send_percentage must not exceed max_send_percentage")
        return self


class SimulationSettings(BaseModel):
    planet_sizes: Dict[PlanetSize, PlanetSizeProfile]
    levels: LevelModifiers
    production: ProductionModifiers
    layout: LayoutModifiers
    fleet: FleetModifiers
    engine: EngineModifiers
    ai_difficulty: Dict[AIDifficulty, DifficultyProfile]
    faction_colors: Dict[Faction, str]

    @classmethod
    def load_json(cls, path: str | Path) -> "SimulationSettings":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


_BASE_DIR = Path(__file__).resolve().parents[1]
_CONFIG_PATH = _BASE_DIR / "config" / "sim_config.json"

SIM_CONFIG = SimulationSettings.load_json(_CONFIG_PATH)
