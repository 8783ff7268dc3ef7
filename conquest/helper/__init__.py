from conquest.helper.world_helpers import (
    distance,
    production_rate,
    make_planet,
    is_overlapping,
    normalize_seed,
    normalize_dimensions,
    generate_planets,
    assign_home_planets,
    create_galaxy,
)
from conquest.helper.factions_helper import (
    build_players,
    human_faction,
    ai_players,
    faction_color,
    with_difficulty,
)


__all__ = [
    "distance",
    "production_rate",
    "make_planet",
    "is_overlapping",
    "normalize_seed",
    "normalize_dimensions",
    "generate_planets",
    "assign_home_planets",
    "create_galaxy",
    "build_players",
    "human_faction",
    "ai_players",
    "faction_color",
    "with_difficulty",
]
