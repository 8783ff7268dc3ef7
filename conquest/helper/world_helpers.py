import hashlib
import logging
import math
import random
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

# Pairwise distances for picking well separated home worlds
from scipy.spatial.distance import cdist  # type: ignore

# simulation config import
from conquest.models import SIM_CONFIG
from conquest.models import (
    AIDifficulty,
    Faction,
    GameState,
    Planet,
    PlanetLevel,
    PlanetSize,
)

from .factions_helper import build_players

logger = logging.getLogger(__name__)

# simulation config variable mapping
PLANET_SIZES = SIM_CONFIG.planet_sizes
LEVEL_PRODUCTION_MULTIPLIER = SIM_CONFIG.levels.production_multiplier
MAX_GARRISON: int = SIM_CONFIG.production.max_garrison
# Layout budgets
MIN_PLANETS: int = SIM_CONFIG.layout.min_planets
MAX_PLANETS: int = SIM_CONFIG.layout.max_planets
MIN_PLANET_DISTANCE: float = SIM_CONFIG.layout.min_planet_distance
MAX_PLACEMENT_ATTEMPTS: int = SIM_CONFIG.layout.max_placement_attempts
QUADRANT_PLACEMENT_ATTEMPTS: int = SIM_CONFIG.layout.quadrant_placement_attempts
FILL_ATTEMPTS: int = SIM_CONFIG.layout.fill_attempts
EDGE_PADDING: float = SIM_CONFIG.layout.edge_padding
HOME_GARRISON: int = SIM_CONFIG.layout.home_garrison
NEUTRAL_GARRISON_RANGE: Tuple[int, int] = (
    SIM_CONFIG.layout.neutral_garrison_min,
    SIM_CONFIG.layout.neutral_garrison_max,
)
MINIMUM_DIMENSION: float = SIM_CONFIG.layout.minimum_dimension
DEFAULT_WIDTH: float = SIM_CONFIG.layout.default_width
DEFAULT_HEIGHT: float = SIM_CONFIG.layout.default_height
SIZE_WEIGHTS = SIM_CONFIG.layout.size_weights


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def production_rate(size: PlanetSize, level: PlanetLevel) -> float:
    """Ships per production interval for a planet of this size and level."""
    return PLANET_SIZES[size].base_production * LEVEL_PRODUCTION_MULTIPLIER[int(level)]


def make_planet(
    planet_id: int,
    x: float,
    y: float,
    size: PlanetSize,
    owner: Faction = Faction.NEUTRAL,
    garrison: int = 0,
    level: PlanetLevel = PlanetLevel.ONE,
) -> Planet:
    return Planet(
        id=planet_id,
        x=x,
        y=y,
        size=size,
        level=level,
        owner=owner,
        garrison=max(0, min(MAX_GARRISON, int(garrison))),
        production_rate=production_rate(size, level),
        radius=PLANET_SIZES[size].radius,
    )


def is_overlapping(
    x: float,
    y: float,
    radius: float,
    planets: Iterable[Planet],
    buffer: float = MIN_PLANET_DISTANCE,
    ignore_id: Optional[int] = None,
) -> bool:
    """Centers closer than the sum of radii plus the buffer overlap."""
    for planet in planets:
        if planet.id == ignore_id:
            continue
        if distance(x, y, planet.x, planet.y) < radius + planet.radius + buffer:
            return True
    return False


# ---------- Seeds & dimensions ----------

SEED_BITS = 48
SEED_MASK = (1 << SEED_BITS) - 1


def normalize_seed(value: Optional[object]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value & SEED_MASK
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            return int(cleaned, 0) & SEED_MASK
        except ValueError:
            digest = hashlib.sha256(cleaned.encode("utf-8")).hexdigest()
            return int(digest, 16) & SEED_MASK
    if isinstance(value, (bytes, bytearray)):
        digest = hashlib.sha256(value).hexdigest()
        return int(digest, 16) & SEED_MASK
    digest = hashlib.sha256(str(value).encode("utf-8")).hexdigest()
    return int(digest, 16) & SEED_MASK


def normalize_dimensions(width: Optional[float], height: Optional[float]) -> Tuple[float, float]:
    """Replace degenerate plane dimensions with defaults instead of failing."""
    w = float(width) if width else 0.0
    h = float(height) if height else 0.0
    if w < MINIMUM_DIMENSION or h < MINIMUM_DIMENSION:
        logger.warning(
            "Invalid dimensions for game initialization: %sx%s. Using defaults.",
            width,
            height,
        )
    if w < MINIMUM_DIMENSION:
        w = DEFAULT_WIDTH
    if h < MINIMUM_DIMENSION:
        h = DEFAULT_HEIGHT
    return w, h


# ---------- Planet placement ----------


def _roll_weighted_size(rng: random.Random) -> PlanetSize:
    sizes = list(SIZE_WEIGHTS.keys())
    weights = [SIZE_WEIGHTS[s] for s in sizes]
    return rng.choices(sizes, weights=weights, k=1)[0]


def _roll_neutral_garrison(rng: random.Random) -> int:
    low, high = NEUTRAL_GARRISON_RANGE
    return rng.randint(low, high)


def _random_neutral_planet(
    rng: random.Random,
    width: float,
    height: float,
    planets: Sequence[Planet],
    planet_id: int,
) -> Optional[Planet]:
    """
    Try to place one uniformly sized neutral planet anywhere on the plane.
    Returns None when the attempt budget runs out.
    """
    span_x = max(0.0, width - EDGE_PADDING * 2)
    span_y = max(0.0, height - EDGE_PADDING * 2)
    sizes = list(PlanetSize)
    for _ in range(MAX_PLACEMENT_ATTEMPTS):
        x = EDGE_PADDING + rng.random() * span_x
        y = EDGE_PADDING + rng.random() * span_y
        size = rng.choice(sizes)
        if is_overlapping(x, y, PLANET_SIZES[size].radius, planets):
            continue
        return make_planet(
            planet_id, x, y, size, garrison=_roll_neutral_garrison(rng)
        )
    return None


def generate_planets(
    width: float,
    height: float,
    rng: random.Random,
    min_planets: int = MIN_PLANETS,
    max_planets: int = MAX_PLANETS,
) -> List[Planet]:
    """
    Place Player1's home world and the neutral planets.

    Player1 starts in the bottom-left region. Neutral planets are spread over the
    other quadrants first (2-3 each) and then filled in at random until the
    target count or the attempt budget is exhausted. Placements that cannot
    find room are skipped, so the result may fall short of ``min_planets``.
    """
    planets: List[Planet] = []
    num_planets = rng.randint(min_planets, max_planets)
    logger.debug(
        "Attempting to generate %d planets in plane %sx%s", num_planets, width, height
    )

    large_radius = PLANET_SIZES[PlanetSize.LARGE].radius
    padding = max(large_radius + 10, width * 0.05)

    home_x = padding + rng.random() * max(0.0, width / 3 - padding * 2)
    home_y = height / 2 + rng.random() * max(0.0, height / 2 - padding * 2)
    planets.append(
        make_planet(
            0,
            home_x,
            home_y,
            PlanetSize.LARGE,
            owner=Faction.PLAYER1,
            garrison=HOME_GARRISON,
        )
    )

    min_neutral = max(num_planets - 2, min_planets - 2)
    neutral_created = 0

    quadrants = [
        (0.0, width / 2, 0.0, height / 2),  # top-left
        (width / 2, width, 0.0, height / 2),  # top-right
        (0.0, width / 2, height / 2, height),  # bottom-left (home)
        (width / 2, width, height / 2, height),  # bottom-right
    ]

    # First pass: a few planets in every quadrant except the home one
    for min_x, max_x, min_y, max_y in quadrants:
        if min_x == 0.0 and min_y == height / 2:
            continue
        if neutral_created >= min_neutral:
            break
        per_quadrant = min(rng.randint(2, 3), min_neutral - neutral_created)
        span_x = max(0.0, max_x - min_x - padding * 2)
        span_y = max(0.0, max_y - min_y - padding * 2)
        for _ in range(per_quadrant):
            for _attempt in range(QUADRANT_PLACEMENT_ATTEMPTS):
                x = min_x + padding + rng.random() * span_x
                y = min_y + padding + rng.random() * span_y
                size = _roll_weighted_size(rng)
                if is_overlapping(x, y, PLANET_SIZES[size].radius, planets):
                    continue
                planets.append(
                    make_planet(
                        len(planets), x, y, size, garrison=_roll_neutral_garrison(rng)
                    )
                )
                neutral_created += 1
                break

    # Second pass: fill in the rest anywhere
    attempts = 0
    while neutral_created < min_neutral and attempts < FILL_ATTEMPTS:
        planet = _random_neutral_planet(rng, width, height, planets, len(planets))
        if planet is not None:
            planets.append(planet)
            neutral_created += 1
        attempts += 1

    if len(planets) < min_planets:
        logger.warning(
            "Placed only %d of at least %d planets in %sx%s",
            len(planets),
            min_planets,
            width,
            height,
        )
    else:
        logger.debug(
            "Generated %d planets (%d neutral)", len(planets), neutral_created
        )
    return planets


def _can_promote_to_large(planets: Sequence[Planet], index: int) -> bool:
    planet = planets[index]
    return not is_overlapping(
        planet.x,
        planet.y,
        PLANET_SIZES[PlanetSize.LARGE].radius,
        planets,
        ignore_id=planet.id,
    )


def assign_home_planets(
    planets: Sequence[Planet], rivals: Sequence[Faction]
) -> List[Planet]:
    """
    Hand a home world to every rival of Player1 (whose home is planets[0]).

    Each rival takes the neutral planet with the largest summed distance to the
    homes chosen so far. The home becomes Large when that keeps the layout
    overlap-free, and always starts with Player1's garrison.
    """
    result = list(planets)
    if not result or not rivals:
        return result

    points = np.array([(p.x, p.y) for p in result], dtype=float)
    homes: List[int] = [0]
    start_garrison = result[0].garrison

    for faction in rivals:
        candidates = [i for i, p in enumerate(result) if p.owner == Faction.NEUTRAL]
        if not candidates:
            logger.warning("No neutral planet left for %s's home world", faction.value)
            break
        scores = cdist(points[homes], points).sum(axis=0)
        promotable = [i for i in candidates if _can_promote_to_large(result, i)]
        pool = promotable or candidates
        best = max(pool, key=lambda i: scores[i])
        chosen = result[best]
        size = PlanetSize.LARGE if best in promotable else chosen.size
        result[best] = make_planet(
            chosen.id,
            chosen.x,
            chosen.y,
            size,
            owner=faction,
            garrison=start_garrison,
        )
        homes.append(best)

    return result


def create_galaxy(
    width: Optional[float],
    height: Optional[float],
    player1_ai: bool = False,
    ai_difficulty: AIDifficulty = AIDifficulty.MEDIUM,
    player2_ai: bool = True,
    num_ai_opponents: int = 1,
    seed: Optional[object] = None,
) -> GameState:
    """
    Build a fresh match: roster, planets and home worlds.
    Never raises for bad dimensions; defaults are substituted instead.
    """
    width, height = normalize_dimensions(width, height)
    num_ai_opponents = max(0, min(2, int(num_ai_opponents)))
    effective_seed = normalize_seed(seed)
    if effective_seed is None:
        effective_seed = random.SystemRandom().randrange(1 << SEED_BITS)
    rng = random.Random(effective_seed)

    players = build_players(player1_ai, player2_ai, num_ai_opponents, ai_difficulty)
    planets = generate_planets(width, height, rng)
    rivals = [p.id for p in players if p.id != Faction.PLAYER1]
    planets = assign_home_planets(planets, rivals)

    logger.info(
        "New match: %d planets, players=%s",
        len(planets),
        ",".join(f"{p.id.value}:{p.type.value}" for p in players),
    )
    return GameState(
        planets=tuple(planets),
        fleets=(),
        players=players,
        selected_planet=None,
        game_over=False,
        winner=None,
        num_ai_opponents=num_ai_opponents,
        width=width,
        height=height,
        generator_seed=effective_seed,
    )
