#!/usr/bin/env python3
from __future__ import annotations


import logging
import math
import random
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from conquest.helper.world_helpers import (
    MAX_GARRISON,
    distance,
    production_rate,
)


from conquest.models import SIM_CONFIG
from conquest.models import (
    Faction,
    Fleet,
    Planet,
    PlanetLevel,
    Ship,
    TickSummary,
)

logger = logging.getLogger(__name__)

UPGRADE_COSTS: Dict[int, int] = SIM_CONFIG.levels.upgrade_cost
MAX_LEVEL = PlanetLevel.THREE

# Fleet presentation config
MAX_VISIBLE_SHIPS = SIM_CONFIG.fleet.max_visible_ships
FORMATION_SPREAD = SIM_CONFIG.fleet.formation_spread

# ---------- Production & upgrades ----------


def round_production(rate: float) -> int:
    """Round half up, so a 0.5 ships/interval planet still grows."""
    return int(math.floor(rate + 0.5))


def clamp_garrison(value: int) -> int:
    return max(0, min(MAX_GARRISON, int(value)))


def upgrade_cost(level: PlanetLevel) -> Optional[int]:
    """Cost to go from ``level`` to the next one, None at max level."""
    if level >= MAX_LEVEL:
        return None
    return UPGRADE_COSTS[int(level)]


def _replace_planet(planets: Sequence[Planet], updated: Planet) -> Tuple[Planet, ...]:
    return tuple(updated if p.id == updated.id else p for p in planets)


def _find_planet(planets: Sequence[Planet], planet_id: Optional[int]) -> Optional[Planet]:
    if planet_id is None:
        return None
    for planet in planets:
        if planet.id == planet_id:
            return planet
    return None


def produce_planets(planets: Sequence[Planet]) -> Tuple[Planet, ...]:
    """One production interval: owned planets grow, neutral planets never do."""
    produced: List[Planet] = []
    for planet in planets:
        if planet.owner == Faction.NEUTRAL:
            produced.append(planet)
            continue
        garrison = clamp_garrison(planet.garrison + round_production(planet.production_rate))
        produced.append(replace(planet, garrison=garrison))
    return tuple(produced)


def upgrade_planet(
    planet_id: int, planets: Sequence[Planet]
) -> Tuple[Tuple[Planet, ...], bool]:
    """
    Raise a planet one level if it is owned, below max level and can pay.
    Returns the (possibly unchanged) planets and whether the upgrade happened.
    """
    planet = _find_planet(planets, planet_id)
    if planet is None or planet.owner == Faction.NEUTRAL:
        return tuple(planets), False
    cost = upgrade_cost(planet.level)
    if cost is None or planet.garrison < cost:
        return tuple(planets), False

    new_level = PlanetLevel(int(planet.level) + 1)
    upgraded = replace(
        planet,
        level=new_level,
        garrison=planet.garrison - cost,
        production_rate=production_rate(planet.size, new_level),
    )
    return _replace_planet(planets, upgraded), True


# ---------- Combat ----------


def resolve_fleet_arrival(
    fleet: Fleet, planets: Sequence[Planet]
) -> Tuple[Tuple[Planet, ...], bool]:
    """
    Apply one arrived fleet to its target's current state.
    Same owner reinforces; otherwise 1:1 attrition and the attacker takes the
    planet only with strictly more ships. Returns (planets, captured).
    """
    target = _find_planet(planets, fleet.target_planet_id)
    if target is None:
        return tuple(planets), False

    if target.owner == fleet.owner:
        reinforced = replace(target, garrison=clamp_garrison(target.garrison + fleet.ship_count))
        return _replace_planet(planets, reinforced), False

    attackers = fleet.ship_count
    defenders = target.garrison
    remaining_attackers = max(0, attackers - defenders)
    remaining_defenders = max(0, defenders - attackers)

    if remaining_attackers > 0:
        captured = replace(target, owner=fleet.owner, garrison=remaining_attackers)
        return _replace_planet(planets, captured), True

    held = replace(target, garrison=remaining_defenders)
    return _replace_planet(planets, held), False


def has_arrived(fleet: Fleet, target: Planet) -> bool:
    return distance(fleet.x, fleet.y, target.x, target.y) <= target.radius


def process_fleet_arrivals(
    fleets: Sequence[Fleet],
    planets: Sequence[Planet],
    summary: Optional[TickSummary] = None,
) -> Tuple[Tuple[Fleet, ...], Tuple[Planet, ...]]:
    """
    Resolve every fleet that reached its target, in fleet-list order.
    Fleets arriving at the same planet in the same tick fight one after another
    against whatever the previous resolution left behind.
    """
    remaining: List[Fleet] = []
    current = tuple(planets)
    for fleet in fleets:
        target = _find_planet(current, fleet.target_planet_id)
        if target is None or not has_arrived(fleet, target):
            remaining.append(fleet)
            continue
        old_owner = target.owner
        current, captured = resolve_fleet_arrival(fleet, current)
        if summary is not None:
            summary.fleets_arrived += 1
            if captured:
                summary.captures[fleet.owner] = summary.captures.get(fleet.owner, 0) + 1
        if captured:
            logger.debug(
                "Planet #%d captured by %s from %s",
                target.id,
                fleet.owner.value,
                old_owner.value,
            )
    return tuple(remaining), current


def check_game_over(planets: Sequence[Planet]) -> Tuple[bool, Optional[Faction]]:
    """
    One non-neutral owner left wins; none left is a draw; otherwise play on.
    """
    owners = {p.owner for p in planets if p.owner != Faction.NEUTRAL}
    if len(owners) == 1:
        return True, next(iter(owners))
    if not owners:
        return True, None
    return False, None


# ---------- Fleets ----------


def create_fleet(
    source: Planet,
    target: Planet,
    ship_count: int,
    fleet_id: int,
    rng: Optional[random.Random] = None,
) -> Fleet:
    """
    Build a fleet leaving ``source`` for ``target``. At most MAX_VISIBLE_SHIPS
    ship records are created, jittered around the source; ship_count stays the
    authoritative strength.
    """
    rng = rng or random
    dx = target.x - source.x
    dy = target.y - source.y
    dist = math.hypot(dx, dy) or 1.0
    angle = math.atan2(dy, dx)

    ships = []
    for _ in range(min(ship_count, MAX_VISIBLE_SHIPS)):
        offset_x = (rng.random() - 0.5) * FORMATION_SPREAD
        offset_y = (rng.random() - 0.5) * FORMATION_SPREAD
        ships.append(
            Ship(
                x=source.x + offset_x,
                y=source.y + offset_y,
                angle=angle,
                target_x=target.x,
                target_y=target.y,
            )
        )

    return Fleet(
        id=fleet_id,
        owner=source.owner,
        ship_count=ship_count,
        source_planet_id=source.id,
        target_planet_id=target.id,
        x=source.x,
        y=source.y,
        direction=(dx / dist, dy / dist),
        ships=tuple(ships),
    )


def dispatch_fleet(
    planets: Sequence[Planet],
    source_id: int,
    target_id: int,
    percentage: float,
    fleet_id: int,
    rng: Optional[random.Random] = None,
) -> Optional[Tuple[Tuple[Planet, ...], Fleet]]:
    """
    Take floor(garrison * percentage) ships off the source and put them in a
    new fleet. Returns None (nothing changes) for a missing or neutral source,
    a missing target, source == target, a non-finite or non-positive
    percentage, or a zero-ship send.
    Ownership checks against the issuing player are the caller's job.
    """
    if source_id == target_id:
        return None
    source = _find_planet(planets, source_id)
    target = _find_planet(planets, target_id)
    if source is None or target is None:
        return None
    if source.owner == Faction.NEUTRAL:
        return None
    if not math.isfinite(percentage) or percentage <= 0:
        return None

    ships_to_send = int(math.floor(source.garrison * percentage))
    if ships_to_send <= 0 or ships_to_send > source.garrison:
        return None

    fleet = create_fleet(source, target, ships_to_send, fleet_id, rng)
    depleted = replace(source, garrison=source.garrison - ships_to_send)
    return _replace_planet(planets, depleted), fleet
