#!/usr/bin/env python3
"""
Per-tick motion for fleets.

Ships are presentation records: they glide toward their target point and turn
smoothly. Only the fleet centroid matters for arrival testing.
"""
from __future__ import annotations

import math
from dataclasses import replace
from typing import Sequence, Tuple

from conquest.models import SIM_CONFIG
from conquest.models import Fleet, Ship

# units per millisecond of simulated time
FLEET_SPEED_PER_MS: float = SIM_CONFIG.fleet.speed / 1000.0
ARRIVAL_SNAP_DISTANCE: float = SIM_CONFIG.fleet.arrival_snap_distance
HEADING_SMOOTHING: float = SIM_CONFIG.fleet.heading_smoothing


def wrap_angle(angle: float) -> float:
    """Wrap an angle difference into [-pi, pi]."""
    return math.atan2(math.sin(angle), math.cos(angle))


def blend_heading(current: float, desired: float, factor: float = HEADING_SMOOTHING) -> float:
    """Turn ``current`` a fraction of the way toward ``desired`` along the short arc."""
    return current + wrap_angle(desired - current) * factor


def update_ship(ship: Ship, delta_ms: float, speed_per_ms: float = FLEET_SPEED_PER_MS) -> Ship:
    dx = ship.target_x - ship.x
    dy = ship.target_y - ship.y
    dist = math.hypot(dx, dy)
    step = speed_per_ms * max(0.0, delta_ms)

    # snap instead of stepping past the target
    if dist < ARRIVAL_SNAP_DISTANCE or step >= dist:
        return replace(ship, x=ship.target_x, y=ship.target_y)

    heading = blend_heading(ship.angle, math.atan2(dy, dx))
    return replace(
        ship,
        x=ship.x + dx / dist * step,
        y=ship.y + dy / dist * step,
        angle=heading,
    )


def centroid(ships: Sequence[Ship]) -> Tuple[float, float]:
    count = len(ships)
    return (
        sum(s.x for s in ships) / count,
        sum(s.y for s in ships) / count,
    )


def update_fleet(fleet: Fleet, delta_ms: float) -> Fleet:
    if not fleet.ships:
        return fleet
    ships = tuple(update_ship(s, delta_ms) for s in fleet.ships)
    x, y = centroid(ships)
    return replace(fleet, ships=ships, x=x, y=y)


def update_fleet_positions(fleets: Sequence[Fleet], delta_ms: float) -> Tuple[Fleet, ...]:
    """Advance every fleet by ``delta_ms`` of simulated (speed-scaled) time."""
    return tuple(update_fleet(f, delta_ms) for f in fleets)
