import math

import pytest

from conquest.kinematics import (
    FLEET_SPEED_PER_MS,
    blend_heading,
    update_fleet,
    update_fleet_positions,
    update_ship,
    wrap_angle,
)
from conquest.models import Faction, Fleet, Ship


def _fleet(ships):
    return Fleet(
        id=0,
        owner=Faction.PLAYER1,
        ship_count=10,
        source_planet_id=0,
        target_planet_id=1,
        x=0.0,
        y=0.0,
        direction=(1.0, 0.0),
        ships=tuple(ships),
    )


def test_ship_moves_at_configured_speed():
    ship = Ship(x=0.0, y=0.0, angle=0.0, target_x=1000.0, target_y=0.0)

    moved = update_ship(ship, 1000.0)

    assert moved.x == pytest.approx(FLEET_SPEED_PER_MS * 1000.0)
    assert moved.y == pytest.approx(0.0)
    assert moved.angle == pytest.approx(0.0)


def test_ship_snaps_when_close_or_overshooting():
    near = Ship(x=0.0, y=0.0, angle=0.0, target_x=1.5, target_y=0.0)
    overshoot = Ship(x=0.0, y=0.0, angle=0.0, target_x=10.0, target_y=0.0)

    snapped = update_ship(near, 1.0)
    assert (snapped.x, snapped.y) == (1.5, 0.0)

    jumped = update_ship(overshoot, 1000.0)
    assert (jumped.x, jumped.y) == (10.0, 0.0)


def test_zero_delta_does_not_move():
    ship = Ship(x=0.0, y=0.0, angle=0.3, target_x=500.0, target_y=0.0)
    moved = update_ship(ship, 0.0)
    assert (moved.x, moved.y) == (0.0, 0.0)


def test_heading_turns_the_short_way():
    assert wrap_angle(3 * math.pi / 2) == pytest.approx(-math.pi / 2)
    # just below +pi toward just above -pi crosses the seam, not the long way round
    turned = blend_heading(math.pi - 0.1, -math.pi + 0.1, factor=0.5)
    assert turned == pytest.approx(math.pi)


def test_heading_is_low_pass_filtered():
    ship = Ship(x=0.0, y=0.0, angle=0.0, target_x=0.0, target_y=1000.0)

    moved = update_ship(ship, 100.0)

    # a tenth of the way toward pi/2
    assert moved.angle == pytest.approx(math.pi / 2 * 0.1)


def test_fleet_position_is_ship_centroid():
    ships = [
        Ship(x=0.0, y=0.0, angle=0.0, target_x=1000.0, target_y=0.0),
        Ship(x=0.0, y=10.0, angle=0.0, target_x=1000.0, target_y=10.0),
    ]

    fleet = update_fleet(_fleet(ships), 100.0)

    step = FLEET_SPEED_PER_MS * 100.0
    assert fleet.x == pytest.approx(step)
    assert fleet.y == pytest.approx(5.0)
    assert fleet.ship_count == 10


def test_update_fleet_positions_keeps_order():
    a = _fleet([Ship(x=0.0, y=0.0, angle=0.0, target_x=100.0, target_y=0.0)])
    b = _fleet([Ship(x=50.0, y=0.0, angle=0.0, target_x=100.0, target_y=0.0)])

    moved = update_fleet_positions((a, b), 16.0)

    assert len(moved) == 2
    assert moved[0].x < moved[1].x
