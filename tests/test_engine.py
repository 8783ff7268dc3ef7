import random

import pytest

from conftest import arrived_fleet, build_state, install
from conquest.engine import AI_DECISION_INTERVAL_MS, MAX_FRAME_DELTA_MS, GameEngine
from conquest.helper.world_helpers import MAX_GARRISON, make_planet
from conquest.models import (
    AIDifficulty,
    Faction,
    GameSpeed,
    MatchSettings,
    PlanetLevel,
    PlanetSize,
    PlayerType,
    SendFleetAction,
    UpgradeAction,
)


def test_new_engine_runs_with_fresh_layout(engine):
    assert engine.is_running
    assert engine.state.tick == 0
    assert engine.state.fleets == ()
    assert engine.last_action is None


def test_first_frame_only_sets_reference(engine):
    assert engine.tick(1000.0) is None
    assert engine.state.tick == 0

    summary = engine.tick(1016.0)
    assert summary.tick == 1
    assert engine.state.tick == 1


def test_pause_stops_ticking_and_start_resets_clock(engine):
    engine.tick(0.0)
    engine.pause()
    assert not engine.is_running
    assert engine.tick(16.0) is None

    engine.start()
    # a long pause must not be integrated in one go
    assert engine.tick(600_000.0) is None
    assert engine.tick(600_016.0).produced is False


def test_frame_delta_is_clamped(engine):
    engine.tick(0.0)
    summary = engine.tick(50_000.0)
    assert summary.produced
    # the clamped delta fires production once and leaves nothing banked
    assert engine.tick(50_016.0).produced is False
    assert engine.state.tick == 2
    assert MAX_FRAME_DELTA_MS == 1000


def test_speed_changes(engine):
    assert engine.set_speed(2.0)
    assert engine.speed is GameSpeed.FAST
    assert engine.set_speed(0.5)
    assert engine.speed is GameSpeed.SLOW
    assert not engine.set_speed(3.0)
    assert engine.speed is GameSpeed.SLOW


def test_send_fleet_from_selection(engine, duel_planets):
    install(engine, build_state(duel_planets))

    engine.select(0)
    assert engine.send_fleet(1, 0.5)

    state = engine.state
    assert state.planet(0).garrison == 50
    assert len(state.fleets) == 1
    assert state.fleets[0].ship_count == 50
    assert state.fleets[0].target_planet_id == 1
    assert engine.last_action == SendFleetAction(Faction.PLAYER1, 0, 1, 0.5)


def test_zero_ship_send_changes_nothing(engine, duel_planets):
    duel_planets[0] = make_planet(0, 100.0, 100.0, PlanetSize.MEDIUM, Faction.PLAYER1, 1)
    install(engine, build_state(duel_planets))
    before = engine.state

    assert not engine.send_fleet(1, 0.5, source_id=0)
    assert engine.state is before
    assert engine.last_action is None


@pytest.mark.parametrize("percentage", [float("nan"), float("inf"), float("-inf"), -0.5])
def test_non_finite_or_negative_send_changes_nothing(engine, duel_planets, percentage):
    install(engine, build_state(duel_planets))
    before = engine.state

    assert not engine.send_fleet(1, percentage, source_id=0)
    assert engine.state is before
    assert engine.last_action is None


def test_cannot_send_from_someone_elses_planet(engine, duel_planets):
    install(engine, build_state(duel_planets))

    assert not engine.send_fleet(0, 0.5, source_id=2)  # AI-owned
    assert not engine.send_fleet(0, 0.5, source_id=1)  # neutral
    assert not engine.send_fleet(1, 0.5)  # nothing selected
    assert engine.state.fleets == ()


def test_upgrade_and_redo(engine, duel_planets):
    duel_planets[0] = make_planet(0, 100.0, 100.0, PlanetSize.MEDIUM, Faction.PLAYER1, 60)
    install(engine, build_state(duel_planets))

    engine.select(0)
    assert engine.upgrade_planet_level()
    assert engine.state.planet(0).level == PlanetLevel.TWO
    assert engine.state.planet(0).garrison == 10
    assert engine.last_action == UpgradeAction(Faction.PLAYER1, 0)

    # too poor for level 3 right now
    assert not engine.redo_last_action()

    rich = make_planet(0, 100.0, 100.0, PlanetSize.MEDIUM, Faction.PLAYER1, 200, PlanetLevel.TWO)
    install(engine, build_state([rich] + duel_planets[1:]))
    engine.deselect()
    assert engine.redo_last_action()
    assert engine.state.planet(0).level == PlanetLevel.THREE
    assert engine.state.planet(0).garrison == 50
    assert engine.state.selected_planet == 0


def test_failed_upgrade_is_not_recorded(engine, duel_planets):
    duel_planets[0] = make_planet(0, 100.0, 100.0, PlanetSize.MEDIUM, Faction.PLAYER1, 30)
    install(engine, build_state(duel_planets))

    engine.select(0)
    assert not engine.upgrade_planet_level()
    engine.select(2)
    assert not engine.upgrade_planet_level()
    assert engine.last_action is None


def test_redo_send_revalidates_ownership(engine, duel_planets):
    install(engine, build_state(duel_planets))
    assert engine.send_fleet(1, 0.5, source_id=0)
    assert engine.redo_last_action()
    assert engine.state.planet(0).garrison == 25

    lost = make_planet(0, 100.0, 100.0, PlanetSize.MEDIUM, Faction.PLAYER2, 25)
    install(engine, build_state([lost] + duel_planets[1:]))
    before = engine.state
    assert not engine.redo_last_action()
    assert engine.state is before


def test_redo_without_history(engine):
    assert not engine.redo_last_action()


def test_reset_clears_last_action(engine, duel_planets):
    install(engine, build_state(duel_planets))
    engine.send_fleet(1, 0.5, source_id=0)
    engine.pause()

    engine.reset()

    assert engine.is_running
    assert engine.last_action is None
    assert engine.state.fleets == ()
    assert engine.state.tick == 0


def test_capturing_last_enemy_planet_ends_and_pauses(engine, duel_planets):
    p1, neutral, p2 = duel_planets
    fleet = arrived_fleet(p1, p2, 50)
    install(engine, build_state(duel_planets, fleets=[fleet]))

    summary = engine.advance(16.0)

    state = engine.state
    assert state.planet(2).owner == Faction.PLAYER1
    assert state.planet(2).garrison == 40
    assert summary.captures == {Faction.PLAYER1: 1}
    assert state.game_over
    assert state.winner == Faction.PLAYER1
    assert not engine.is_running


def test_game_over_blocks_commands_but_not_selection(engine, duel_planets):
    p1, neutral, _ = duel_planets
    install(engine, build_state([p1, neutral]))
    engine.advance(16.0)
    assert engine.state.game_over

    engine.select(0)
    assert engine.state.selected_planet == 0
    assert not engine.send_fleet(1, 0.5)
    engine.deselect()
    assert engine.state.selected_planet is None


def test_ai_moves_are_materialized(engine):
    summary = engine.advance(AI_DECISION_INTERVAL_MS)

    assert summary.produced
    assert summary.fleets_launched == 1
    fleet = engine.state.fleets[0]
    assert fleet.owner == Faction.PLAYER2
    assert fleet.ship_count > 0
    assert engine.state.next_fleet_id == 1


def test_set_ai_difficulty_updates_ai_players_only(engine):
    engine.set_ai_difficulty(AIDifficulty.HARD)

    for player in engine.state.players:
        if player.type == PlayerType.AI:
            assert player.ai_difficulty == AIDifficulty.HARD
        else:
            assert player.ai_difficulty is None
    assert engine.settings.ai_difficulty == AIDifficulty.HARD


def test_hot_seat_commands_need_the_issuing_faction(duel_planets):
    engine = GameEngine(MatchSettings(player2_ai=False, seed="9"), rng=random.Random(1))
    duel_planets[2] = make_planet(2, 700.0, 500.0, PlanetSize.LARGE, Faction.PLAYER2, 40)
    install(engine, build_state(duel_planets, player2_ai=False))

    assert not engine.send_fleet(1, 0.5, source_id=2)
    assert engine.send_fleet(1, 0.5, source_id=2, faction=Faction.PLAYER2)
    assert engine.last_action.faction == Faction.PLAYER2


def test_all_ai_match_rejects_commands(duel_planets):
    engine = GameEngine(MatchSettings(player1_ai=True, seed="9"), rng=random.Random(1))
    install(engine, build_state(duel_planets, player1_ai=True))

    assert not engine.send_fleet(1, 0.5, source_id=0)
    assert not engine.send_fleet(1, 0.5, source_id=0, faction=Faction.PLAYER1)


def test_garrisons_stay_in_range_over_a_long_ai_match():
    settings = MatchSettings(player1_ai=True, ai_opponents=2, ai_difficulty=AIDifficulty.HARD, seed="77")
    engine = GameEngine(settings, rng=random.Random(4))

    for _ in range(600):
        engine.advance(50.0)
        for planet in engine.state.planets:
            assert 0 <= planet.garrison <= MAX_GARRISON
        for fleet in engine.state.fleets:
            assert fleet.ship_count > 0
        if not engine.is_running:
            break

    ids = [f.id for f in engine.state.fleets]
    assert len(ids) == len(set(ids))


@pytest.mark.parametrize("speed", [0.5, 2.0])
def test_speed_scales_simulated_time(speed):
    engine = GameEngine(MatchSettings(seed="5"), rng=random.Random(2))
    engine.set_speed(speed)
    engine.tick(0.0)
    summary = engine.tick(600.0)
    # 600ms of wall time only reaches the 1000ms production interval at 2x
    assert summary.produced is (speed == 2.0)
