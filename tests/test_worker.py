import asyncio

from conquest.models import AIDifficulty, PlayerType
from services.sim_worker.worker import SimulationWorker, WorkerSettings


def _worker(**overrides):
    settings = dict(max_ticks=200, fixed_step_ms=100.0, seed="3", report_every=0)
    settings.update(overrides)
    return SimulationWorker(WorkerSettings(**settings))


def test_worker_plays_all_ai_matches():
    worker = _worker()
    engine = worker.new_engine()
    assert all(p.type == PlayerType.AI for p in engine.state.players)


def test_play_match_respects_tick_limit():
    worker = _worker(ai_difficulty=AIDifficulty.HARD)

    result = worker.play_match(max_ticks=150)

    assert result.ticks <= 150
    assert result.match_number == 1
    assert worker.results == [result]
    assert result.finished or result.ticks == 150
    assert "match=1" in result.describe()


def test_run_stops_after_configured_matches(capsys):
    worker = _worker(matches=2, max_ticks=40)

    asyncio.run(worker.run())

    assert len(worker.results) == 2
    out = capsys.readouterr().out
    assert "[conquest-worker] starting" in out
    assert "[conquest-worker] stopping loop" in out


def test_stop_before_run_plays_nothing():
    worker = _worker(matches=1)
    worker.stop()

    asyncio.run(worker.run())

    assert worker.results == []


def test_seeded_run_varies_layout_per_match():
    worker = _worker()

    first = worker.match_settings(1)
    second = worker.match_settings(2)

    assert first.seed == "3:1"
    assert second.seed == "3:2"
    assert worker.match_settings(1).seed == first.seed


def test_unseeded_run_leaves_layout_random():
    assert _worker(seed=None).match_settings(1).seed is None
