import json

import pytest
from pydantic import ValidationError

from conquest.models import SIM_CONFIG, AIDifficulty, MatchSettings, SimulationSettings
from conquest.models.sim_config import _CONFIG_PATH


def test_bundled_config_loads():
    loaded = SimulationSettings.load_json(_CONFIG_PATH)
    assert loaded == SIM_CONFIG
    assert SIM_CONFIG.levels.upgrade_cost == {1: 50, 2: 150}
    assert SIM_CONFIG.production.max_garrison == 4000
    assert SIM_CONFIG.ai_difficulty[AIDifficulty.EASY].decision_quality == pytest.approx(0.3)


def test_inverted_send_range_is_rejected(tmp_path):
    raw = json.loads(_CONFIG_PATH.read_text(encoding="utf-8"))
    raw["ai_difficulty"]["hard"]["min_send_percentage"] = 0.9
    raw["ai_difficulty"]["hard"]["max_send_percentage"] = 0.2
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(raw), encoding="utf-8")

    with pytest.raises(ValidationError):
        SimulationSettings.load_json(path)


def test_match_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CONQUEST_AI_OPPONENTS", "5")
    monkeypatch.setenv("CONQUEST_AI_DIFFICULTY", "hard")
    monkeypatch.setenv("CONQUEST_PLAYER2_AI", "false")

    settings = MatchSettings()

    assert settings.ai_opponents == 2
    assert settings.ai_difficulty == AIDifficulty.HARD
    assert settings.player2_ai is False


def test_negative_opponent_count_is_clamped():
    assert MatchSettings(ai_opponents=-3).ai_opponents == 0
