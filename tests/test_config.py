"""Tests for configuration loading and defaults."""

import yaml

from stack_recommender.config import (
    RecommenderConfig,
    find_config_file,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from stack_recommender.schema import PainPoint, ScenarioType, TeamSize


class TestDefaults:
    """Default configuration values."""

    def test_scenario_weights_sum_to_one(self, config):
        for scenario_type in ScenarioType:
            assert abs(config.weights.scenarios[scenario_type].total() - 1.0) < 1e-9

    def test_every_pain_point_has_a_modifier(self, config):
        assert set(config.weights.pain_points) == set(PainPoint)

    def test_every_team_size_has_a_range(self, config):
        assert set(config.tool_ranges.team_ranges) == set(TeamSize)

    def test_get_config_is_a_singleton(self):
        assert get_config() is get_config()

    def test_reset_config(self):
        first = get_config()
        reset_config()
        assert get_config() is not first


class TestSaveAndLoad:
    """save_default_config and load_config round trip."""

    def test_saved_file_has_header_and_loads(self, tmp_path):
        path = tmp_path / "nested" / "recommender-config.yaml"
        save_default_config(path)

        text = path.read_text()
        assert text.startswith("# Stack Recommender Configuration")
        assert load_config(path) == RecommenderConfig()

    def test_partial_override(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "scoring": {"familiarity_bonus": 3},
            "tool_ranges": {"team_ranges": {"solo": {"min": 1, "max": 2}}},
        }))
        config = load_config(path)

        assert config.scoring.familiarity_bonus == 3
        assert config.scoring.anchor_challenge_ratio == 1.2
        assert config.tool_ranges.team_ranges[TeamSize.SOLO].max == 2
        assert get_config() is config

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == RecommenderConfig()


class TestFindConfigFile:
    """Config file discovery order."""

    def test_env_var_wins(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("{}")
        monkeypatch.setenv("STACK_RECOMMENDER_CONFIG", str(path))
        monkeypatch.chdir(tmp_path)
        (tmp_path / "recommender-config.yaml").write_text("{}")
        assert find_config_file() == path

    def test_current_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv("STACK_RECOMMENDER_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        (tmp_path / "recommender-config.yml").write_text("{}")
        assert find_config_file().name == "recommender-config.yml"

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STACK_RECOMMENDER_CONFIG", str(tmp_path / "missing.yaml"))
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        assert find_config_file() is None
