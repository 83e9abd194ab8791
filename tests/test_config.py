"""
Unit tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from beanscope.config import CONFIG, CONFIG_DIR, BeanScopeConfig, load_config


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config == BeanScopeConfig()
        assert config.default_max_depth == 2
        assert config.abs_max_xml_size == 4 * 1024 * 1024
        assert config.invoke_max_time == 5

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("default_max_depth: 4\ninvoke_max_time: 10\nunknown_key: 1\n", encoding="utf-8")
        config = load_config(path)
        assert config.default_max_depth == 4
        assert config.invoke_max_time == 10

    def test_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("default_max_depth: 4\n", encoding="utf-8")
        monkeypatch.setenv("BEANSCOPE_DEFAULT_MAX_DEPTH", "7")
        assert load_config(path).default_max_depth == 7

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "other.yaml"
        path.write_text("url_length_limit: 100\n", encoding="utf-8")
        monkeypatch.setenv("BEANSCOPE_CONFIG", str(path))
        assert load_config().url_length_limit == 100

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("default_max_depth: -1\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)


class TestExclusionsPath:
    def test_relative_to_config_dir(self):
        assert BeanScopeConfig(exclusions_file="rules.yaml").exclusions_path() == CONFIG_DIR / "rules.yaml"

    def test_absolute(self, tmp_path):
        path = tmp_path / "rules.yaml"
        assert BeanScopeConfig(exclusions_file=str(path)).exclusions_path() == path

    def test_disabled(self):
        assert BeanScopeConfig(exclusions_file=None).exclusions_path() is None


class TestConfigProxy:
    def test_replace_swaps_snapshot(self):
        before = CONFIG.snapshot
        CONFIG.replace(default_max_depth=9)
        assert CONFIG.default_max_depth == 9
        assert before is not CONFIG.snapshot

    def test_snapshots_are_immutable(self):
        with pytest.raises(ValidationError):
            CONFIG.snapshot.default_max_depth = 3

    def test_reload(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("default_max_count: 50\n", encoding="utf-8")
        CONFIG.reload(path)
        assert CONFIG.default_max_count == 50
        assert CONFIG.to_dict()["default_max_count"] == 50
