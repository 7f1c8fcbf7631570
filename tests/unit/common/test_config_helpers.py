"""Tests for common.config module."""

import pytest

from common.config import ConfigSingleton, find_config_path, load_yaml


class TestFindConfigPath:
    def test_named_config(self, tmp_path) -> None:
        (tmp_path / "prod.yaml").write_text("heuristic: quick\n")
        assert find_config_path("prod", tmp_path) == tmp_path / "prod.yaml"

    def test_default_name(self, tmp_path) -> None:
        (tmp_path / "prod.yaml").write_text("")
        assert find_config_path(None, tmp_path) == tmp_path / "prod.yaml"

    def test_env_var(self, tmp_path, monkeypatch) -> None:
        (tmp_path / "staging.yaml").write_text("")
        monkeypatch.setenv("TEST_CONFIG_ENV", "staging")
        assert find_config_path(None, tmp_path, env_var="TEST_CONFIG_ENV") == tmp_path / "staging.yaml"

    def test_explicit_yaml_path(self, tmp_path) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("")
        assert find_config_path(str(path), tmp_path / "configs") == path

    def test_missing_config_raises(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            find_config_path("missing", tmp_path)


class TestLoadYaml:
    def test_loads_mapping(self, tmp_path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("num_workers: 3\nsources:\n  - bbc\n")
        assert load_yaml(path) == {"num_workers": 3, "sources": ["bbc"]}

    def test_empty_file_gives_empty_dict(self, tmp_path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_non_mapping_raises(self, tmp_path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("- bbc\n- npr\n")
        with pytest.raises(ValueError):
            load_yaml(path)


class TestConfigSingleton:
    def test_loads_lazily_once(self) -> None:
        calls = []

        def loader():
            calls.append(1)
            return {"loaded": True}

        manager = ConfigSingleton(loader)
        assert calls == []
        assert manager.get() == {"loaded": True}
        manager.get()
        assert calls == [1]

    def test_set_and_reset(self) -> None:
        manager = ConfigSingleton(lambda: "loaded")
        manager.set("override")
        assert manager.get() == "override"
        manager.reset()
        assert manager.get() == "loaded"

    def test_no_loader_raises(self) -> None:
        with pytest.raises(RuntimeError):
            ConfigSingleton().get()
