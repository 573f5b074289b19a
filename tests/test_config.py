"""Tests for settings loading."""

from pathlib import Path

import pytest
from conftest import make_profile

from ferry.config import Settings, load_settings, resolve_config_path, save_settings
from ferry.models import collapse_options

SETTINGS_YAML = """
default_uploader_profile_id: imgs
preferences:
  url_type: Markdown
  auto_copy: false
profiles:
  - id: imgs
    name: Image host
    uploader_name: custom
    uploader_options:
      - name: url
        value: https://upload.example/api
      - name: responseUrlFieldName
        value: link
history_path: ~/uploads/history.json
"""


class TestLoadSettings:
    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(SETTINGS_YAML)

        settings = load_settings(path)

        assert settings.default_uploader_profile_id == "imgs"
        assert settings.preferences.url_type == "Markdown"
        assert settings.preferences.auto_copy is False
        assert settings.preferences.restore_delay == 5.0
        assert collapse_options(settings.profiles[0].uploader_options) == {
            "url": "https://upload.example/api",
            "responseUrlFieldName": "link",
        }
        assert settings.history_path == Path.home() / "uploads" / "history.json"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")

        settings = load_settings(path)

        assert settings.profiles == []
        assert settings.preferences.url_type == "URL"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_round_trip(self, tmp_path):
        path = tmp_path / "out" / "settings.yaml"
        settings = Settings(
            default_uploader_profile_id="a",
            profiles=[make_profile("a", base="https://a.example")],
            history_path=tmp_path / "h.json",
        )
        save_settings(settings, path)

        assert load_settings(path) == settings


def test_resolve_config_path_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FERRY_CONFIG", str(tmp_path / "custom.yaml"))

    assert resolve_config_path() == tmp_path / "custom.yaml"
    assert resolve_config_path(Path("other.yaml")) == Path("other.yaml")
