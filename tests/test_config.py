"""
Tests for configuration loading and validation.
"""

import json
import stat

import pytest
from pydantic import ValidationError

from watchfolder_agent.config import Config, ConfigManager
from watchfolder_agent.exceptions import ConfigError

BASE = {
    "server": "https://upload.example.com/",
    "user_id": "user-1",
    "user_key": "secret",
    "folder_id": "folder-9",
    "watch_folder": "/data/watch",
    "info_file_path": "/data/state/folder-info.txt",
}


class TestConfig:
    """Tests for the Config model."""

    def test_defaults(self):
        config = Config(**BASE)

        assert config.interval_ms == 10000
        assert config.file_pattern == "*.mp4"
        assert config.part_size_bytes == 1048576
        assert config.max_concurrent_uploads == 1
        assert config.server == "https://upload.example.com"

    def test_legacy_setting_names_are_accepted(self):
        config = Config(**{
            "Server": "media.example.com",
            "InfoFilePath": "C:/agent/info.txt",
            "WatchFolder": "C:/videos",
            "UserID": "u",
            "UserKey": "k",
            "FolderID": "f",
        })

        assert config.server == "https://media.example.com"
        assert config.watch_folder == "C:/videos"
        assert config.user_key == "k"

    def test_log_level_is_normalized(self):
        assert Config(**BASE, log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("watch_folder", ""),
        ("watch_folder", "bad\x00path"),
        ("info_file_path", "   "),
        ("file_pattern", "sub/*.mp4"),
        ("interval_ms", 0),
        ("log_level", "LOUD"),
        ("server", ""),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Config(**{**BASE, field: value})

    def test_masked_hides_user_key(self):
        assert Config(**BASE).masked()["user_key"] == "********"


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_missing_file_raises_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigManager(tmp_path / "config.json").load()

    def test_invalid_json_raises_config_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            ConfigManager(path).load()

    def test_invalid_values_raise_config_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({**BASE, "watch_folder": ""}))

        with pytest.raises(ConfigError):
            ConfigManager(path).load()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "conf" / "config.json"
        manager = ConfigManager(path)

        manager.save(Config(**BASE, interval_ms=2500))
        loaded = ConfigManager(path).load()

        assert loaded.interval_ms == 2500
        assert loaded.user_key == "secret"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_ensure_directories(self, tmp_path):
        path = tmp_path / "config.json"
        manager = ConfigManager(path)
        manager.save(Config(**{
            **BASE,
            "info_file_path": str(tmp_path / "state" / "info.txt"),
            "log_dir": str(tmp_path / "logs"),
            "event_log_path": str(tmp_path / "events" / "events.jsonl"),
            "pid_file": str(tmp_path / "run" / "agent.pid"),
        }))

        manager.ensure_directories()

        for name in ("state", "logs", "events", "run"):
            assert (tmp_path / name).is_dir()
