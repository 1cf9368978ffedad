"""Tests for configuration loading."""

import pytest

from music_shelf.core.config import (
    Config,
    PlayerConfig,
    StorageConfig,
    create_default_config,
    get_data_dir,
    get_storage_root,
    load_config,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Point XDG dirs at tmp_path and clear overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("MUSIC_SHELF_ROOT", raising=False)
    monkeypatch.delenv("MUSIC_SHELF_LOG_LEVEL", raising=False)


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_writes_default(self, tmp_path):
        path = tmp_path / "config.toml"

        config = load_config(path)

        assert config == Config()
        assert path.read_text(encoding="utf-8") == create_default_config()

    def test_default_file_parses_to_defaults(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(create_default_config(), encoding="utf-8")

        assert load_config(path) == Config()

    def test_sections_are_read(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            """
[storage]
root = "~/shelf"
bundled_songs_dir = "/opt/songs"

[player]
volume = 40
tick_interval = 0.25

[logging]
level = "debug"
console_output = true
""",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.storage == StorageConfig(root="~/shelf", bundled_songs_dir="/opt/songs")
        assert config.player.volume == 40
        assert config.player.tick_interval == 0.25
        assert config.player.load_timeout == PlayerConfig().load_timeout
        assert config.logging.level == "DEBUG"
        assert config.logging.console_output is True

    def test_invalid_player_section_falls_back(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[player]\nvolume = 400\n", encoding="utf-8")

        assert load_config(path).player == PlayerConfig()

    def test_invalid_log_level_falls_back(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[logging]\nlevel = "loud"\n', encoding="utf-8")

        assert load_config(path).logging.level == "INFO"

    def test_broken_toml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[storage\nroot = ", encoding="utf-8")

        assert load_config(path) == Config()

    def test_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('[storage]\nroot = "/from/file"\n', encoding="utf-8")
        monkeypatch.setenv("MUSIC_SHELF_ROOT", str(tmp_path / "from-env"))
        monkeypatch.setenv("MUSIC_SHELF_LOG_LEVEL", "warning")

        config = load_config(path)

        assert config.storage.root == str(tmp_path / "from-env")
        assert config.logging.level == "WARNING"


class TestStorageRoot:
    """Tests for get_storage_root."""

    def test_defaults_to_data_dir(self, tmp_path):
        assert get_storage_root(Config()) == tmp_path / "data" / "music-shelf"
        assert get_data_dir() == tmp_path / "data" / "music-shelf"

    def test_configured_root(self, tmp_path):
        config = Config(storage=StorageConfig(root=str(tmp_path / "shelf")))
        assert get_storage_root(config) == tmp_path / "shelf"
