"""Tests for wemqtt.config module."""

import json
import tempfile
from pathlib import Path

import pytest

from wemqtt.config import DEFAULT_WALLPAPER_ENGINE_DIR, Config


class TestConfig:
    """Tests for the Config class."""

    def test_from_dict_valid(self, valid_config_dict: dict[str, object]) -> None:
        """Test creating Config from a valid dictionary."""
        config = Config.from_dict(valid_config_dict)

        assert config.serverip == "192.168.178.200"
        assert config.port == 1883
        assert config.username == "test_user"
        assert config.password == "test_pass"
        assert config.refresh_interval == 30
        assert config.monitors == [0, 1]
        assert config.wallpaper_engine_dir == "/opt/wallpaper_engine"

    def test_from_dict_defaults(self) -> None:
        """Test that only serverip is required."""
        config = Config.from_dict({"serverip": "broker.local"})

        assert config.port == 1883
        assert config.username == ""
        assert config.name == "Wallpaper Engine"
        assert config.refresh_interval == 60.0
        assert config.preferred_prefix == "192.168.178"
        assert config.monitors == [0, 1, 2]
        assert config.expand_monitor_options is True
        assert config.enforce_default_state is True
        assert config.wallpaper_engine_dir == DEFAULT_WALLPAPER_ENGINE_DIR
        assert config.max_restarts == 5

    def test_from_dict_missing_serverip(self) -> None:
        """Test that a missing serverip raises KeyError."""
        with pytest.raises(KeyError):
            Config.from_dict({"port": 1883})

    def test_validation_empty_serverip(self) -> None:
        """Test that empty serverip raises ValueError."""
        with pytest.raises(ValueError, match="serverip cannot be empty"):
            Config(serverip="")

    def test_validation_invalid_port(self) -> None:
        """Test that invalid port raises ValueError."""
        with pytest.raises(ValueError, match="port must be between"):
            Config(serverip="localhost", port=0)

        with pytest.raises(ValueError, match="port must be between"):
            Config(serverip="localhost", port=70000)

    def test_validation_refresh_interval(self) -> None:
        """Test that a non-positive refresh interval raises ValueError."""
        with pytest.raises(ValueError, match="refresh_interval must be positive"):
            Config(serverip="localhost", refresh_interval=0)

    def test_validation_monitors(self) -> None:
        """Test that monitor indices are validated."""
        with pytest.raises(ValueError, match="at least one monitor"):
            Config(serverip="localhost", monitors=[])

        with pytest.raises(ValueError, match="monitor indices"):
            Config(serverip="localhost", monitors=[0, -1])

    def test_validation_restart_settings(self) -> None:
        """Test that restart settings are validated."""
        with pytest.raises(ValueError, match="max_restarts"):
            Config(serverip="localhost", max_restarts=-1)

        with pytest.raises(ValueError, match="restart_delay"):
            Config(serverip="localhost", restart_delay=10, max_restart_delay=5)

    def test_executable_path_relative(self) -> None:
        """Test that a bare executable name is resolved in the install dir."""
        config = Config(serverip="localhost", wallpaper_engine_dir="/opt/we")

        assert config.executable_path == Path("/opt/we") / "wallpaper64.exe"

    def test_executable_path_absolute(self) -> None:
        """Test that an absolute executable path is used as is."""
        config = Config(serverip="localhost", executable="/usr/bin/we")

        assert config.executable_path == Path("/usr/bin/we")

    def test_workshop_path_derived(self) -> None:
        """Test that the workshop directory is derived from the install dir."""
        config = Config(
            serverip="localhost",
            wallpaper_engine_dir="/steam/steamapps/common/wallpaper_engine",
        )

        assert config.workshop_path == Path(
            "/steam/steamapps/workshop/content/431960"
        )

    def test_workshop_path_explicit(self) -> None:
        """Test that an explicit workshop directory wins."""
        config = Config(serverip="localhost", workshop_dir="/data/workshop")

        assert config.workshop_path == Path("/data/workshop")

    def test_load_from_file(self, valid_config_dict: dict[str, object]) -> None:
        """Test loading configuration from a file."""
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".json", delete=False
        ) as f:
            json.dump(valid_config_dict, f)
            temp_path = f.name

        try:
            config = Config.load(temp_path)
            assert config.serverip == "192.168.178.200"
            assert config.monitors == [0, 1]
        finally:
            Path(temp_path).unlink()

    def test_load_file_not_found(self) -> None:
        """Test that FileNotFoundError is raised for missing file."""
        with pytest.raises(FileNotFoundError):
            Config.load("/nonexistent/path/config.json")

    def test_load_no_config_anywhere(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that FileNotFoundError is raised when nothing can be found."""
        monkeypatch.delenv("WEMQTT_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)

        with pytest.raises(FileNotFoundError, match="No configuration file found"):
            Config.load()

    def test_load_prefers_local_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that config.local.json is preferred over config.json."""
        monkeypatch.delenv("WEMQTT_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.json").write_text(json.dumps({"serverip": "shared"}))
        (tmp_path / "config.local.json").write_text(json.dumps({"serverip": "local"}))

        config = Config.load()

        assert config.serverip == "local"

    def test_load_from_env_variable(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test loading configuration from WEMQTT_CONFIG environment variable."""
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"serverip": "env-server.local", "port": 1884}))
        monkeypatch.setenv("WEMQTT_CONFIG", str(path))

        config = Config.load()

        assert config.serverip == "env-server.local"
        assert config.port == 1884

    def test_load_invalid_json(self, tmp_path: Path) -> None:
        """Test that invalid JSON raises a ValueError subclass."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            Config.load(path)
