"""Configuration handling for wemqtt."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_WALLPAPER_ENGINE_DIR = (
    r"C:\Program Files (x86)\Steam\steamapps\common\wallpaper_engine"
)


@dataclass
class Config:
    """Configuration for the Wallpaper Engine bridge.

    Attributes:
        serverip: MQTT broker IP address or hostname.
        port: MQTT broker port number.
        username: MQTT authentication username.
        password: MQTT authentication password.
        name: Display name prefix for the device in Home Assistant.
        refresh_interval: Seconds between catalog/current wallpaper refreshes.
        preferred_prefix: Address prefix preferred when resolving the local IP.
        monitors: Monitor indices targeted by an "all" wallpaper selection.
        expand_monitor_options: Offer one wallpaper option per monitor selector.
        enforce_default_state: Drive Wallpaper Engine to the assumed default
            state (icons shown, unmuted, playing) on first connect.
        wallpaper_engine_dir: Wallpaper Engine installation directory.
        executable: Executable name (or absolute path) used for -control calls.
        workshop_dir: Steam workshop content directory for Wallpaper Engine.
            Derived from wallpaper_engine_dir when empty.
        steam_user: Key of the user section in Wallpaper Engine's config.json.
            The first user section is used when empty.
        max_restarts: Restart attempts after a failed run before giving up.
        restart_delay: Initial delay in seconds between restart attempts.
        max_restart_delay: Upper bound for the restart delay.
    """

    serverip: str
    port: int = 1883
    username: str = ""
    password: str = ""
    name: str = "Wallpaper Engine"
    refresh_interval: float = 60.0
    preferred_prefix: str = "192.168.178"
    monitors: list[int] = field(default_factory=lambda: [0, 1, 2])
    expand_monitor_options: bool = True
    enforce_default_state: bool = True
    wallpaper_engine_dir: str = DEFAULT_WALLPAPER_ENGINE_DIR
    executable: str = "wallpaper64.exe"
    workshop_dir: str = ""
    steam_user: str = ""
    max_restarts: int = 5
    restart_delay: float = 1.0
    max_restart_delay: float = 60.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.serverip:
            raise ValueError("serverip cannot be empty")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        if self.refresh_interval <= 0:
            raise ValueError(
                f"refresh_interval must be positive, got {self.refresh_interval}"
            )
        if not self.monitors:
            raise ValueError("at least one monitor index must be configured")
        if any(index < 0 for index in self.monitors):
            raise ValueError(f"monitor indices must be >= 0, got {self.monitors}")
        if self.max_restarts < 0:
            raise ValueError(f"max_restarts must be >= 0, got {self.max_restarts}")
        if self.restart_delay < 0 or self.max_restart_delay < self.restart_delay:
            raise ValueError(
                "restart_delay must be >= 0 and not exceed max_restart_delay"
            )

    @property
    def executable_path(self) -> Path:
        """Full path of the Wallpaper Engine executable."""
        executable = Path(self.executable)
        if executable.is_absolute():
            return executable
        return Path(self.wallpaper_engine_dir) / executable

    @property
    def workshop_path(self) -> Path:
        """Directory holding subscribed workshop wallpapers."""
        if self.workshop_dir:
            return Path(self.workshop_dir)
        # <steam>/steamapps/common/wallpaper_engine -> <steam>/steamapps/workshop
        steamapps = Path(self.wallpaper_engine_dir).parent.parent
        return steamapps / "workshop" / "content" / "431960"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create a Config instance from a dictionary.

        Only ``serverip`` is required; every other key falls back to its
        default.

        Args:
            data: Dictionary containing configuration values.

        Returns:
            Config instance with validated values.

        Raises:
            KeyError: If serverip is missing.
            TypeError: If field values have the wrong type.
            ValueError: If field values are invalid.
        """
        return cls(
            serverip=data["serverip"],
            port=data.get("port", 1883),
            username=data.get("username", ""),
            password=data.get("password", ""),
            name=data.get("name", "Wallpaper Engine"),
            refresh_interval=data.get("refresh_interval", 60.0),
            preferred_prefix=data.get("preferred_prefix", "192.168.178"),
            monitors=data.get("monitors", [0, 1, 2]),
            expand_monitor_options=data.get("expand_monitor_options", True),
            enforce_default_state=data.get("enforce_default_state", True),
            wallpaper_engine_dir=data.get(
                "wallpaper_engine_dir", DEFAULT_WALLPAPER_ENGINE_DIR
            ),
            executable=data.get("executable", "wallpaper64.exe"),
            workshop_dir=data.get("workshop_dir", ""),
            steam_user=data.get("steam_user", ""),
            max_restarts=data.get("max_restarts", 5),
            restart_delay=data.get("restart_delay", 1.0),
            max_restart_delay=data.get("max_restart_delay", 60.0),
        )

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """Load configuration from a JSON file.

        Searches for configuration in the following order:
        1. Provided config_path
        2. WEMQTT_CONFIG environment variable
        3. config.local.json in current directory
        4. config.json in current directory

        Args:
            config_path: Optional explicit path to configuration file.

        Returns:
            Config instance loaded from file.

        Raises:
            FileNotFoundError: If no configuration file is found.
            json.JSONDecodeError: If configuration file is invalid JSON.
            KeyError: If required fields are missing.
            TypeError: If field values have the wrong type.
            ValueError: If field values are invalid.
        """
        if config_path is not None:
            path = Path(config_path)
        elif env_path := os.environ.get("WEMQTT_CONFIG"):
            path = Path(env_path)
        elif Path("config.local.json").is_file():
            path = Path("config.local.json")
        elif Path("config.json").is_file():
            path = Path("config.json")
        else:
            raise FileNotFoundError(
                "No configuration file found. "
                "Create config.json or set WEMQTT_CONFIG environment variable."
            )

        logger.info("Loading configuration from '%s'", path)

        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)
