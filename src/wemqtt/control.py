"""Wallpaper Engine control surface for wemqtt.

The bridge talks to Wallpaper Engine through the :class:`WallpaperControl`
interface. :class:`WallpaperEngineCLI` implements it on top of the
``-control`` command line of the Wallpaper Engine executable, and reads the
installation's ``config.json`` and each wallpaper's ``project.json`` for the
queries the command line does not offer.
"""

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from wemqtt.state import CurrentWallpaper, WallpaperEntry

if TYPE_CHECKING:
    from wemqtt.config import Config

logger = logging.getLogger(__name__)

PROJECT_FILE = "project.json"


class ControlError(Exception):
    """A Wallpaper Engine control call or query failed."""


class WallpaperControl(ABC):
    """Operations the bridge needs from Wallpaper Engine."""

    # Desktop

    @abstractmethod
    def show_icons(self) -> None: ...

    @abstractmethod
    def hide_icons(self) -> None: ...

    # Playback controls

    @abstractmethod
    def mute(self) -> None: ...

    @abstractmethod
    def unmute(self) -> None: ...

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    # Wallpapers

    @abstractmethod
    def load_wallpaper(self, path: str, monitor: int | None = None) -> None:
        """Open a wallpaper, on one monitor or on the default one."""

    @abstractmethod
    def apply_properties(self, properties: dict[str, Any]) -> None:
        """Apply user properties to the current wallpaper."""

    @abstractmethod
    def list_wallpapers(self) -> list[WallpaperEntry]: ...

    @abstractmethod
    def current_wallpaper(self) -> CurrentWallpaper | None:
        """Return the active wallpaper, or None when nothing is shown."""

    # Profiles

    @abstractmethod
    def load_profile(self, name: str) -> None: ...

    @abstractmethod
    def list_profiles(self) -> list[str]: ...


def _read_json_object(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ControlError(f"Could not read '{path}': {e}") from e
    if not isinstance(data, dict):
        raise ControlError(f"'{path}' does not contain a JSON object")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    """Return data[key] if it is an object, otherwise an empty dict."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


class WallpaperEngineCLI(WallpaperControl):
    """Drive a local Wallpaper Engine installation.

    Attributes:
        executable: Path of the Wallpaper Engine executable.
        install_dir: Wallpaper Engine installation directory.
        workshop_dir: Directory of subscribed workshop wallpapers.
    """

    def __init__(self, config: Config) -> None:
        """Initialize the adapter.

        Args:
            config: Configuration holding the installation paths.
        """
        self.executable = config.executable_path
        self.install_dir = Path(config.wallpaper_engine_dir)
        self.workshop_dir = config.workshop_path
        self._steam_user = config.steam_user
        self._default_monitor = config.monitors[0]

    def _control(self, action: str, *args: str) -> None:
        """Run ``<executable> -control <action> [args...]``.

        Raises:
            ControlError: If the executable cannot be started or fails.
        """
        command = [str(self.executable), "-control", action, *args]
        logger.debug("Running %s", command)
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise ControlError(f"Could not run '{self.executable}': {e}") from e

        if result.returncode != 0:
            raise ControlError(
                f"'{action}' failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}"
            )

    def show_icons(self) -> None:
        self._control("showIcons")

    def hide_icons(self) -> None:
        self._control("hideIcons")

    def mute(self) -> None:
        self._control("mute")

    def unmute(self) -> None:
        self._control("unmute")

    def play(self) -> None:
        self._control("play")

    def pause(self) -> None:
        self._control("pause")

    def stop(self) -> None:
        self._control("stop")

    def load_wallpaper(self, path: str, monitor: int | None = None) -> None:
        args = ["-file", path]
        if monitor is not None:
            args += ["-monitor", str(monitor)]
        self._control("openWallpaper", *args)

    def apply_properties(self, properties: dict[str, Any]) -> None:
        raw = json.dumps(properties, separators=(",", ":"))
        self._control("applyProperties", "-properties", f"RAW~({raw})~END")

    def load_profile(self, name: str) -> None:
        self._control("openProfile", "-profile", name)

    def _user_config(self) -> dict[str, Any]:
        """Return the per-user section of Wallpaper Engine's config.json."""
        data = _read_json_object(self.install_dir / "config.json")

        if self._steam_user:
            section = data.get(self._steam_user)
            if not isinstance(section, dict):
                raise ControlError(f"No config section for user '{self._steam_user}'")
            return section

        for section in data.values():
            if isinstance(section, dict) and (
                "general" in section or "selectedwallpapers" in section
            ):
                return section
        raise ControlError("No user section found in config.json")

    def list_profiles(self) -> list[str]:
        profiles = _section(self._user_config(), "general").get("profiles")
        if not isinstance(profiles, list):
            return []
        return [p["name"] for p in profiles if isinstance(p, dict) and p.get("name")]

    def _project_dirs(self) -> list[Path]:
        roots = [
            self.workshop_dir,
            self.install_dir / "projects" / "myprojects",
            self.install_dir / "projects" / "defaultprojects",
        ]
        existing = [root for root in roots if root.is_dir()]
        if not existing:
            raise ControlError(
                f"No wallpaper directories found under '{self.install_dir}'"
            )
        return existing

    @staticmethod
    def _entry_from_project(
        project_file: Path, project: dict[str, Any]
    ) -> WallpaperEntry:
        path = str(project_file)
        return WallpaperEntry(
            id=str(project.get("workshopid") or path),
            title=str(project.get("title") or project_file.parent.name),
            path=path,
        )

    def list_wallpapers(self) -> list[WallpaperEntry]:
        wallpapers = []
        for root in self._project_dirs():
            for project_file in sorted(root.glob(f"*/{PROJECT_FILE}")):
                try:
                    project = _read_json_object(project_file)
                except ControlError as e:
                    logger.warning("Skipping wallpaper: %s", e)
                    continue
                wallpapers.append(self._entry_from_project(project_file, project))

        logger.debug("Found %d wallpaper(s)", len(wallpapers))
        return wallpapers

    def current_wallpaper(self) -> CurrentWallpaper | None:
        selected = _section(self._user_config(), "selectedwallpapers")
        monitor = selected.get(f"Monitor{self._default_monitor}")
        if monitor is None and selected:
            monitor = next(iter(selected.values()))
        if not isinstance(monitor, dict) or not monitor.get("file"):
            return None

        selected_path = Path(monitor["file"])
        project_file = (
            selected_path
            if selected_path.name == PROJECT_FILE
            else selected_path.parent / PROJECT_FILE
        )
        project = _read_json_object(project_file)
        entry = self._entry_from_project(project_file, project)

        properties = {
            name: prop.get("value")
            for name, prop in _section(
                _section(project, "general"), "properties"
            ).items()
            if isinstance(prop, dict) and "value" in prop
        }
        preview = project.get("preview")
        tags = project.get("tags")

        return CurrentWallpaper(
            id=entry.id,
            title=entry.title,
            description=project.get("description", ""),
            preview=str(project_file.parent / preview) if preview else "",
            tags=tags if isinstance(tags, list) else [],
            path=entry.path,
            properties=properties,
        )
