"""Shared pytest fixtures for wemqtt tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from wemqtt.config import Config
from wemqtt.control import WallpaperControl
from wemqtt.identity import NodeIdentity, make_device, make_node_id
from wemqtt.state import Catalog, CurrentWallpaper, ShadowState, WallpaperEntry

NODE_ID = "wallpaper_engine_192_168_178_20"


@pytest.fixture
def valid_config_dict() -> dict[str, object]:
    """Return a valid configuration dictionary."""
    return {
        "serverip": "192.168.178.200",
        "port": 1883,
        "username": "test_user",
        "password": "test_pass",
        "name": "Wallpaper Engine",
        "refresh_interval": 30,
        "monitors": [0, 1],
        "wallpaper_engine_dir": "/opt/wallpaper_engine",
    }


@pytest.fixture
def config(valid_config_dict: dict[str, object]) -> Config:
    """Create a Config instance from the valid config dictionary."""
    return Config.from_dict(valid_config_dict)


@pytest.fixture
def identity() -> NodeIdentity:
    """Return the identity of a bridge on 192.168.178.20."""
    ip = "192.168.178.20"
    device_name = f"Wallpaper Engine ({ip})"
    return NodeIdentity(
        ip=ip,
        node_id=make_node_id(ip),
        device_name=device_name,
        device=make_device(ip, device_name),
    )


@pytest.fixture
def mqtt_client() -> MagicMock:
    """Return a mock MQTTClientWrapper."""
    return MagicMock()


@pytest.fixture
def control() -> MagicMock:
    """Return a mock Wallpaper Engine control surface."""
    control = MagicMock(spec=WallpaperControl)
    control.list_wallpapers.return_value = [
        WallpaperEntry(id="abc123", title="Sunset", path="/ws/abc123/project.json"),
        WallpaperEntry(id="def456", title="Rain", path="/ws/def456/project.json"),
    ]
    control.list_profiles.return_value = ["Work", "Gaming"]
    control.current_wallpaper.return_value = CurrentWallpaper(
        id="abc123",
        title="Sunset",
        description="Warm evening",
        preview="/ws/abc123/preview.jpg",
        tags=["Nature"],
        path="/ws/abc123/project.json",
        properties={"fps": 60},
    )
    return control


@pytest.fixture
def catalog(control: MagicMock) -> Catalog:
    """Return a catalog pre-filled with the mock control's wallpapers."""
    return Catalog(
        wallpapers=list(control.list_wallpapers.return_value),
        profiles=list(control.list_profiles.return_value),
    )


@pytest.fixture
def shadow() -> ShadowState:
    return ShadowState()


def published(mqtt_client: MagicMock) -> dict[str, tuple[object, bool]]:
    """Collect plain publishes on a mock client as {topic: (payload, retain)}."""
    result = {}
    for call in mqtt_client.publish.call_args_list:
        topic, payload = call.args[:2]
        result[topic] = (payload, call.kwargs.get("retain", False))
    return result


def published_json(mqtt_client: MagicMock) -> dict[str, object]:
    """Collect publish_json calls on a mock client as {topic: data}."""
    return {
        call.args[0]: call.args[1] for call in mqtt_client.publish_json.call_args_list
    }
