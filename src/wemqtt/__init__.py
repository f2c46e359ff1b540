"""
wemqtt - Wallpaper Engine to MQTT bridge.

This package exposes Wallpaper Engine controls (desktop icons, audio,
playback, wallpaper and profile selection, wallpaper properties) as
Home Assistant entities via MQTT discovery.
"""

__version__ = "1.0.0"

from wemqtt.bridge import Bridge
from wemqtt.config import Config
from wemqtt.control import ControlError, WallpaperControl, WallpaperEngineCLI
from wemqtt.identity import NodeIdentity, resolve_identity
from wemqtt.mqtt_client import MQTTClientWrapper

__all__ = [
    "Bridge",
    "Config",
    "ControlError",
    "MQTTClientWrapper",
    "NodeIdentity",
    "WallpaperControl",
    "WallpaperEngineCLI",
    "resolve_identity",
]
