"""MQTT topic naming for wemqtt."""

from __future__ import annotations

TOPIC_SEPARATOR = "/"
DISCOVERY_PREFIX = "homeassistant"
BASE_TOPIC = "we"

# Entities that accept commands on we/<node>/<entity>/set
COMMAND_ENTITIES = (
    "show_icons",
    "muted",
    "paused",
    "button_play",
    "button_stop",
    "select_wallpaper",
    "select_profile",
    "properties",
    "refresh",
)


def make_topic(*parts: str) -> str:
    """Join topic segments with the MQTT level separator.

    Segments are not escaped; callers only pass internally generated ids.
    """
    return TOPIC_SEPARATOR.join(parts)


def discovery_topic(domain: str, node_id: str, object_id: str) -> str:
    """Build a Home Assistant discovery registration topic.

    Examples:
        >>> discovery_topic("switch", "node", "muted")
        'homeassistant/switch/node/muted/config'
    """
    return make_topic(DISCOVERY_PREFIX, domain, node_id, object_id, "config")


def status_topic(node_id: str) -> str:
    """Topic carrying the online/offline presence of a node."""
    return make_topic(DISCOVERY_PREFIX, "status", node_id)


def entity_topic(node_id: str, entity: str, suffix: str) -> str:
    """Build a we/<node>/<entity>/<suffix> topic."""
    return make_topic(BASE_TOPIC, node_id, entity, suffix)


def command_topic(node_id: str, entity: str) -> str:
    return entity_topic(node_id, entity, "set")


def state_topic(node_id: str, entity: str) -> str:
    return entity_topic(node_id, entity, "state")
