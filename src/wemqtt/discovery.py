"""Home Assistant MQTT discovery for wemqtt.

Each entity is registered with one retained message on
``homeassistant/<domain>/<node>/<object>/config``. Registrations are
deterministic, so re-sending them on every connect updates the existing
entities instead of creating new ones. Select options are updated the same
way: the whole registration is re-sent with the new option list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wemqtt.topics import (
    command_topic,
    discovery_topic,
    entity_topic,
    state_topic,
    status_topic,
)

if TYPE_CHECKING:
    from wemqtt.identity import NodeIdentity
    from wemqtt.mqtt_client import MQTTClientWrapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityDescriptor:
    """A Home Assistant entity exposed by the bridge.

    Attributes:
        domain: Home Assistant entity domain (switch, button, select, sensor).
        object_id: Entity id, also the topic segment below we/<node>/.
        label: Display label appended to the device name.
        icon: Material Design icon.
    """

    domain: str
    object_id: str
    label: str
    icon: str | None = None


ENTITIES = (
    EntityDescriptor("switch", "show_icons", "Show icons", "mdi:monitor-dashboard"),
    EntityDescriptor("switch", "muted", "Muted", "mdi:volume-off"),
    EntityDescriptor("switch", "paused", "Paused", "mdi:pause"),
    EntityDescriptor("button", "button_play", "Play", "mdi:play"),
    EntityDescriptor("button", "button_stop", "Stop", "mdi:stop"),
    EntityDescriptor("select", "select_wallpaper", "Wallpaper", "mdi:wallpaper"),
    EntityDescriptor("select", "select_profile", "Profile", "mdi:account-box"),
    EntityDescriptor("sensor", "current_wallpaper", "Current wallpaper", "mdi:image"),
    EntityDescriptor("sensor", "properties", "Wallpaper properties", "mdi:tune"),
)


class DiscoveryPublisher:
    """Publishes discovery registrations for all bridge entities."""

    def __init__(self, mqtt_client: MQTTClientWrapper, identity: NodeIdentity) -> None:
        self._mqtt_client = mqtt_client
        self._identity = identity
        self._entities = {entity.object_id: entity for entity in ENTITIES}

    def build_config(
        self, entity: EntityDescriptor, options: list[str] | None = None
    ) -> dict[str, Any]:
        """Build the discovery payload for an entity.

        Args:
            entity: The entity to describe.
            options: Option list for select entities (empty when None).

        Returns:
            The discovery payload.
        """
        node_id = self._identity.node_id
        config: dict[str, Any] = {
            "name": f"{self._identity.device_name} {entity.label}",
            "unique_id": f"{node_id}_{entity.object_id}",
            "availability_topic": status_topic(node_id),
            "device": self._identity.device,
        }
        if entity.icon:
            config["icon"] = entity.icon

        if entity.domain == "switch":
            config.update(
                {
                    "command_topic": command_topic(node_id, entity.object_id),
                    "state_topic": state_topic(node_id, entity.object_id),
                    "payload_on": "ON",
                    "payload_off": "OFF",
                    "state_on": "ON",
                    "state_off": "OFF",
                    "retain": True,
                }
            )
        elif entity.domain == "button":
            config["command_topic"] = command_topic(node_id, entity.object_id)
        elif entity.domain == "select":
            config.update(
                {
                    "command_topic": command_topic(node_id, entity.object_id),
                    "state_topic": state_topic(node_id, entity.object_id),
                    "options": list(options or []),
                }
            )
        elif entity.object_id == "current_wallpaper":
            config.update(
                {
                    "state_topic": state_topic(node_id, entity.object_id),
                    "value_template": "{{ value_json.title }}",
                    "json_attributes_topic": entity_topic(
                        node_id, entity.object_id, "attributes"
                    ),
                }
            )
        else:
            last_set = entity_topic(node_id, "properties", "last_set")
            config.update(
                {
                    "name": (
                        f"{self._identity.device_name} {entity.label} "
                        f"(publish JSON to {command_topic(node_id, 'properties')})"
                    ),
                    "state_topic": last_set,
                    "value_template": "{{ value_json | length }}",
                    "json_attributes_topic": last_set,
                }
            )
        return config

    def publish_entity(
        self, entity: EntityDescriptor, options: list[str] | None = None
    ) -> None:
        topic = discovery_topic(entity.domain, self._identity.node_id, entity.object_id)
        self._mqtt_client.publish_json(
            topic, self.build_config(entity, options), retain=True
        )
        logger.debug("Published discovery config to '%s'", topic)

    def publish_all(self) -> None:
        """Register every entity; select options start out empty."""
        for entity in self._entities.values():
            self.publish_entity(entity)
        logger.info(
            "Published %d discovery configs for '%s'",
            len(self._entities),
            self._identity.node_id,
        )

    def publish_select_options(self, object_id: str, options: list[str]) -> None:
        """Re-register a select entity with a fresh option list.

        Raises:
            KeyError: If object_id is not a select entity.
        """
        entity = self._entities[object_id]
        if entity.domain != "select":
            raise KeyError(f"'{object_id}' is not a select entity")
        self.publish_entity(entity, options)
        logger.debug("Published %d option(s) for '%s'", len(options), object_id)
