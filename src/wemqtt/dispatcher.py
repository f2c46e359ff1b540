"""Translation of inbound MQTT commands into Wallpaper Engine calls."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Callable

from wemqtt.control import ControlError
from wemqtt.state import WallpaperRequest, format_bool, parse_bool
from wemqtt.topics import COMMAND_ENTITIES, command_topic, entity_topic, state_topic

if TYPE_CHECKING:
    from wemqtt.control import WallpaperControl
    from wemqtt.identity import NodeIdentity
    from wemqtt.mqtt_client import MessageCallback, MQTTClientWrapper
    from wemqtt.refresh import Refresher
    from wemqtt.state import Catalog, ShadowState

logger = logging.getLogger(__name__)

PRESSED = "pressed"


class CommandDispatcher:
    """Handles messages on the we/<node>/<entity>/set topics.

    Messages must be dispatched one at a time; the dispatcher mutates the
    shadow state and relies on the catalog not changing underneath it.
    """

    def __init__(
        self,
        mqtt_client: MQTTClientWrapper,
        control: WallpaperControl,
        identity: NodeIdentity,
        shadow: ShadowState,
        catalog: Catalog,
        refresher: Refresher,
        monitors: list[int],
    ) -> None:
        self._mqtt_client = mqtt_client
        self._control = control
        self._node_id = identity.node_id
        self._shadow = shadow
        self._catalog = catalog
        self._refresher = refresher
        self._monitors = monitors

        handlers: dict[str, Callable[[str], None]] = {
            "show_icons": self._handle_show_icons,
            "muted": self._handle_muted,
            "paused": self._handle_paused,
            "button_play": self._handle_play,
            "button_stop": self._handle_stop,
            "select_wallpaper": self._handle_select_wallpaper,
            "select_profile": self._handle_select_profile,
            "properties": self._handle_properties,
            "refresh": self._handle_refresh,
        }
        self._handlers = {
            command_topic(self._node_id, entity): handlers[entity]
            for entity in COMMAND_ENTITIES
        }

    @property
    def topics(self) -> list[str]:
        """Command topics handled by this dispatcher."""
        return list(self._handlers)

    def subscribe(self, callback: MessageCallback) -> None:
        """Subscribe callback to every command topic.

        The callback is expected to hand messages back to dispatch(), usually
        through a queue.
        """
        for topic in self._handlers:
            self._mqtt_client.subscribe(topic, callback)
        logger.info("Subscribed to %d command topics", len(self._handlers))

    def dispatch(self, topic: str, payload: str) -> None:
        """Handle a single command message.

        Unknown topics are ignored. Control failures are logged and leave the
        shadow state and published state untouched.
        """
        handler = self._handlers.get(topic)
        if handler is None:
            logger.debug("Ignoring message on unknown topic '%s'", topic)
            return

        logger.info("Command on '%s': %s", topic, payload)
        try:
            handler(payload)
        except ControlError as e:
            logger.error("Wallpaper Engine call for '%s' failed: %s", topic, e)

    def publish_shadow_state(self) -> None:
        """Publish the believed state of every toggle."""
        self._publish_toggle("show_icons", self._shadow.show_icons)
        self._publish_toggle("muted", self._shadow.muted)
        self._publish_toggle("paused", self._shadow.paused)

    def enforce_shadow_state(self) -> None:
        """Drive Wallpaper Engine to the state the shadow currently assumes."""
        try:
            if self._shadow.show_icons:
                self._control.show_icons()
            else:
                self._control.hide_icons()
            if self._shadow.muted:
                self._control.mute()
            else:
                self._control.unmute()
            if self._shadow.paused:
                self._control.pause()
            else:
                self._control.play()
        except ControlError as e:
            logger.error("Could not apply default state: %s", e)

    def _publish_toggle(self, entity: str, value: bool) -> None:
        self._mqtt_client.publish(
            state_topic(self._node_id, entity), format_bool(value), retain=True
        )

    def _handle_show_icons(self, payload: str) -> None:
        if parse_bool(payload):
            self._control.show_icons()
            self._shadow.show_icons = True
        else:
            self._control.hide_icons()
            self._shadow.show_icons = False
        self._publish_toggle("show_icons", self._shadow.show_icons)

    def _handle_muted(self, payload: str) -> None:
        if parse_bool(payload):
            self._control.mute()
            self._shadow.muted = True
        else:
            self._control.unmute()
            self._shadow.muted = False
        self._publish_toggle("muted", self._shadow.muted)

    def _handle_paused(self, payload: str) -> None:
        if parse_bool(payload):
            self._control.pause()
            self._shadow.paused = True
        else:
            self._control.play()
            self._shadow.paused = False
        self._publish_toggle("paused", self._shadow.paused)

    def _press(self, entity: str) -> None:
        self._mqtt_client.publish(
            state_topic(self._node_id, entity), PRESSED, retain=False
        )

    def _handle_play(self, payload: str) -> None:
        self._control.play()
        self._press("button_play")

    def _handle_stop(self, payload: str) -> None:
        self._control.stop()
        self._press("button_stop")

    def _handle_select_wallpaper(self, payload: str) -> None:
        try:
            request = WallpaperRequest.parse(payload, self._monitors)
        except ValueError as e:
            logger.warning("Invalid wallpaper selection '%s': %s", payload, e)
            return

        entry = request.resolve(self._catalog)
        if entry is None:
            logger.warning("Unknown wallpaper '%s'", request.reference)
            return

        for monitor in request.monitors or (None,):
            self._control.load_wallpaper(entry.path, monitor)
        logger.info(
            "Loaded wallpaper '%s' on %s",
            entry.title,
            request.monitors or "default monitor",
        )

        self._mqtt_client.publish(
            state_topic(self._node_id, "select_wallpaper"), payload, retain=True
        )
        self._refresher.publish_current(update_selection=False)

    def _handle_select_profile(self, payload: str) -> None:
        name = payload.strip()
        if not name:
            logger.warning("Ignoring empty profile selection")
            return

        self._control.load_profile(name)
        self._mqtt_client.publish(
            state_topic(self._node_id, "select_profile"), payload, retain=True
        )

    def _handle_properties(self, payload: str) -> None:
        try:
            properties = json.loads(payload)
        except ValueError as e:
            logger.warning("Invalid JSON for properties: %s", e)
            return
        if not isinstance(properties, dict):
            logger.warning("Properties must be a JSON object, got: %s", payload)
            return

        self._control.apply_properties(properties)
        self._mqtt_client.publish(
            entity_topic(self._node_id, "properties", "last_set"),
            payload,
            retain=True,
        )
        self._refresher.publish_current(update_properties=False)

    def _handle_refresh(self, payload: str) -> None:
        self._refresher.refresh()
