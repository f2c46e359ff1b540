"""MQTT connection handling for wemqtt."""

from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING, Any, Callable

import paho.mqtt.client as mqtt

if TYPE_CHECKING:
    from wemqtt.config import Config

logger = logging.getLogger(__name__)

# callback(topic, payload)
MessageCallback = Callable[[str, str], None]
ConnectHook = Callable[[], None]


class MQTTClientWrapper:
    """paho client bound to one broker with per-topic message routing.

    Subscriptions are remembered and replayed after every reconnect, and an
    optional hook runs once the broker has accepted a connection. Messages
    are decoded as UTF-8 before they reach a callback.

    Attributes:
        client_id: MQTT client identifier.
        client: The underlying paho client.
    """

    def __init__(self, client_id: str, config: Config) -> None:
        """Create the client without connecting.

        Args:
            client_id: MQTT client identifier.
            config: Broker address and credentials.
        """
        self.client_id = client_id
        self._broker = (config.serverip, config.port)
        self._connected = threading.Event()
        self._routes: dict[str, MessageCallback] = {}
        self._routes_lock = threading.Lock()
        self._connect_hook: ConnectHook | None = None

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        if config.username:
            self.client.username_pw_set(config.username, config.password or None)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

    def set_on_connect(self, hook: ConnectHook | None) -> None:
        """Run hook on the network thread after each accepted connect."""
        self._connect_hook = hook

    def set_last_will(
        self, topic: str, payload: str, qos: int = 0, retain: bool = True
    ) -> None:
        """Register the message the broker sends if the connection drops.

        Only takes effect for connections opened afterwards.
        """
        self.client.will_set(topic, payload, qos=qos, retain=retain)
        logger.debug("Last will on '%s': %s", topic, payload)

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: mqtt.ConnectFlags,
        reason_code: mqtt.ReasonCode,
        properties: mqtt.Properties | None = None,
    ) -> None:
        if reason_code.is_failure:
            logger.error("MQTT broker refused connection: %s", reason_code)
            return

        logger.info("Connected to MQTT broker %s:%d", *self._broker)
        self._connected.set()

        with self._routes_lock:
            topics = list(self._routes)
        for topic in topics:
            logger.debug("Subscribing to '%s'", topic)
            self.client.subscribe(topic)

        if self._connect_hook:
            self._connect_hook()

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: mqtt.DisconnectFlags,
        reason_code: mqtt.ReasonCode,
        properties: mqtt.Properties | None = None,
    ) -> None:
        self._connected.clear()
        if reason_code.is_failure:
            logger.warning("Lost connection to MQTT broker: %s", reason_code)
        else:
            logger.info("Disconnected from MQTT broker")

    def _on_message(
        self,
        client: mqtt.Client,
        userdata: Any,
        message: mqtt.MQTTMessage,
    ) -> None:
        topic = message.topic
        try:
            payload = message.payload.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Dropping non UTF-8 payload on '%s'", topic)
            return

        logger.debug("Message on '%s': %s", topic, payload)

        with self._routes_lock:
            callback = next(
                (
                    cb
                    for pattern, cb in self._routes.items()
                    if self._topic_matches(pattern, topic)
                ),
                None,
            )

        if callback is None:
            logger.debug("No route for '%s'", topic)
            return

        try:
            callback(topic, payload)
        except Exception:
            logger.exception("Message callback for '%s' failed", topic)

    @staticmethod
    def _topic_matches(pattern: str, topic: str) -> bool:
        """Match topic against a subscription pattern with ``+``/``#``."""
        pattern_parts = pattern.split("/")
        topic_parts = topic.split("/")

        for index, pattern_part in enumerate(pattern_parts):
            if pattern_part == "#":
                return True
            if index >= len(topic_parts):
                return False
            if pattern_part not in ("+", topic_parts[index]):
                return False

        return len(pattern_parts) == len(topic_parts)

    def connect(self) -> None:
        """Open the connection and start paho's network thread.

        Raises:
            OSError: If the broker cannot be reached.
        """
        host, port = self._broker
        logger.info(
            "Connecting to MQTT broker %s:%d as '%s'", host, port, self.client_id
        )
        self.client.connect(host, port)
        self.client.loop_start()

    def disconnect(self) -> None:
        """Close the connection and stop the network thread."""
        self.client.disconnect()
        self.client.loop_stop()

    def publish(
        self,
        topic: str,
        payload: str | bytes,
        qos: int = 0,
        retain: bool = False,
    ) -> mqtt.MQTTMessageInfo:
        """Publish payload on topic.

        Returns:
            paho's message info, usable to wait for delivery.
        """
        info = self.client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("Publish to '%s' failed with rc=%s", topic, info.rc)
        return info

    def publish_json(
        self, topic: str, data: Any, qos: int = 0, retain: bool = True
    ) -> mqtt.MQTTMessageInfo:
        """Publish data encoded as JSON, retained unless told otherwise."""
        return self.publish(topic, json.dumps(data), qos=qos, retain=retain)

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Route messages on topic (wildcards allowed) to callback.

        Sent to the broker now when connected, otherwise on the next connect.
        """
        with self._routes_lock:
            self._routes[topic] = callback

        if self._connected.is_set():
            self.client.subscribe(topic)
            logger.debug("Subscribed to '%s'", topic)

    def wait_for_connection(self, timeout: float = 10.0) -> bool:
        """Block until connected or timeout; return whether connected."""
        return self._connected.wait(timeout=timeout)

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()
