"""Connection lifecycle and event serialization for wemqtt.

paho delivers messages on its network thread and the refresh timer ticks on
its own thread. Neither touches Wallpaper Engine directly: both put jobs on a
FIFO queue that a single worker thread drains, so control calls never overlap
and commands are handled in the order they arrived.
"""

from __future__ import annotations

import logging
import queue
import threading
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

from wemqtt.discovery import DiscoveryPublisher
from wemqtt.dispatcher import CommandDispatcher
from wemqtt.refresh import Refresher, RefreshTimer
from wemqtt.state import Catalog, ShadowState
from wemqtt.topics import status_topic

if TYPE_CHECKING:
    from wemqtt.config import Config
    from wemqtt.control import WallpaperControl
    from wemqtt.identity import NodeIdentity
    from wemqtt.mqtt_client import MQTTClientWrapper

logger = logging.getLogger(__name__)

ONLINE = "online"
OFFLINE = "offline"

Job = Optional[Callable[[], None]]


class Bridge:
    """Ties the MQTT connection to Wallpaper Engine.

    Owns the shadow state and catalog and hands them to the dispatcher and
    refresher, which only ever run on the worker thread.

    Attributes:
        shadow: Believed state of the toggles.
        catalog: Last known wallpapers and profiles.
        discovery: Discovery publisher.
        refresher: Refresh pass implementation.
        dispatcher: Command dispatcher.
    """

    def __init__(
        self,
        config: Config,
        mqtt_client: MQTTClientWrapper,
        control: WallpaperControl,
        identity: NodeIdentity,
    ) -> None:
        self._config = config
        self._mqtt_client = mqtt_client
        self._status_topic = status_topic(identity.node_id)

        self.shadow = ShadowState()
        self.catalog = Catalog()
        self.discovery = DiscoveryPublisher(mqtt_client, identity)
        self.refresher = Refresher(
            mqtt_client,
            control,
            identity,
            self.catalog,
            self.discovery,
            config.monitors,
            config.expand_monitor_options,
        )
        self.dispatcher = CommandDispatcher(
            mqtt_client,
            control,
            identity,
            self.shadow,
            self.catalog,
            self.refresher,
            config.monitors,
        )

        self._jobs: queue.Queue[Job] = queue.Queue()
        self._worker = threading.Thread(
            target=self._run_worker, name="wemqtt-worker", daemon=True
        )
        self._timer: RefreshTimer | None = None
        self._refresh_lock = threading.Lock()
        self._refresh_pending = False
        self._connected_once = False
        self._stopped = False

    def start(self) -> None:
        """Register the last will and connect hook, and start the worker.

        Must be called before the MQTT client connects.
        """
        self._mqtt_client.set_last_will(self._status_topic, OFFLINE, retain=True)
        self._mqtt_client.set_on_connect(self.handle_connect)
        self._worker.start()

    def handle_connect(self) -> None:
        """Announce presence, register entities and schedule a refresh.

        Runs on every (re)connect. Subscriptions and the timer are set up on
        the first connect only; the MQTT wrapper restores subscriptions itself.
        """
        self._mqtt_client.publish(self._status_topic, ONLINE, retain=True)
        self.discovery.publish_all()
        self.dispatcher.publish_shadow_state()

        first = not self._connected_once
        self._connected_once = True
        if first:
            self.dispatcher.subscribe(self.submit_message)
            if self._config.enforce_default_state:
                self._jobs.put(self.dispatcher.enforce_shadow_state)

        self.request_refresh()

        if first:
            self._timer = RefreshTimer(
                self._config.refresh_interval, self.request_refresh
            )
            self._timer.start()
            logger.info(
                "Refreshing every %.0f second(s)", self._config.refresh_interval
            )

    def submit_message(self, topic: str, payload: str) -> None:
        """Queue an inbound command for the worker."""
        self._jobs.put(partial(self.dispatcher.dispatch, topic, payload))

    def request_refresh(self) -> None:
        """Queue a refresh pass unless one is already waiting."""
        with self._refresh_lock:
            if self._refresh_pending:
                logger.debug("Refresh already pending, skipping")
                return
            self._refresh_pending = True
        self._jobs.put(self._run_refresh)

    def _run_refresh(self) -> None:
        with self._refresh_lock:
            self._refresh_pending = False
        self.refresher.refresh()

    def _run_worker(self) -> None:
        while True:
            job = self._jobs.get()
            try:
                if job is None:
                    return
                job()
            except Exception:
                logger.exception("Unhandled error while processing job")
            finally:
                self._jobs.task_done()

    def stop(self, timeout: float = 10.0) -> None:
        """Stop refreshing, announce offline and disconnect. Idempotent."""
        if self._stopped:
            return
        self._stopped = True

        if self._timer is not None:
            self._timer.stop()

        if self._worker.is_alive():
            self._jobs.put(None)
            self._worker.join(timeout)
            if self._worker.is_alive():
                logger.warning("Worker still busy after %.0f second(s)", timeout)

        if self._mqtt_client.is_connected:
            info = self._mqtt_client.publish(self._status_topic, OFFLINE, retain=True)
            try:
                info.wait_for_publish(timeout=timeout)
            except (RuntimeError, ValueError) as e:
                logger.warning("Could not publish offline status: %s", e)

        self._mqtt_client.disconnect()
