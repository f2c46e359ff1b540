"""Periodic refresh of wallpaper catalogs and current wallpaper state."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable

from wemqtt.control import ControlError
from wemqtt.state import selected_option, wallpaper_options
from wemqtt.topics import entity_topic, state_topic

if TYPE_CHECKING:
    from wemqtt.control import WallpaperControl
    from wemqtt.discovery import DiscoveryPublisher
    from wemqtt.identity import NodeIdentity
    from wemqtt.mqtt_client import MQTTClientWrapper
    from wemqtt.state import Catalog

logger = logging.getLogger(__name__)


class Refresher:
    """Re-queries Wallpaper Engine and republishes catalogs and state.

    Every step of a pass is guarded on its own: a failing query is logged and
    the remaining steps still run.
    """

    def __init__(
        self,
        mqtt_client: MQTTClientWrapper,
        control: WallpaperControl,
        identity: NodeIdentity,
        catalog: Catalog,
        discovery: DiscoveryPublisher,
        monitors: list[int],
        expand_monitor_options: bool = True,
    ) -> None:
        self._mqtt_client = mqtt_client
        self._control = control
        self._node_id = identity.node_id
        self._catalog = catalog
        self._discovery = discovery
        self._monitors = monitors
        self._expand_monitor_options = expand_monitor_options

    def refresh(self) -> None:
        """Run one full refresh pass."""
        logger.debug("Refreshing wallpapers and profiles")
        self._run_step("wallpaper catalog", self._refresh_wallpapers)
        self._run_step("profile list", self._refresh_profiles)
        self._run_step("select options", self._publish_select_options)
        self._run_step("current wallpaper", self.publish_current)
        self._run_step("catalog lists", self._publish_lists)

    @staticmethod
    def _run_step(name: str, step: Callable[[], None]) -> None:
        try:
            step()
        except ControlError as e:
            logger.error("Failed to refresh %s: %s", name, e)
        except Exception:
            logger.exception("Unexpected error refreshing %s", name)

    def _refresh_wallpapers(self) -> None:
        self._catalog.replace_wallpapers(self._control.list_wallpapers())
        logger.info("Loaded %d wallpaper(s)", len(self._catalog.wallpapers))

    def _refresh_profiles(self) -> None:
        self._catalog.replace_profiles(self._control.list_profiles())
        logger.info("Loaded %d profile(s)", len(self._catalog.profiles))

    def _publish_select_options(self) -> None:
        self._discovery.publish_select_options(
            "select_wallpaper",
            wallpaper_options(
                self._catalog.wallpapers,
                self._monitors,
                self._expand_monitor_options,
            ),
        )
        self._discovery.publish_select_options(
            "select_profile", list(self._catalog.profiles)
        )

    def publish_current(
        self, update_selection: bool = True, update_properties: bool = True
    ) -> None:
        """Publish state and attributes of the active wallpaper.

        Args:
            update_selection: Also point the wallpaper select at its option.
            update_properties: Also set the last applied properties to the
                wallpaper's property values.

        Raises:
            ControlError: If the active wallpaper cannot be queried.
        """
        current = self._control.current_wallpaper()
        if current is None:
            logger.info("No wallpaper is currently active")
            return

        self._mqtt_client.publish_json(
            state_topic(self._node_id, "current_wallpaper"), current.state()
        )
        self._mqtt_client.publish_json(
            entity_topic(self._node_id, "current_wallpaper", "attributes"),
            current.attributes(),
        )
        if update_selection:
            self._publish_selection(current.id)
        if update_properties:
            self._mqtt_client.publish_json(
                entity_topic(self._node_id, "properties", "last_set"),
                current.properties or {},
            )
        logger.debug("Published current wallpaper '%s'", current.title)

    def _publish_selection(self, wallpaper_id: str) -> None:
        option = selected_option(
            self._catalog, wallpaper_id, self._expand_monitor_options
        )
        if option is None:
            logger.debug("Wallpaper '%s' is not in the catalog", wallpaper_id)
            return
        self._mqtt_client.publish(
            state_topic(self._node_id, "select_wallpaper"), option, retain=True
        )

    def _publish_lists(self) -> None:
        self._mqtt_client.publish_json(
            entity_topic(self._node_id, "wallpapers", "list"),
            [entry.to_dict() for entry in self._catalog.wallpapers],
        )
        self._mqtt_client.publish_json(
            entity_topic(self._node_id, "profiles", "list"),
            list(self._catalog.profiles),
        )


class RefreshTimer(threading.Thread):
    """Daemon thread invoking a callback at a fixed interval.

    The first call happens one interval after start(); a slow or failing
    callback never stops later ticks.
    """

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        super().__init__(name="wemqtt-refresh-timer", daemon=True)
        self.interval = interval
        self._callback = callback
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Refresh timer callback failed")

    def stop(self) -> None:
        """Signal the timer to stop."""
        self._stop_event.set()
