"""Main entry point for wemqtt.

This module provides the command-line interface for the Wallpaper Engine
bridge. It can be run with:
    python -m wemqtt
    wemqtt (if installed as a package)
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from platform import node as hostname
from time import time
from typing import NoReturn

from wemqtt.bridge import Bridge
from wemqtt.config import Config
from wemqtt.control import ControlError, WallpaperEngineCLI
from wemqtt.identity import resolve_identity
from wemqtt.mqtt_client import MQTTClientWrapper

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Enable verbose (INFO) logging.
        debug: Enable debug (DEBUG) logging.
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def generate_client_id() -> str:
    """Generate a unique MQTT client ID.

    Returns:
        Client ID string based on hostname and current time.
    """
    return f"wemqtt_{hostname()}_{int(time())}"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="wemqtt",
        description="Wallpaper Engine to MQTT bridge for Home Assistant",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to configuration file (default: config.json)",
        default=None,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--list-wallpapers",
        action="store_true",
        help="List wallpapers and profiles known to Wallpaper Engine and exit",
    )
    return parser.parse_args(argv)


def list_wallpapers_and_exit(config: Config) -> NoReturn:
    """Print the wallpaper and profile catalogs and exit."""
    control = WallpaperEngineCLI(config)
    try:
        wallpapers = control.list_wallpapers()
        profiles = control.list_profiles()
    except ControlError as e:
        print(f"Could not query Wallpaper Engine: {e}")
        sys.exit(1)

    print(f"Found {len(wallpapers)} wallpaper(s):")
    for entry in wallpapers:
        print(f"  {entry.label}: {entry.path}")
    print(f"Found {len(profiles)} profile(s):")
    for name in profiles:
        print(f"  {name}")
    sys.exit(0)


class Application:
    """Main application controller.

    Wires the MQTT client, the Wallpaper Engine adapter and the bridge, and
    turns SIGINT/SIGTERM into a clean shutdown that leaves an "offline"
    presence message behind.
    """

    def __init__(
        self, config: Config, shutdown_event: threading.Event | None = None
    ) -> None:
        """Initialize the application.

        Args:
            config: Application configuration.
            shutdown_event: Event set when a termination signal arrives.
                Shared with the supervisor so it stops restarting.
        """
        self._config = config
        self._shutdown_event = shutdown_event or threading.Event()
        self._mqtt_client: MQTTClientWrapper | None = None
        self._bridge: Bridge | None = None
        self._stopped = False

    def start(self) -> None:
        """Start the application.

        Raises:
            ConnectionError: If the broker does not accept the connection.
            OSError: If the broker cannot be reached.
        """
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

        identity = resolve_identity(self._config.name, self._config.preferred_prefix)
        control = WallpaperEngineCLI(self._config)

        self._mqtt_client = MQTTClientWrapper(generate_client_id(), self._config)
        self._bridge = Bridge(self._config, self._mqtt_client, control, identity)
        self._bridge.start()
        self._mqtt_client.connect()

        if not self._mqtt_client.wait_for_connection(timeout=30.0):
            logger.error("Failed to connect to MQTT broker within timeout")
            raise ConnectionError("MQTT connection timeout")

        logger.info("Bridge started for '%s'", identity.device_name)

    def wait(self) -> None:
        """Block until a termination signal has been received."""
        # Short timeouts keep the main thread responsive to signals on Windows
        while not self._shutdown_event.wait(timeout=1.0):
            pass

    def stop(self) -> None:
        """Stop the application gracefully."""
        if self._stopped:
            return
        self._stopped = True

        logger.info("Shutting down...")

        if self._bridge:
            self._bridge.stop()
        elif self._mqtt_client:
            self._mqtt_client.disconnect()

        logger.info("Shutdown complete")

    def _handle_signal(self, signum: int, frame: object) -> None:
        """Handle termination signals.

        Args:
            signum: Signal number.
            frame: Current stack frame.
        """
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, initiating shutdown", sig_name)
        self._shutdown_event.set()
        self.stop()


def run_supervised(config: Config) -> int:
    """Run the application, restarting it after failures.

    A failed run is retried after restart_delay seconds, doubling up to
    max_restart_delay, at most max_restarts times.

    Returns:
        Exit code (0 after a signal-initiated shutdown, 1 when giving up).
    """
    shutdown_event = threading.Event()
    delay = config.restart_delay
    restarts = 0

    while True:
        app = Application(config, shutdown_event)
        try:
            app.start()
            app.wait()
            return 0
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            return 0
        except (OSError, RuntimeError) as e:
            logger.error("Bridge failed: %s", e)
        finally:
            app.stop()

        if shutdown_event.is_set():
            return 0
        if restarts >= config.max_restarts:
            logger.critical(
                "Giving up after %d restart attempt(s)", config.max_restarts
            )
            return 1

        restarts += 1
        logger.warning(
            "Restarting in %.1f second(s) (attempt %d of %d)",
            delay,
            restarts,
            config.max_restarts,
        )
        if shutdown_event.wait(timeout=delay):
            return 0
        delay = min(delay * 2, config.max_restart_delay)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    if args.list_wallpapers:
        list_wallpapers_and_exit(config)

    return run_supervised(config)


if __name__ == "__main__":
    sys.exit(main())
