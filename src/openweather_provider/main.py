"""Standalone weather provider runner."""

import json
import time
import signal
import logging
from typing import Any, Dict, Optional

from .config import (
    DATA_DIR,
    LOG_LEVEL,
    VESSEL_LATITUDE,
    VESSEL_LONGITUDE,
    WeatherConfig,
)
from .plugin import OpenWeatherPlugin

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# requests/urllib3 are noisy at DEBUG
logging.getLogger("urllib3").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


class StandaloneHost:
    """
    Minimal host for running the provider outside a server.

    The vessel position is fixed from VESSEL_LATITUDE/VESSEL_LONGITUDE.
    Deltas and status changes are logged.
    """

    def __init__(
        self,
        latitude: Optional[float] = VESSEL_LATITUDE,
        longitude: Optional[float] = VESSEL_LONGITUDE,
        data_dir=DATA_DIR,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.data_dir = data_dir
        self.status: Optional[str] = None
        self.error: Optional[str] = None
        self.provider: Optional[Dict[str, Any]] = None

    def get_self_path(self, path: str) -> Optional[Dict[str, Any]]:
        if path != "navigation.position":
            return None
        if self.latitude is None or self.longitude is None:
            return None
        return {"value": {"latitude": self.latitude, "longitude": self.longitude}}

    def handle_message(self, plugin_id: str, delta: Dict[str, Any]):
        for update in delta.get("updates", []):
            for value in update.get("values", []):
                logger.info(f"[{plugin_id}] {value['path'] or '(source)'} = {json.dumps(value['value'])}")

    def set_plugin_status(self, msg: str):
        self.status = msg
        logger.info(f"Status: {msg}")

    def set_plugin_error(self, msg: str):
        self.error = msg
        logger.error(f"Error: {msg}")

    def register_weather_provider(self, provider: Dict[str, Any]):
        self.provider = provider
        logger.info(f"Registered weather provider: {provider['name']}")

    def get_data_dir_path(self) -> str:
        return str(self.data_dir)


class Runner:
    """Runs the plugin until SIGINT/SIGTERM."""

    def __init__(self, host: Optional[StandaloneHost] = None):
        self.running = False
        self.host = host or StandaloneHost()
        self.plugin = OpenWeatherPlugin(self.host)

        # Signal handlers
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.running = False

    def start(self):
        """Start the plugin and block until stopped."""
        logger.info("Starting OpenWeather provider")
        logger.info(f"Data directory: {self.host.data_dir}")
        if self.host.latitude is None or self.host.longitude is None:
            logger.warning("VESSEL_LATITUDE/VESSEL_LONGITUDE not set; polling has no position")

        config = WeatherConfig.from_env()
        error = self.plugin.start(config.to_options())
        if error is not None:
            return

        self.running = True
        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.stop()

    def stop(self):
        """Stop the plugin."""
        self.running = False
        self.plugin.stop()


def main():
    """Main entry point."""
    runner = Runner()
    runner.start()


if __name__ == "__main__":
    main()
