"""Weather provider plugin wiring the cache, gateway and poller to a host."""

import sqlite3
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .cache import WeatherCache
from .config import CACHE_DB_PATH, PLUGIN_ID, PLUGIN_NAME, WeatherConfig
from .database import CacheDatabase
from .deltas import build_meta_deltas, weather_context
from .gateway import FetchGateway
from .models import Position
from .openweather import OpenWeatherClient
from .provider import WeatherProvider
from .scheduler import PollingScheduler
from .timers import make_timer

logger = logging.getLogger(__name__)

CACHE_DB_NAME = "weather-cache.db"


class OpenWeatherPlugin:
    """
    OpenWeather provider plugin.

    The host is any object offering:
        - get_self_path(path): vessel data, ``{"value": {...}}`` or None
        - handle_message(plugin_id, delta): delta sink
        - set_plugin_status(msg) / set_plugin_error(msg)
        - register_weather_provider(registration)
        - get_data_dir_path() (optional): directory for the cache database

    Components:
        - WeatherCache: position-keyed response cache (persisted best-effort)
        - FetchGateway: cache-or-fetch access to OpenWeather
        - WeatherProvider: on-demand queries registered with the host
        - PollingScheduler: periodic polling at the vessel position (if enabled)
    """

    def __init__(
        self,
        host: Any,
        timer_factory: Callable[..., Any] = make_timer,
        client_factory: Callable[[str], OpenWeatherClient] = OpenWeatherClient,
    ):
        self.host = host
        self.id = PLUGIN_ID
        self.name = PLUGIN_NAME
        self.config = WeatherConfig()
        self._timer_factory = timer_factory
        self._client_factory = client_factory
        self.cache: Optional[WeatherCache] = None
        self.gateway: Optional[FetchGateway] = None
        self.provider: Optional[WeatherProvider] = None
        self.scheduler: Optional[PollingScheduler] = None

    def start(self, options: Optional[Dict[str, Any]] = None) -> Optional[Exception]:
        """
        Start the plugin with the host's options.

        Returns:
            The startup exception if startup failed (also reported to the
            host), None otherwise.
        """
        logger.info(f"{self.name} starting...")
        if self.scheduler is not None:
            self.scheduler.stop()
        try:
            if not callable(getattr(self.host, "register_weather_provider", None)):
                raise RuntimeError("Weather API is not available! Server upgrade required.")

            self.config = WeatherConfig.from_options(options)
            fetch_interval = self.config.fetch_interval
            logger.debug(
                f"Applied config: poll_interval={self.config.poll_interval}, "
                f"enable={self.config.enable}, fetch_interval={fetch_interval:g}s"
            )

            self.cache = WeatherCache(max_age=fetch_interval, store=self._open_store())
            self.gateway = FetchGateway(self._client_factory(self.config.api_key), self.cache)
            self.provider = WeatherProvider(self.gateway)
            self.host.register_weather_provider(self.provider.registration())

            self.scheduler = PollingScheduler(
                gateway=self.gateway,
                position_source=self.current_position,
                delta_sink=self.publish,
                fetch_interval=fetch_interval,
                report_status=self.host.set_plugin_status,
                report_error=self.host.set_plugin_error,
                timer_factory=self._timer_factory,
            )

            self._emit_metas()

            if self.config.enable:
                self.scheduler.start()

            self.host.set_plugin_status("Started")
            return None
        except Exception as e:
            logger.exception("** EXCEPTION: **")
            self.host.set_plugin_error(str(e) or "Started with errors!")
            return e

    def stop(self):
        """Stop polling and report the plugin as stopped."""
        logger.debug("** shutting down **")
        if self.scheduler is not None:
            self.scheduler.stop()
        self.host.set_plugin_status("Stopped")

    def current_position(self) -> Optional[Position]:
        """Vessel position from the host, None when not yet known."""
        pos = self.host.get_self_path("navigation.position")
        if not pos:
            return None
        if isinstance(pos, dict) and "value" in pos:
            pos = pos["value"]
        return Position.from_value(pos)

    def publish(self, values: List[Dict[str, Any]]):
        """Send delta values to the host."""
        logger.debug(f"Emitting {len(values)} weather delta values")
        self.host.handle_message(
            self.id,
            {
                "context": weather_context(),
                "updates": [{"values": values}],
            },
        )

    def _emit_metas(self):
        self.host.handle_message(
            self.id,
            {
                "context": weather_context(),
                "updates": [{"meta": build_meta_deltas()}],
            },
        )

    def _open_store(self) -> Optional[CacheDatabase]:
        get_dir = getattr(self.host, "get_data_dir_path", None)
        db_path = Path(get_dir()) / CACHE_DB_NAME if callable(get_dir) else CACHE_DB_PATH
        try:
            return CacheDatabase(db_path)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Weather cache persistence disabled: {e}")
            return None
