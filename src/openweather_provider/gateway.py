"""Cache-or-fetch access to the weather service."""

import logging
from typing import Any

from .cache import WeatherCache
from .errors import FetchFailure, RemoteError
from .models import Position
from .openweather import OpenWeatherClient

logger = logging.getLogger(__name__)


class FetchGateway:
    """
    Single entry point for weather payloads.

    Serves fresh cached data for the position's cell when allowed, otherwise
    calls the remote service and refreshes the cache. Every successful remote
    call updates the cache, so on-demand lookups benefit from polling.
    """

    def __init__(self, client: OpenWeatherClient, cache: WeatherCache):
        self.client = client
        self.cache = cache

    def resolve(self, position: Position, bypass_cache: bool = False) -> Any:
        """
        Get the weather payload for a position.

        Args:
            position: Location of interest
            bypass_cache: True to always call the remote service (used by
                the poller, which reports conditions at the vessel's exact
                position rather than any nearby cached result)

        Returns:
            Provider payload

        Raises:
            FetchFailure: The remote call failed for any reason.
        """
        if not bypass_cache:
            entry = self.cache.lookup(position)
            if entry is not None:
                return self.cache.get(entry)

        try:
            payload = self.client.fetch(position)
        except RemoteError as e:
            logger.debug(f"Remote fetch failed: {e}")
            raise FetchFailure("Error fetching weather data from provider!") from e

        self.cache.put(position, payload)
        return payload
