"""On-demand weather queries exposed to the host."""

import logging
from typing import Any, Dict, List, Optional

from .config import WEATHER_SERVICE_NAME
from .errors import FetchFailure, ProviderError
from .gateway import FetchGateway
from .models import FORECAST_TYPES, Position, WeatherData, WeatherWarning
from .openweather import TRANSLATION_ERRORS, parse_forecasts, parse_observations, parse_warnings

logger = logging.getLogger(__name__)

QUERY_ERRORS = (FetchFailure,) + TRANSLATION_ERRORS


def _truncate(items: list, max_count: Optional[int]) -> list:
    return items[:max_count] if max_count else items


def _as_position(position: Any) -> Position:
    pos = Position.from_value(position)
    if pos is None:
        raise ValueError(f"Invalid position: {position!r}")
    return pos


class WeatherProvider:
    """
    Observations, forecasts and warnings for arbitrary positions.

    Queries go through the fetch gateway, so a fresh cached response for the
    same area is reused. Any fetch or translation failure surfaces as a
    single ProviderError.
    """

    def __init__(self, gateway: FetchGateway, name: str = WEATHER_SERVICE_NAME):
        self.gateway = gateway
        self.name = name

    def get_observations(self, position: Any, max_count: Optional[int] = None) -> List[WeatherData]:
        """
        Get current observations for a position.

        Args:
            position: Position or ``{"latitude", "longitude"}`` mapping
            max_count: Return at most this many entries

        Raises:
            ProviderError: Data could not be fetched or parsed.
        """
        pos = _as_position(position)
        try:
            observations = parse_observations(self.gateway.resolve(pos))
        except QUERY_ERRORS as e:
            logger.error(f"Observation request failed: {e}")
            raise ProviderError("Error fetching observation data from provider!") from e
        return _truncate(observations, max_count)

    def get_forecasts(
        self,
        position: Any,
        kind: str = "point",
        max_count: Optional[int] = None,
    ) -> List[WeatherData]:
        """
        Get forecasts for a position.

        Args:
            position: Position or ``{"latitude", "longitude"}`` mapping
            kind: 'point' (hourly) or 'daily'
            max_count: Return at most this many entries

        Raises:
            ValueError: Unknown forecast kind.
            ProviderError: Data could not be fetched or parsed.
        """
        if kind not in FORECAST_TYPES:
            raise ValueError(f"Unknown forecast type: {kind!r}")
        pos = _as_position(position)
        try:
            forecasts = parse_forecasts(self.gateway.resolve(pos), kind)
        except QUERY_ERRORS as e:
            logger.error(f"Forecast request failed: {e}")
            raise ProviderError("Error fetching forecast data from provider!") from e
        return _truncate(forecasts, max_count)

    def get_warnings(self, position: Any) -> List[WeatherWarning]:
        """Get weather warnings for a position."""
        pos = _as_position(position)
        try:
            return parse_warnings(self.gateway.resolve(pos))
        except QUERY_ERRORS as e:
            logger.error(f"Warnings request failed: {e}")
            raise ProviderError("Error fetching weather warnings from provider!") from e

    def registration(self) -> Dict[str, Any]:
        """
        Provider registration handed to the host.

        Methods take host-style arguments (position mappings, ``{"maxCount"}``
        options) and return JSON-ready dictionaries.
        """
        def get_observations(position, options=None):
            max_count = (options or {}).get("maxCount")
            return [o.to_dict() for o in self.get_observations(position, max_count)]

        def get_forecasts(position, kind, options=None):
            max_count = (options or {}).get("maxCount")
            return [f.to_dict() for f in self.get_forecasts(position, kind, max_count)]

        def get_warnings(position):
            return [w.to_dict() for w in self.get_warnings(position)]

        return {
            "name": self.name,
            "methods": {
                "getObservations": get_observations,
                "getForecasts": get_forecasts,
                "getWarnings": get_warnings,
            },
        }
