"""OpenWeather One Call API client and response translation."""

import math
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz
import requests

from .config import OPENWEATHER_API_URL, REQUEST_TIMEOUT, USER_AGENT
from .errors import RemoteError
from .models import Position, WeatherData, WeatherWarning

logger = logging.getLogger(__name__)

# Errors raised while translating a malformed but decodable response
TRANSLATION_ERRORS = (AttributeError, TypeError, KeyError, ValueError, OverflowError, OSError)


class OpenWeatherClient:
    """Client for the OpenWeather One Call 3.0 endpoint."""

    def __init__(
        self,
        api_key: str,
        api_url: str = OPENWEATHER_API_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    def fetch(self, position: Position) -> Dict[str, Any]:
        """
        Fetch current conditions, forecasts and alerts for a position.

        Args:
            position: Location to fetch weather data for

        Returns:
            Decoded One Call response

        Raises:
            RemoteError: On missing API key, transport failure, timeout,
                HTTP error, undecodable body, or an error code embedded in
                the response (``cod`` key).
        """
        if not self.api_key:
            raise RemoteError("No OpenWeather API key configured")

        params = {
            "lat": position.latitude,
            "lon": position.longitude,
            "exclude": "minutely",
            "appid": self.api_key,
        }

        logger.debug(f"Requesting weather data for ({position.latitude}, {position.longitude})")

        try:
            response = requests.get(
                self.api_url,
                params=params,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            )
        except requests.exceptions.Timeout as e:
            logger.error("OpenWeather API timeout")
            raise RemoteError("OpenWeather API timeout") from e
        except requests.exceptions.ConnectionError as e:
            logger.error("OpenWeather API connection error (no internet?)")
            raise RemoteError("OpenWeather API connection error") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Unexpected error calling OpenWeather API: {e}")
            raise RemoteError(f"OpenWeather API request failed: {e}") from e

        if response.status_code != 200:
            detail = self._parse_error(response)
            logger.error(f"OpenWeather API error {response.status_code}: {detail}")
            raise RemoteError(f"OpenWeather API error {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error("OpenWeather API returned an undecodable body")
            raise RemoteError("OpenWeather API returned invalid JSON") from e

        if not isinstance(data, dict):
            raise RemoteError("OpenWeather API returned an unexpected body")
        if "cod" in data:
            message = data.get("message") or f"error code {data['cod']}"
            logger.error(f"OpenWeather API reported an error: {message}")
            raise RemoteError(str(message))

        return data

    @staticmethod
    def _parse_error(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:100] if response.text else "Unknown error"
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])[:100]
        return response.text[:100] if response.text else "Unknown error"


def to_iso(timestamp: Optional[float]) -> str:
    """
    Format a unix timestamp as an ISO-8601 UTC string with milliseconds.

    A missing or out-of-range timestamp formats the current time.
    """
    moment = None
    if timestamp:
        try:
            moment = datetime.fromtimestamp(timestamp, tz=pytz.UTC)
        except (OverflowError, OSError, ValueError) as e:
            logger.warning(f"Ignoring invalid timestamp {timestamp!r}: {e}")
    if moment is None:
        moment = datetime.now(pytz.UTC)
    iso = moment.isoformat(timespec="milliseconds")
    if iso.endswith("+00:00"):
        return iso[:-6] + "Z"
    return iso


def _description(entry: Dict[str, Any]) -> str:
    weather = entry.get("weather") or []
    if weather and isinstance(weather[0], dict):
        return weather[0].get("description") or ""
    return ""


def _precipitation(entry: Dict[str, Any], outside: Dict[str, Any]):
    # rain wins when both rain and snow are reported
    rain = entry.get("rain")
    snow = entry.get("snow")
    if isinstance(rain, dict) and rain.get("1h") is not None:
        outside["precipitationType"] = "rain"
        outside["precipitationVolume"] = rain["1h"]
    elif isinstance(snow, dict) and snow.get("1h") is not None:
        outside["precipitationType"] = "snow"
        outside["precipitationVolume"] = snow["1h"]


def _common_fields(entry: Dict[str, Any], outside: Dict[str, Any], wind: Dict[str, Any]):
    if entry.get("dew_point") is not None:
        outside["dewPointTemperature"] = entry["dew_point"]
    if entry.get("uvi") is not None:
        outside["uvIndex"] = entry["uvi"]
    if entry.get("clouds") is not None:
        outside["cloudCover"] = entry["clouds"] / 100
    if entry.get("pressure") is not None:
        outside["pressure"] = entry["pressure"] * 100
    if entry.get("humidity") is not None:
        outside["absoluteHumidity"] = entry["humidity"] / 100
    if entry.get("wind_speed") is not None:
        wind["speedTrue"] = entry["wind_speed"]
    if entry.get("wind_deg") is not None:
        wind["directionTrue"] = math.radians(entry["wind_deg"])
    _precipitation(entry, outside)


def parse_observations(data: Optional[Dict[str, Any]]) -> List[WeatherData]:
    """Translate the ``current`` block of a One Call response."""
    if not data or not isinstance(data.get("current"), dict):
        return []
    current = data["current"]

    obs = WeatherData(
        date=to_iso(current.get("dt")),
        type="observation",
        description=_description(current),
    )
    _common_fields(current, obs.outside, obs.wind)
    if current.get("visibility") is not None:
        obs.outside["horizontalVisibility"] = current["visibility"]
    if current.get("temp") is not None:
        obs.outside["temperature"] = current["temp"]
    if current.get("feels_like") is not None:
        obs.outside["feelsLikeTemperature"] = current["feels_like"]
    if current.get("sunrise") is not None:
        obs.sun["sunrise"] = to_iso(current["sunrise"])
    if current.get("sunset") is not None:
        obs.sun["sunset"] = to_iso(current["sunset"])

    return [obs]


def parse_forecasts(data: Optional[Dict[str, Any]], kind: str = "point") -> List[WeatherData]:
    """
    Translate forecasts of a One Call response.

    Args:
        data: One Call response
        kind: 'point' reads the hourly block, 'daily' the daily block

    Returns:
        Forecast entries in provider (chronological) order
    """
    block = data.get("hourly" if kind == "point" else "daily") if data else None
    if not isinstance(block, list):
        return []

    forecasts = []
    for f in block:
        forecast = WeatherData(
            date=to_iso(f.get("dt")),
            type=kind,
            description=_description(f),
        )
        temp = f.get("temp")
        feels_like = f.get("feels_like")
        if kind == "daily":
            if f.get("sunrise") is not None:
                forecast.sun["sunrise"] = to_iso(f["sunrise"])
            if f.get("sunset") is not None:
                forecast.sun["sunset"] = to_iso(f["sunset"])
            if isinstance(temp, dict):
                if temp.get("min") is not None:
                    forecast.outside["minTemperature"] = temp["min"]
                if temp.get("max") is not None:
                    forecast.outside["maxTemperature"] = temp["max"]
            if isinstance(feels_like, dict) and feels_like.get("day") is not None:
                forecast.outside["feelsLikeTemperature"] = feels_like["day"]
        else:
            if feels_like is not None:
                forecast.outside["feelsLikeTemperature"] = feels_like
            if temp is not None:
                forecast.outside["temperature"] = temp
        _common_fields(f, forecast.outside, forecast.wind)
        if f.get("wind_gust") is not None:
            forecast.wind["gust"] = f["wind_gust"]
        forecasts.append(forecast)

    return forecasts


def parse_warnings(data: Optional[Dict[str, Any]]) -> List[WeatherWarning]:
    """Translate the ``alerts`` block of a One Call response."""
    alerts = data.get("alerts") if data else None
    if not isinstance(alerts, list):
        return []

    return [
        WeatherWarning(
            start_time=to_iso(alert["start"]) if alert.get("start") else "",
            end_time=to_iso(alert["end"]) if alert.get("end") else "",
            details=alert.get("description"),
            source=alert.get("sender_name"),
            type=alert.get("event"),
        )
        for alert in alerts
    ]
