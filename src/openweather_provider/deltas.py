"""Signal K delta values built from weather data."""

from typing import Any, Dict, List

from .config import WEATHER_SERVICE_NAME
from .models import Position, WeatherData

PATH_ROOT = "environment"

# (group, field) pairs published from an observation, in emit order
OBSERVATION_FIELDS = [
    ("outside", "horizontalVisibility"),
    ("sun", "sunrise"),
    ("sun", "sunset"),
    ("outside", "uvIndex"),
    ("outside", "cloudCover"),
    ("outside", "temperature"),
    ("outside", "dewPointTemperature"),
    ("outside", "feelsLikeTemperature"),
    ("outside", "pressure"),
    ("outside", "relativeHumidity"),
    ("outside", "absoluteHumidity"),
    ("outside", "precipitationType"),
    ("wind", "speedTrue"),
    ("wind", "directionTrue"),
]

# (path suffix, description, units)
METAS = [
    ("date", "Time of measurement.", None),
    ("sun.sunrise", "Time of sunrise at the related position.", None),
    ("sun.sunset", "Time of sunset at the related position.", None),
    ("outside.uvIndex", "Level of UV radiation. 1 UVI = 25mW/sqm", "UVI"),
    ("outside.cloudCover", "Cloud cover.", "ratio"),
    ("outside.temperature", "Outside air temperature.", "K"),
    ("outside.dewPointTemperature", "Dew point.", "K"),
    ("outside.feelsLikeTemperature", "Feels like temperature.", "K"),
    ("outside.horizontalVisibility", "Horizontal visibility.", "m"),
    ("outside.horizontalVisibilityOverRange",
     "Visibility distance is greater than the range of the measuring equipment.", None),
    ("outside.pressure", "Barometric pressure.", "Pa"),
    ("outside.pressureTendency",
     "Integer value indicating barometric pressure value tendency e.g. 0 = steady, etc.", None),
    ("outside.pressureTendencyType",
     "Description for the value of pressureTendency e.g. steady, increasing, decreasing.", None),
    ("outside.relativeHumidity", "Relative humidity.", "ratio"),
    ("outside.absoluteHumidity", "Absolute humidity.", "ratio"),
    ("wind.averageSpeed", "Average wind speed.", "m/s"),
    ("wind.speedTrue", "True wind speed.", "m/s"),
    ("wind.directionTrue", "The wind direction relative to true north.", "rad"),
    ("wind.gust", "Maximum wind gust.", "m/s"),
    ("wind.gustDirectionTrue", "Maximum wind gust direction.", "rad"),
    ("water.level", "Water level.", "m"),
    ("water.levelTendency",
     "Integer value indicating water level tendency e.g. 0 = steady, etc.", None),
    ("water.levelTendencyType",
     "Description for the value of levelTendency e.g. steady, increasing, decreasing.", None),
    ("water.waves.significantHeight", "Significant wave height.", "m"),
    ("water.waves.period", "Wave period.", "ms"),
    ("water.waves.direction", "Wave direction.", "rad"),
    ("water.swell.significantHeight", "Significant swell height.", "m"),
    ("water.swell.period", "Swell period.", "ms"),
    ("water.swell.directionTrue", "Swell direction.", "rad"),
]


def build_observation_deltas(position: Position, obs: WeatherData) -> List[Dict[str, Any]]:
    """
    Flatten an observation into ordered ``{path, value}`` pairs.

    The originating position and the provider name come first, followed by
    every observation field present.
    """
    values: List[Dict[str, Any]] = [
        {"path": "navigation.position", "value": position.to_dict()},
        {"path": "", "value": {"name": WEATHER_SERVICE_NAME}},
    ]
    if obs.date:
        values.append({"path": f"{PATH_ROOT}.date", "value": obs.date})
    for group, name in OBSERVATION_FIELDS:
        value = getattr(obs, group).get(name)
        if value is not None:
            values.append({"path": f"{PATH_ROOT}.{group}.{name}", "value": value})
    return values


def build_meta_deltas() -> List[Dict[str, Any]]:
    """Metadata (description, units) for every published environment path."""
    metas = []
    for suffix, description, units in METAS:
        value: Dict[str, Any] = {"description": description}
        if units:
            value["units"] = units
        metas.append({"path": f"{PATH_ROOT}.{suffix}", "value": value})
    return metas


def weather_context() -> str:
    return f"meteo.{WEATHER_SERVICE_NAME.lower()}"
