"""Weather data records."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

WEATHER_DATA_TYPES = ("observation", "daily", "point")
FORECAST_TYPES = ("daily", "point")


@dataclass(frozen=True)
class Position:
    """Geographic position in decimal degrees."""
    latitude: float
    longitude: float

    @classmethod
    def from_value(cls, value: Any) -> Optional["Position"]:
        """
        Build a position from a host value.

        Accepts ``{"latitude": .., "longitude": ..}`` mappings or existing
        positions. Returns None when the value carries no usable coordinates.
        """
        if isinstance(value, Position):
            return value
        if not isinstance(value, dict):
            return None
        lat = value.get("latitude")
        lon = value.get("longitude")
        if lat is None or lon is None:
            return None
        try:
            return cls(latitude=float(lat), longitude=float(lon))
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass
class WeatherData:
    """
    Observation or forecast entry.

    Groups (outside, water, wind, sun) hold Signal K environment fields in SI
    units. Empty groups are dropped from the rendered form.
    """
    date: str
    type: str
    description: str = ""
    outside: Dict[str, Any] = field(default_factory=dict)
    water: Dict[str, Any] = field(default_factory=dict)
    wind: Dict[str, Any] = field(default_factory=dict)
    sun: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "date": self.date,
            "type": self.type,
            "description": self.description,
        }
        for group in ("outside", "water", "wind", "sun"):
            values = getattr(self, group)
            if values:
                data[group] = dict(values)
        return data


@dataclass
class WeatherWarning:
    """Weather alert issued for a position."""
    start_time: str
    end_time: str
    details: Optional[str]
    source: Optional[str]
    type: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "details": self.details,
            "source": self.source,
            "type": self.type,
        }
