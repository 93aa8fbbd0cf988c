"""Configuration management."""

import math
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
# Try to load from standard locations
env_paths = [
    Path("/var/lib/openweather-provider/.env"),  # Production location
    Path(".env"),  # Current directory
    Path(__file__).parent.parent.parent / ".env",  # Project root
]
for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    # Fallback: try default load_dotenv() behavior
    load_dotenv()


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}")
        return default


# Base directory for data
DATA_DIR = Path(os.getenv("DATA_DIR", "/var/lib/openweather-provider"))
try:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
except (PermissionError, OSError):
    # Fallback to temp directory if we don't have permissions (e.g., during tests)
    import tempfile
    DATA_DIR = Path(tempfile.gettempdir()) / "openweather-provider"
    DATA_DIR.mkdir(parents=True, exist_ok=True)

# Cache database path
CACHE_DB_PATH = DATA_DIR / "weather-cache.db"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Provider identity
PLUGIN_ID = "openweather"
PLUGIN_NAME = "OpenWeather (Weather Provider)"
WEATHER_SERVICE_NAME = "OpenWeather"

# OpenWeather One Call API
OPENWEATHER_API_URL = os.getenv(
    "OPENWEATHER_API_URL", "https://api.openweathermap.org/data/3.0/onecall"
)
OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY", "")
REQUEST_TIMEOUT = 10  # seconds
USER_AGENT = "signalk-openweather-provider/0.2.0"

# Polling
# Poll interval is selected in minutes from this set; it also sets cache max age
WEATHER_POLL_INTERVALS = (15, 30, 60)
DEFAULT_POLL_INTERVAL = 60
WEATHER_ENABLE = os.getenv("WEATHER_ENABLE", "false").lower() == "true"
WEATHER_POLL_INTERVAL = os.getenv("WEATHER_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))

# Scheduler timings (seconds)
# WAKE_INTERVAL: periodic wake timer, shorter than any poll interval
# WATCHDOG_TOLERANCE: how early a wake may fire before it counts as runaway
WAKE_INTERVAL_SECONDS = 60
WATCHDOG_TOLERANCE_SECONDS = 10
FETCH_RETRY_INTERVAL_SECONDS = 10
FETCH_MAX_RETRIES = 3
NO_POSITION_RETRY_INTERVAL_SECONDS = 10
NO_POSITION_MAX_RETRIES = 12

# Cache cell precision (decimal places of a degree, 1 => ~11 km cells)
CACHE_PRECISION = 1

# Standalone runner vessel position (optional)
VESSEL_LATITUDE = _env_float("VESSEL_LATITUDE", None)
VESSEL_LONGITUDE = _env_float("VESSEL_LONGITUDE", None)


def fetch_interval_seconds(poll_interval: Any) -> float:
    """
    Convert a poll interval in minutes to the fetch interval in seconds.

    The same value is used as the cache max age, so "is this entry fresh"
    and "is it time to poll again" always agree.

    Args:
        poll_interval: Minutes, as a number or numeric string

    Returns:
        Interval in seconds. NaN, negative or unparsable input falls back
        to one hour.
    """
    try:
        minutes = float(poll_interval)
    except (TypeError, ValueError):
        logger.warning(f"Invalid poll interval {poll_interval!r}, using {DEFAULT_POLL_INTERVAL} min")
        return DEFAULT_POLL_INTERVAL * 60.0
    if math.isnan(minutes) or math.isinf(minutes) or minutes < 0:
        logger.warning(f"Invalid poll interval {poll_interval!r}, using {DEFAULT_POLL_INTERVAL} min")
        return DEFAULT_POLL_INTERVAL * 60.0
    if minutes not in WEATHER_POLL_INTERVALS:
        logger.debug(f"Poll interval {minutes:g} min is not one of {WEATHER_POLL_INTERVALS}")
    return minutes * 60.0


def watchdog_threshold(wake_interval: float = WAKE_INTERVAL_SECONDS) -> float:
    """Minimum plausible time between two wake ticks (seconds)."""
    return max(wake_interval - WATCHDOG_TOLERANCE_SECONDS, wake_interval / 2)


@dataclass
class WeatherConfig:
    """Weather settings supplied by the host."""
    api_key: str = ""
    enable: bool = False
    poll_interval: Any = DEFAULT_POLL_INTERVAL

    @property
    def fetch_interval(self) -> float:
        """Fetch interval and cache max age in seconds."""
        return fetch_interval_seconds(self.poll_interval)

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]]) -> "WeatherConfig":
        """
        Build settings from the host's plugin options.

        Accepts ``{"weather": {"apiKey", "enable", "pollInterval"}}``; missing
        keys take their defaults.
        """
        weather = (options or {}).get("weather") or {}
        api_key = weather.get("apiKey")
        enable = weather.get("enable")
        poll_interval = weather.get("pollInterval")
        return cls(
            api_key=api_key if api_key is not None else "",
            enable=bool(enable) if enable is not None else False,
            poll_interval=poll_interval if poll_interval is not None else DEFAULT_POLL_INTERVAL,
        )

    @classmethod
    def from_env(cls) -> "WeatherConfig":
        """Build settings from environment variables."""
        return cls(
            api_key=OPENWEATHER_API_KEY,
            enable=WEATHER_ENABLE,
            poll_interval=WEATHER_POLL_INTERVAL,
        )

    def to_options(self) -> Dict[str, Any]:
        """Render settings in the host's option format."""
        return {
            "weather": {
                "apiKey": self.api_key,
                "enable": self.enable,
                "pollInterval": self.poll_interval,
            }
        }
