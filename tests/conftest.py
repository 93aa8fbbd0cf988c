"""Shared test fixtures."""

import copy

import pytest

from openweather_provider.models import Position


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeTimer:
    """Timer that only fires when told to."""

    def __init__(self, interval, function, repeat=False):
        self.interval = interval
        self.function = function
        self.repeat = repeat
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    @property
    def active(self) -> bool:
        if not self.started or self.cancelled:
            return False
        return self.repeat or not self.fired

    def fire(self):
        assert self.active, "firing an inactive timer"
        self.fired = True
        self.function()


class FakeTimers:
    """Timer factory recording every timer it creates."""

    def __init__(self):
        self.created = []

    def __call__(self, interval, function, repeat=False):
        timer = FakeTimer(interval, function, repeat)
        self.created.append(timer)
        return timer

    def active_one_shots(self):
        return [t for t in self.created if not t.repeat and t.active]

    def wake_timer(self):
        active = [t for t in self.created if t.repeat and t.active]
        assert len(active) <= 1, "more than one wake timer armed"
        return active[0] if active else None

    def fire_pending(self):
        """Fire the single pending one-shot timer."""
        pending = self.active_one_shots()
        assert len(pending) == 1, f"expected one pending timer, found {len(pending)}"
        pending[0].fire()
        return pending[0]


class FakeHost:
    """Host recording everything the plugin sends it."""

    def __init__(self, position=None, data_dir=None):
        self.position = position
        self.data_dir = data_dir
        self.messages = []
        self.statuses = []
        self.errors = []
        self.providers = []

    def get_self_path(self, path):
        if path == "navigation.position" and self.position is not None:
            return {"value": self.position}
        return None

    def handle_message(self, plugin_id, delta):
        self.messages.append((plugin_id, delta))

    def set_plugin_status(self, msg):
        self.statuses.append(msg)

    def set_plugin_error(self, msg):
        self.errors.append(msg)

    def register_weather_provider(self, provider):
        self.providers.append(provider)

    def get_data_dir_path(self):
        return str(self.data_dir)


ONE_CALL_RESPONSE = {
    "lat": 10.0,
    "lon": 20.0,
    "current": {
        "dt": 1714716000,
        "sunrise": 1714714800,
        "sunset": 1714760400,
        "temp": 293.15,
        "feels_like": 292.5,
        "pressure": 1013,
        "humidity": 80,
        "dew_point": 289.0,
        "uvi": 3.2,
        "clouds": 75,
        "visibility": 10000,
        "wind_speed": 5.5,
        "wind_deg": 180,
        "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
        "rain": {"1h": 0.4},
    },
    "hourly": [
        {
            "dt": 1714716000 + 3600 * i,
            "temp": 293.0 + i,
            "feels_like": 292.0 + i,
            "pressure": 1012,
            "humidity": 70,
            "dew_point": 288.0,
            "uvi": 2.0,
            "clouds": 40,
            "wind_speed": 4.0,
            "wind_deg": 90,
            "wind_gust": 7.5,
            "weather": [{"id": 802, "main": "Clouds", "description": "scattered clouds", "icon": "03d"}],
        }
        for i in range(5)
    ],
    "daily": [
        {
            "dt": 1714730400 + 86400 * i,
            "sunrise": 1714714800 + 86400 * i,
            "sunset": 1714760400 + 86400 * i,
            "temp": {"day": 295.0, "min": 288.0, "max": 298.0, "night": 289.0, "eve": 294.0, "morn": 289.5},
            "feels_like": {"day": 294.5, "night": 288.5, "eve": 293.5, "morn": 289.0},
            "pressure": 1015,
            "humidity": 60,
            "dew_point": 287.0,
            "wind_speed": 6.0,
            "wind_deg": 270,
            "wind_gust": 9.0,
            "clouds": 20,
            "pop": 0.2,
            "uvi": 6.0,
            "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        }
        for i in range(3)
    ],
    "alerts": [
        {
            "sender_name": "NWS Tulsa",
            "event": "Small Craft Advisory",
            "start": 1714716000,
            "end": 1714759200,
            "description": "Winds 20 to 25 kt.",
            "tags": ["Wind"],
        }
    ],
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def make_host():
    return FakeHost


@pytest.fixture
def position():
    return Position(latitude=10.0, longitude=20.0)


@pytest.fixture
def one_call_response():
    """Fresh copy of a realistic One Call response."""
    return copy.deepcopy(ONE_CALL_RESPONSE)
