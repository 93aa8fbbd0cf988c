"""Tests for the standalone runner host."""

from openweather_provider.main import StandaloneHost


def test_standalone_host_position(tmp_path):
    """Test the configured position is exposed as the vessel position."""
    host = StandaloneHost(latitude=10.0, longitude=20.0, data_dir=tmp_path)

    assert host.get_self_path("navigation.position") == {
        "value": {"latitude": 10.0, "longitude": 20.0}
    }
    assert host.get_self_path("navigation.speedOverGround") is None
    assert host.get_data_dir_path() == str(tmp_path)


def test_standalone_host_without_position(tmp_path):
    """Test no position is reported when none is configured."""
    host = StandaloneHost(latitude=None, longitude=None, data_dir=tmp_path)
    assert host.get_self_path("navigation.position") is None


def test_standalone_host_records_status(tmp_path):
    """Test status, errors and provider registration are kept."""
    host = StandaloneHost(latitude=10.0, longitude=20.0, data_dir=tmp_path)

    host.set_plugin_status("Started")
    host.set_plugin_error("Weather watch timer error!")
    host.register_weather_provider({"name": "OpenWeather", "methods": {}})
    host.handle_message("openweather", {"updates": [{"values": [{"path": "", "value": {"name": "OpenWeather"}}]}]})

    assert host.status == "Started"
    assert host.error == "Weather watch timer error!"
    assert host.provider["name"] == "OpenWeather"
