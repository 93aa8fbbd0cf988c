"""OpenWeather provider with position-aware caching and autonomous polling."""

__version__ = "0.2.0"
