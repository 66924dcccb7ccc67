"""WeatherProvider protocol for the weather data layer."""

from typing import Protocol

from weather_news.units import TemperatureUnit
from weather_news.weather.models import WeatherReport


class WeatherProvider(Protocol):
    """Structural protocol for weather providers.

    Implementations return current conditions plus a daily forecast for a
    coordinate, with temperatures expressed in ``unit``.
    """

    async def get_weather(self, lat: float, lon: float, unit: TemperatureUnit) -> WeatherReport: ...


class Geocoder(Protocol):
    """Reverse geocoding: coordinates to a (city, country) pair."""

    async def reverse_geocode(self, lat: float, lon: float) -> tuple[str, str]: ...
