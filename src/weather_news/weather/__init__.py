"""Weather package: report models and provider adapters."""

from weather_news.weather.models import ForecastDay, Location, WeatherReport, WeatherSnapshot
from weather_news.weather.provider import Geocoder, WeatherProvider

__all__ = ["ForecastDay", "Geocoder", "Location", "WeatherProvider", "WeatherReport", "WeatherSnapshot"]
