"""TTL-cached wrapper around any WeatherProvider."""

import logging
import time
from collections.abc import Callable

from weather_news.cache import TTLCache
from weather_news.units import TemperatureUnit
from weather_news.weather.models import WeatherReport
from weather_news.weather.provider import WeatherProvider

logger = logging.getLogger(__name__)


class CachedWeatherProvider:
    """Serve repeated lookups for the same place and unit from memory.

    Coordinates are keyed at four decimals (~11 m), so jitter in a device
    fix does not defeat the cache. Failures are not cached.
    """

    def __init__(
        self,
        inner: WeatherProvider,
        *,
        cache_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._cache = TTLCache(default_ttl=cache_ttl, clock=clock)

    async def get_weather(self, lat: float, lon: float, unit: TemperatureUnit) -> WeatherReport:
        key = ("weather", round(lat, 4), round(lon, 4), unit.value)
        cached: WeatherReport | None = self._cache.get(key)
        if cached is not None:
            logger.debug("Weather cache hit for %s", key)
            return cached
        report = await self._inner.get_weather(lat, lon, unit)
        self._cache.set(key, report)
        return report

    def invalidate(self, lat: float | None = None, lon: float | None = None) -> int:
        """Forget cached reports, either all of them or those for one place."""
        if lat is None or lon is None:
            return self._cache.invalidate()
        place = (round(lat, 4), round(lon, 4))
        return self._cache.invalidate(lambda key: isinstance(key, tuple) and key[1:3] == place)
