"""FeedService: the request-level logic behind the HTTP API and the CLI.

Each method validates its inputs, calls one collaborator (weather provider,
news provider or settings store) and re-raises failures as taxonomy errors
after logging the original cause.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from weather_news.config import AppConfig
from weather_news.errors import SettingsPersistenceError
from weather_news.news.cached import CachedNewsProvider
from weather_news.news.filter_policy import FilterIntent, classify
from weather_news.news.models import NewsPage
from weather_news.news.newsapi import NewsAPIProvider
from weather_news.news.provider import NewsProvider
from weather_news.news.query import build_query
from weather_news.settings.models import SettingsUpdate, UserSettings, apply_settings_update
from weather_news.settings.store import InMemorySettingsStore, SettingsStore, SQLiteSettingsStore
from weather_news.units import TemperatureUnit
from weather_news.weather.cached import CachedWeatherProvider
from weather_news.weather.models import WeatherReport
from weather_news.weather.openweather import OpenWeatherProvider
from weather_news.weather.provider import WeatherProvider

logger = logging.getLogger(__name__)


class FeedService:
    """Weather, news and settings operations over injected collaborators."""

    def __init__(
        self,
        weather_provider: WeatherProvider,
        news_provider: NewsProvider,
        settings_store: SettingsStore,
    ) -> None:
        self._weather = weather_provider
        self._news = news_provider
        self._settings = settings_store

    @classmethod
    def from_config(cls, config: AppConfig, *, db_path: Path | None = None) -> "FeedService":
        """Wire the production providers and the configured settings backend."""
        weather = CachedWeatherProvider(OpenWeatherProvider(config.weather), cache_ttl=config.weather.cache_ttl)
        news = CachedNewsProvider(
            NewsAPIProvider(config.news),
            cache_ttl=config.news.cache_ttl,
            max_calls_per_hour=config.news.max_calls_per_hour,
        )
        store: SettingsStore
        if db_path is not None or config.settings_store.backend == "sqlite":
            store = SQLiteSettingsStore(db_path or Path(config.settings_store.db_path))
        else:
            store = InMemorySettingsStore()
        return cls(weather, news, store)

    # ------------------------------------------------------------------
    # Weather
    # ------------------------------------------------------------------

    async def get_weather(self, lat: float, lon: float, unit: TemperatureUnit) -> WeatherReport:
        return await self._weather.get_weather(lat, lon, unit)

    def invalidate_weather(self, lat: float | None = None, lon: float | None = None) -> None:
        """Drop cached weather so the next lookup goes upstream."""
        if isinstance(self._weather, CachedWeatherProvider):
            removed = self._weather.invalidate(lat, lon)
            logger.debug("Invalidated %d cached weather reports", removed)

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    async def get_news(
        self,
        temperature: float | None,
        condition: str | None,
        categories: Iterable[str],
        page: int = 1,
        page_size: int = 20,
        unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT,
    ) -> tuple[FilterIntent, NewsPage]:
        """Classify the weather, build the provider query and fetch one page.

        Callers that have weather filtering switched off pass no temperature
        or condition, which yields a category-only query.

        Raises:
            ValueError: Unknown category or invalid pagination.
        """
        intent = classify(temperature, condition, unit)
        query = build_query(intent, categories, page, page_size)
        page_result = await self._news.fetch(query)
        logger.info(
            "News page %d: %d/%d articles (%s)",
            page,
            len(page_result.articles),
            page_result.total_results,
            intent.rationale,
            extra={
                "extra_data": {
                    "category": query.category,
                    "keywords": query.keywords,
                    "total_results": page_result.total_results,
                }
            },
        )
        return intent, page_result

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self, user_id: str) -> UserSettings:
        """Return the stored record, or the schema defaults for unknown users."""
        stored = self._settings.get(user_id)
        return stored if stored is not None else UserSettings()

    def put_settings(self, user_id: str, settings: UserSettings) -> UserSettings:
        saved = self._settings.put(user_id, settings)
        logger.info("Saved settings for %s", user_id)
        return saved

    def update_settings(self, user_id: str, update: SettingsUpdate) -> UserSettings:
        """Merge a partial update over the current record and store the result."""
        try:
            current = self.get_settings(user_id)
        except SettingsPersistenceError:
            logger.error("Cannot merge settings for %s: current record unreadable", user_id)
            raise
        return self.put_settings(user_id, apply_settings_update(current, update))
