"""FeedSession: the home-screen state machine.

Holds the cached settings, the current location, the latest weather report
and the accumulated news pages, and runs the refresh, pagination, location
and settings flows against a :class:`~weather_news.service.FeedService`.

Every outbound call is tracked with a :class:`RequestTracker` ticket keyed by
the parameters that produced it; a result whose ticket has been superseded
is dropped instead of overwriting newer state.
"""

import asyncio
import logging
from collections.abc import Hashable

from weather_news.errors import (
    LocationUnavailableError,
    MissingCredentialError,
    SettingsPersistenceError,
    UpstreamUnavailableError,
)
from weather_news.location import LocationSource, resolve_location
from weather_news.news.filter_policy import INACTIVE_INTENT, FilterIntent, classify
from weather_news.news.models import NewsArticle
from weather_news.presentation.tracker import RequestTracker
from weather_news.service import FeedService
from weather_news.settings.models import SettingsUpdate, UserSettings, apply_settings_update
from weather_news.weather.models import Location, WeatherReport
from weather_news.weather.provider import Geocoder

logger = logging.getLogger(__name__)

WEATHER_ERROR = "Failed to fetch weather data"
NEWS_ERROR = "Failed to fetch news data"
SETTINGS_LOAD_ERROR = "Failed to load user settings. Using defaults."
SETTINGS_SAVE_ERROR = "Failed to save settings. Please try again."


class FeedSession:
    """One user's view of weather and weather-filtered headlines."""

    def __init__(
        self,
        service: FeedService,
        location_source: LocationSource,
        geocoder: Geocoder,
        *,
        user_id: str = "default-user",
        page_size: int = 10,
        location_timeout: float = 10.0,
    ) -> None:
        self._service = service
        self._location_source = location_source
        self._geocoder = geocoder
        self._location_timeout = location_timeout
        self._tracker = RequestTracker()
        self.user_id = user_id
        self.page_size = page_size

        self.settings = UserSettings()
        self.location: Location | None = None
        self.weather: WeatherReport | None = None
        self.total_results = 0
        self._pages: dict[int, list[NewsArticle]] = {}
        self._feed_key: Hashable | None = None
        self._news_generation = 0
        self._refresh_in_flight: int | None = None

        self.location_error: str | None = None
        self.weather_error: str | None = None
        self.news_error: str | None = None
        self.settings_error: str | None = None

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def filter_intent(self) -> FilterIntent:
        """Filter decision for the weather currently on screen."""
        if self.weather is None:
            return INACTIVE_INTENT
        current = self.weather.current
        return classify(current.temperature, current.condition, current.unit)

    @property
    def articles(self) -> list[NewsArticle]:
        """All loaded articles, pages appended in page order (never deduplicated)."""
        return [article for page in sorted(self._pages) for article in self._pages[page]]

    @property
    def current_page(self) -> int:
        return max(self._pages, default=0)

    @property
    def has_more(self) -> bool:
        return bool(self._pages) and len(self.articles) < self.total_results

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Full home-screen refresh: settings and location, then weather, then news."""
        if self.location is None:
            await asyncio.gather(self.load_settings(), self.request_location())
        if self.location is None:
            return
        await self.refresh_weather()
        await self.refresh_news()

    async def load_settings(self) -> UserSettings:
        try:
            loaded = await asyncio.to_thread(self._service.get_settings, self.user_id)
        except SettingsPersistenceError:
            logger.exception("Failed to load settings for %s", self.user_id)
            self.settings_error = SETTINGS_LOAD_ERROR
            return self.settings
        self.settings = loaded
        self.settings_error = None
        return loaded

    async def request_location(self) -> bool:
        """Ask the location source for a fix. Returns ``True`` on success."""
        ticket = self._tracker.begin("location", None)
        try:
            location = await resolve_location(
                self._location_source, self._geocoder, timeout=self._location_timeout
            )
        except LocationUnavailableError as exc:
            if self._tracker.is_current(ticket):
                logger.warning("Location unavailable: %s", exc)
                self.location = None
                self.location_error = str(exc)
            return False
        if not self._tracker.is_current(ticket):
            return False
        if self.location is not None:
            self._service.invalidate_weather(self.location.lat, self.location.lon)
        self.location = location
        self.location_error = None
        return True

    async def refresh_weather(self) -> WeatherReport | None:
        if self.location is None:
            return None
        unit = self.settings.temperature_unit
        lat, lon = self.location.lat, self.location.lon
        ticket = self._tracker.begin("weather", (lat, lon, unit))
        try:
            report = await self._service.get_weather(lat, lon, unit)
        except (MissingCredentialError, UpstreamUnavailableError):
            logger.exception("Weather refresh failed for (%.4f, %.4f)", lat, lon)
            if self._tracker.is_current(ticket):
                self.weather_error = WEATHER_ERROR
            return None
        if not self._tracker.is_current(ticket):
            logger.debug("Dropping stale weather result for %s", ticket.key)
            return None
        self.weather = report
        self.weather_error = None
        return report

    async def refresh_news(self) -> list[NewsArticle]:
        """Reload page 1 and reset the accumulated feed."""
        return await self._fetch_news_page(1)

    async def load_more(self) -> list[NewsArticle]:
        """Append the next page if the provider declared more results.

        Does nothing while a page-1 refresh is still in flight.
        """
        if self._refresh_in_flight is not None or not self.has_more:
            return []
        return await self._fetch_news_page(self.current_page + 1)

    async def update_settings(self, update: SettingsUpdate) -> UserSettings:
        """Apply ``update`` locally, persist it, and confirm with the stored record.

        Raises:
            SettingsPersistenceError: The store rejected the write; local
                settings are rolled back to their previous value.
        """
        previous = self.settings
        proposed = apply_settings_update(previous, update)
        ticket = self._tracker.begin("settings", self.user_id)
        self.settings = proposed
        try:
            saved = await asyncio.to_thread(self._service.put_settings, self.user_id, proposed)
        except SettingsPersistenceError:
            logger.exception("Failed to save settings for %s", self.user_id)
            if self._tracker.is_current(ticket):
                self.settings = previous
                self.settings_error = SETTINGS_SAVE_ERROR
            raise
        if not self._tracker.is_current(ticket):
            return saved
        self.settings = saved
        self.settings_error = None

        if saved.temperature_unit != previous.temperature_unit:
            await self.refresh_weather()
        if (
            saved.temperature_unit != previous.temperature_unit
            or saved.news_categories != previous.news_categories
            or saved.weather_filtering != previous.weather_filtering
        ):
            await self.refresh_news()
        return saved

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _news_params(self) -> tuple[float | None, str | None, tuple[str, ...]]:
        categories = tuple(self.settings.news_categories.enabled())
        if self.settings.weather_filtering and self.weather is not None:
            return self.weather.current.temperature, self.weather.current.condition, categories
        return None, None, categories

    async def _fetch_news_page(self, page: int) -> list[NewsArticle]:
        temperature, condition, categories = self._news_params()
        unit = self.weather.current.unit if self.weather is not None else self.settings.temperature_unit
        feed_key = (temperature, condition, unit, categories, self.page_size)
        if page > 1 and feed_key != self._feed_key:
            logger.debug("Feed parameters changed; not appending page %d", page)
            return []

        # Page 1 starts a new feed generation; later pages belong to the current one.
        if page == 1:
            self._news_generation += 1
            self._refresh_in_flight = self._news_generation
        generation = self._news_generation
        ticket = self._tracker.begin("news" if page == 1 else "news-more", (*feed_key, page))

        def is_current() -> bool:
            return self._tracker.is_current(ticket) and generation == self._news_generation

        try:
            _, news_page = await self._service.get_news(
                temperature, condition, categories, page=page, page_size=self.page_size, unit=unit
            )
        except (MissingCredentialError, UpstreamUnavailableError):
            logger.exception("News fetch failed for page %d", page)
            if is_current():
                self.news_error = NEWS_ERROR
            return []
        finally:
            if self._refresh_in_flight == generation and page == 1:
                self._refresh_in_flight = None
        if not is_current():
            logger.debug("Dropping stale news page %d", page)
            return []

        if page == 1:
            self._pages = {}
            self._feed_key = feed_key
        self._pages[page] = news_page.articles
        self.total_results = news_page.total_results
        self.news_error = None
        return news_page.articles
