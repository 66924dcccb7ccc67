"""Cached and rate-limited wrapper around any NewsProvider."""

import logging
import time
from collections.abc import Callable

from weather_news.cache import TTLCache
from weather_news.errors import UpstreamUnavailableError
from weather_news.news.models import NewsPage
from weather_news.news.provider import NewsProvider
from weather_news.news.query import ProviderQuery

logger = logging.getLogger(__name__)


class CachedNewsProvider:
    """Wrap a ``NewsProvider`` with TTL caching and an hourly call budget.

    Pages are cached per query for ``cache_ttl`` seconds (default five
    minutes). Once ``max_calls_per_hour`` upstream calls have been made in
    the trailing hour, uncached queries fail with
    :class:`UpstreamUnavailableError` until the window rolls forward.
    Failed fetches are never cached and do not count against the budget.
    """

    def __init__(
        self,
        inner: NewsProvider,
        *,
        cache_ttl: float = 300.0,
        max_calls_per_hour: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._clock = clock
        self._cache = TTLCache(default_ttl=cache_ttl, clock=clock)
        self._max_calls_per_hour = max_calls_per_hour
        self._call_timestamps: list[float] = []

    async def fetch(self, query: ProviderQuery) -> NewsPage:
        key = ("news", *query.cache_key())
        cached: NewsPage | None = self._cache.get(key)
        if cached is not None:
            logger.debug("News cache hit for %s", key)
            return cached

        if not self._can_call():
            logger.warning("News rate limit of %d calls/hour reached", self._max_calls_per_hour)
            msg = "News provider call budget exhausted"
            raise UpstreamUnavailableError(msg)

        page = await self._inner.fetch(query)
        self._call_timestamps.append(self._clock())
        self._cache.set(key, page)
        return page

    def _can_call(self) -> bool:
        cutoff = self._clock() - 3600.0
        self._call_timestamps = [t for t in self._call_timestamps if t > cutoff]
        return len(self._call_timestamps) < self._max_calls_per_hour
