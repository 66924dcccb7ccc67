"""NewsProvider protocol defining the fetch interface."""

from typing import Protocol

from weather_news.news.models import NewsPage
from weather_news.news.query import ProviderQuery


class NewsProvider(Protocol):
    """Structural protocol for headline providers."""

    async def fetch(self, query: ProviderQuery) -> NewsPage: ...
