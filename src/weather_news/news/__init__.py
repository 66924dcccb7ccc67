"""News package: filter policy, query builder and provider adapters."""

from weather_news.news.filter_policy import FilterIntent, classify
from weather_news.news.models import NewsArticle, NewsPage
from weather_news.news.provider import NewsProvider
from weather_news.news.query import ProviderQuery, build_query

__all__ = ["FilterIntent", "NewsArticle", "NewsPage", "NewsProvider", "ProviderQuery", "build_query", "classify"]
