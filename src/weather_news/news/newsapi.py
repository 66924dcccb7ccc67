"""NewsAPI.org top-headlines adapter."""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError

from weather_news.config import NewsConfig, resolve_api_key
from weather_news.errors import MissingCredentialError, UpstreamUnavailableError, ValidationFailureError
from weather_news.news.models import NewsArticle, NewsPage
from weather_news.news.query import DEFAULT_CATEGORY, ProviderQuery

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "News API key not configured"


class NewsAPIProvider:
    """Fetch headlines from the NewsAPI ``top-headlines`` endpoint.

    The endpoint takes one ``category`` per request; ``general`` is sent as
    no category at all, which is the provider's default mix. Weather keywords
    ride along as ``q``.

    Args:
        config: Provider settings (base URL, country, timeout, key env vars).
        client: Optional shared ``httpx.AsyncClient``. When omitted a client
            is opened per request.
        clock: Returns wall time in seconds; feeds article ids.
    """

    def __init__(
        self,
        config: NewsConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or NewsConfig()
        self._client = client
        self._clock = clock

    async def fetch(self, query: ProviderQuery) -> NewsPage:
        api_key = resolve_api_key(self._config.api_key_envs)
        if api_key is None:
            raise MissingCredentialError(MISSING_KEY_MESSAGE)

        params: dict[str, Any] = {
            "country": self._config.country,
            "pageSize": query.page_size,
            "page": query.page,
            "apiKey": api_key,
        }
        if query.category != DEFAULT_CATEGORY:
            params["category"] = query.category
        if query.keywords:
            params["q"] = query.keywords

        logger.info(
            "Fetching headlines category=%s page=%d page_size=%d keywords=%s",
            query.category,
            query.page,
            query.page_size,
            query.keywords,
        )
        payload = await self._get_json("/top-headlines", params)
        return self._parse(payload, query)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._config.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, timeout=self._config.timeout)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                    response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.error("News API request failed: %s", exc)
            msg = "News API request failed"
            raise UpstreamUnavailableError(msg) from exc

        if response.is_error:
            # NewsAPI puts the reason in the body; never log the key-bearing URL
            logger.error("News API error status=%d body=%s", response.status_code, response.text[:500])
            msg = f"News API error: {response.status_code} {response.reason_phrase}"
            raise UpstreamUnavailableError(msg)

        try:
            data = response.json()
        except ValueError as exc:
            msg = "News API returned a non-JSON body"
            raise ValidationFailureError(msg) from exc
        if not isinstance(data, dict):
            msg = "News API returned an unexpected payload"
            raise ValidationFailureError(msg)
        return data

    def _parse(self, data: dict[str, Any], query: ProviderQuery) -> NewsPage:
        request_ms = int(self._clock() * 1000)
        try:
            articles = [
                NewsArticle(
                    id=f"{request_ms}-{index}",
                    title=raw["title"],
                    description=raw.get("description") or "",
                    url=raw["url"],
                    image_url=raw.get("urlToImage"),
                    source=(raw.get("source") or {})["name"],
                    published_at=raw["publishedAt"],
                    category=query.category,
                )
                for index, raw in enumerate(data["articles"])
            ]
            return NewsPage(articles=articles, total_results=data["totalResults"])
        except (KeyError, TypeError, ValidationError) as exc:
            logger.error("News API payload failed validation: %s", exc)
            msg = "News API payload failed validation"
            raise ValidationFailureError(msg) from exc
