"""Tests for the HTTP API."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from weather_news.api import create_app
from weather_news.errors import (
    MissingCredentialError,
    SettingsPersistenceError,
    UpstreamUnavailableError,
    ValidationFailureError,
)
from weather_news.news.models import NewsArticle, NewsPage
from weather_news.service import FeedService
from weather_news.settings import InMemorySettingsStore, UserSettings
from weather_news.units import TemperatureUnit
from weather_news.weather.models import ForecastDay, Location, WeatherReport, WeatherSnapshot


def _make_report() -> WeatherReport:
    return WeatherReport(
        location=Location(city="Springfield", country="US", lat=39.8, lon=-89.6),
        current=WeatherSnapshot(
            temperature=45,
            condition="light rain",
            feels_like=40,
            humidity=80,
            wind=9,
            visibility=10,
            icon="10d",
        ),
        forecast=[
            ForecastDay(date=date(2026, 10, 19), day_name="Today", high=48, low=40, condition="rain", icon="10d")
        ],
        last_updated="2026-10-19T12:00:00+00:00",
    )


def _make_page() -> NewsPage:
    article = NewsArticle(
        id="1760875200000-0",
        title="Storm clean-up continues",
        url="https://example.com/storm",
        image_url="https://example.com/storm.jpg",
        source="Example Times",
        published_at="2026-10-19T10:00:00Z",
        category="general",
    )
    return NewsPage(articles=[article], total_results=12)


class TestAPI:
    @pytest.fixture(autouse=True)
    def _setup_app(self) -> None:
        self.weather = AsyncMock()
        self.weather.get_weather.return_value = _make_report()
        self.news = AsyncMock()
        self.news.fetch.return_value = _make_page()
        self.store = InMemorySettingsStore()
        self.client = TestClient(create_app(FeedService(self.weather, self.news, self.store)))

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    # -- weather ----------------------------------------------------------

    def test_weather_requires_coordinates(self) -> None:
        resp = self.client.get("/api/weather", params={"lat": 39.8})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Latitude and longitude are required"}

    def test_weather_returns_camel_case_report(self) -> None:
        resp = self.client.get("/api/weather", params={"lat": 39.8, "lon": -89.6})
        assert resp.status_code == 200
        data = resp.json()
        assert data["location"]["city"] == "Springfield"
        assert data["current"]["feelsLike"] == 40
        assert data["current"]["uvIndex"] == 0
        assert data["forecast"][0] == {
            "date": "2026-10-19",
            "dayName": "Today",
            "high": 48,
            "low": 40,
            "condition": "rain",
            "icon": "10d",
        }
        assert data["lastUpdated"] == "2026-10-19T12:00:00+00:00"
        self.weather.get_weather.assert_awaited_once_with(39.8, -89.6, TemperatureUnit.FAHRENHEIT)

    def test_weather_metric_units(self) -> None:
        self.client.get("/api/weather", params={"lat": 1, "lon": 2, "units": "metric"})
        self.weather.get_weather.assert_awaited_once_with(1.0, 2.0, TemperatureUnit.CELSIUS)

    def test_weather_rejects_unknown_units(self) -> None:
        resp = self.client.get("/api/weather", params={"lat": 1, "lon": 2, "units": "kelvin"})
        assert resp.status_code == 400

    def test_weather_missing_key(self) -> None:
        self.weather.get_weather.side_effect = MissingCredentialError("OpenWeatherMap API key not configured")
        resp = self.client.get("/api/weather", params={"lat": 1, "lon": 2})
        assert resp.status_code == 500
        assert resp.json() == {"message": "OpenWeatherMap API key not configured"}

    def test_weather_upstream_failure(self) -> None:
        self.weather.get_weather.side_effect = ValidationFailureError("bad payload")
        resp = self.client.get("/api/weather", params={"lat": 1, "lon": 2})
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to fetch weather data"}

    # -- news -------------------------------------------------------------

    def test_news_includes_articles_and_filter(self) -> None:
        resp = self.client.get(
            "/api/news", params={"temperature": 45, "condition": "light rain", "categories": "general"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["totalResults"] == 12
        assert data["articles"][0]["urlToImage"] == "https://example.com/storm.jpg"
        assert data["articles"][0]["publishedAt"] == "2026-10-19T10:00:00Z"
        assert data["filter"] == {
            "isActive": True,
            "rationale": "Cold weather - Showing challenging news",
            "keywords": ["conflict", "crisis", "disaster", "tragedy"],
        }
        query = self.news.fetch.await_args.args[0]
        assert query.keywords == "tragedy OR crisis OR disaster OR death OR conflict"

    def test_news_without_weather_is_unfiltered(self) -> None:
        resp = self.client.get("/api/news", params={"categories": "technology,sports", "page": 2, "pageSize": 5})
        assert resp.status_code == 200
        assert resp.json()["filter"]["isActive"] is False
        query = self.news.fetch.await_args.args[0]
        assert (query.category, query.page, query.page_size, query.keywords) == ("technology", 2, 5, None)

    def test_news_non_finite_temperature_is_unfiltered(self) -> None:
        resp = self.client.get("/api/news", params={"temperature": "nan", "condition": "clear"})
        assert resp.status_code == 200
        assert resp.json()["filter"]["isActive"] is False
        assert self.news.fetch.await_args.args[0].keywords is None

    def test_news_bad_category(self) -> None:
        resp = self.client.get("/api/news", params={"categories": "politics"})
        assert resp.status_code == 400
        assert "politics" in resp.json()["message"]

    def test_news_bad_page_size(self) -> None:
        resp = self.client.get("/api/news", params={"pageSize": 0})
        assert resp.status_code == 400

    def test_news_missing_key(self) -> None:
        self.news.fetch.side_effect = MissingCredentialError("News API key not configured")
        resp = self.client.get("/api/news")
        assert resp.status_code == 500
        assert resp.json() == {"message": "News API key not configured"}

    def test_news_upstream_failure(self) -> None:
        self.news.fetch.side_effect = UpstreamUnavailableError("502")
        resp = self.client.get("/api/news")
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to fetch news data"}

    # -- settings ---------------------------------------------------------

    def test_get_settings_defaults(self) -> None:
        resp = self.client.get("/api/settings/nobody")
        assert resp.status_code == 200
        assert resp.json() == UserSettings().to_wire()

    def test_put_replaces_settings(self) -> None:
        body = UserSettings().to_wire()
        body["temperatureUnit"] = "celsius"
        body["weatherFiltering"] = False
        resp = self.client.put("/api/settings/alice", json=body)
        assert resp.status_code == 200
        assert resp.json()["temperatureUnit"] == "celsius"
        assert self.client.get("/api/settings/alice").json() == resp.json()

    def test_put_fills_missing_fields_with_defaults(self) -> None:
        self.client.put("/api/settings/alice", json={"weatherFiltering": False})
        resp = self.client.put("/api/settings/alice", json={"temperatureUnit": "celsius"})
        assert resp.json()["weatherFiltering"] is True

    def test_put_rejects_invalid_body(self) -> None:
        resp = self.client.put("/api/settings/alice", json={"temperatureUnit": "kelvin"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid settings"}
        assert self.store.get("alice") is None

    def test_patch_merges(self) -> None:
        self.client.put("/api/settings/alice", json={"weatherFiltering": False})
        resp = self.client.patch("/api/settings/alice", json={"newsCategories": {"sports": True}})
        assert resp.status_code == 200
        data = resp.json()
        assert data["weatherFiltering"] is False
        assert data["newsCategories"]["sports"] is True
        assert data["newsCategories"]["general"] is True

    def test_store_failures_map_to_500(self) -> None:
        store = MagicMock()
        store.get.side_effect = SettingsPersistenceError("disk")
        store.put.side_effect = SettingsPersistenceError("disk")
        client = TestClient(create_app(FeedService(self.weather, self.news, store)))
        assert client.get("/api/settings/alice").json() == {"message": "Failed to fetch settings"}
        resp = client.put("/api/settings/alice", json={})
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to update settings"}
