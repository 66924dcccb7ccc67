"""Tests for the OpenWeatherMap adapter."""

from datetime import date, datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from weather_news.config import WeatherConfig
from weather_news.errors import MissingCredentialError, UpstreamUnavailableError, ValidationFailureError
from weather_news.units import TemperatureUnit
from weather_news.weather.openweather import OpenWeatherProvider, collapse_forecast

START = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
FIXED_NOW = datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)

CURRENT = {
    "name": "Springfield",
    "sys": {"country": "US"},
    "coord": {"lat": 39.8, "lon": -89.64},
    "main": {"temp": 44.6, "feels_like": 40.2, "humidity": 81},
    "wind": {"speed": 9.7},
    "visibility": 10000,
    "weather": [{"description": "light rain", "icon": "10d"}],
}


def _slot(when: datetime, temp_max: float, temp_min: float, description: str = "clouds") -> dict[str, Any]:
    return {
        "dt": int(when.timestamp()),
        "main": {"temp_max": temp_max, "temp_min": temp_min},
        "weather": [{"description": description, "icon": "04d"}],
    }


def _forecast(days: int = 6, utc_offset: int = 0) -> dict[str, Any]:
    slots = [_slot(START + timedelta(hours=3 * i), 50 + i, 40 + i) for i in range(days * 8)]
    return {"list": slots, "city": {"timezone": utc_offset}}


@pytest.fixture(autouse=True)
def _weather_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENWEATHERMAP_API_KEY", raising=False)
    monkeypatch.setenv("OPENWEATHER_API_KEY", "owm-key")


def _handler(current: Any = CURRENT, forecast: Any = None, status: dict[str, int] | None = None) -> Any:
    forecast = forecast if forecast is not None else _forecast()
    status = status or {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/weather"):
            return httpx.Response(status.get("weather", 200), json=current)
        if path.endswith("/forecast"):
            return httpx.Response(status.get("forecast", 200), json=forecast)
        if path.endswith("/reverse"):
            return httpx.Response(status.get("reverse", 200), json=[{"name": "Springfield", "country": "US"}])
        return httpx.Response(404)

    return handler


def _router(**kwargs: Any) -> httpx.MockTransport:
    return httpx.MockTransport(_handler(**kwargs))


def _provider(transport: httpx.MockTransport) -> OpenWeatherProvider:
    return OpenWeatherProvider(
        WeatherConfig(base_url="https://owm.test/data/2.5", geo_base_url="https://owm.test/geo/1.0"),
        client=httpx.AsyncClient(transport=transport),
        now=lambda: FIXED_NOW,
    )


# ---------------------------------------------------------------------------
# collapse_forecast
# ---------------------------------------------------------------------------


def test_collapse_keeps_first_slot_per_day_and_caps_at_five() -> None:
    days = collapse_forecast(_forecast()["list"])
    assert len(days) == 5
    assert [d.date for d in days] == [date(2026, 10, 19) + timedelta(days=i) for i in range(5)]
    assert days[0].day_name == "Today"
    assert days[1].day_name == date(2026, 10, 20).strftime("%a")
    # 12:00 slot is the first of day one (index 0); midnight slot (index 4) opens day two
    assert (days[0].high, days[0].low) == (50, 40)
    assert (days[1].high, days[1].low) == (54, 44)


def test_collapse_uses_city_utc_offset() -> None:
    # +14h pushes the 12:00 UTC slot into the next local day
    days = collapse_forecast(_forecast()["list"], utc_offset_seconds=14 * 3600)
    assert days[0].date == date(2026, 10, 20)


def test_collapse_dates_are_distinct_and_ordered() -> None:
    days = collapse_forecast(_forecast(days=2)["list"])
    dates = [d.date for d in days]
    assert len(days) == 3
    assert dates == sorted(set(dates))


# ---------------------------------------------------------------------------
# get_weather
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_weather_maps_current_conditions() -> None:
    report = await _provider(_router()).get_weather(39.8, -89.64, TemperatureUnit.FAHRENHEIT)
    assert report.location.city == "Springfield"
    assert report.location.country == "US"
    assert report.current.temperature == 45
    assert report.current.feels_like == 40
    assert report.current.wind == 10
    assert report.current.visibility == 10
    assert report.current.uv_index == 0
    assert report.current.condition == "light rain"
    assert report.current.unit is TemperatureUnit.FAHRENHEIT
    assert report.last_updated == FIXED_NOW.isoformat()
    assert len(report.forecast) == 5


@pytest.mark.asyncio
async def test_get_weather_sends_unit_system() -> None:
    seen: list[httpx.Request] = []
    inner = _handler()

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return inner(request)

    await _provider(httpx.MockTransport(handler)).get_weather(1.0, 2.0, TemperatureUnit.CELSIUS)
    assert {r.url.params["units"] for r in seen} == {"metric"}
    assert {r.url.params["appid"] for r in seen} == {"owm-key"}


@pytest.mark.asyncio
async def test_wire_payload_uses_camel_case() -> None:
    report = await _provider(_router()).get_weather(39.8, -89.64, TemperatureUnit.FAHRENHEIT)
    wire = report.model_dump(mode="json", by_alias=True)
    assert set(wire) == {"location", "current", "forecast", "lastUpdated"}
    assert "feelsLike" in wire["current"]
    assert "dayName" in wire["forecast"][0]


@pytest.mark.asyncio
async def test_missing_key_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENWEATHER_API_KEY")
    with pytest.raises(MissingCredentialError, match="OpenWeatherMap API key not configured"):
        await _provider(_router()).get_weather(0, 0, TemperatureUnit.FAHRENHEIT)


@pytest.mark.asyncio
async def test_forecast_failure_fails_whole_fetch() -> None:
    with pytest.raises(UpstreamUnavailableError, match="Forecast"):
        await _provider(_router(status={"forecast": 502})).get_weather(0, 0, TemperatureUnit.FAHRENHEIT)


@pytest.mark.asyncio
async def test_malformed_current_payload_is_validation_failure() -> None:
    broken = {k: v for k, v in CURRENT.items() if k != "main"}
    with pytest.raises(ValidationFailureError):
        await _provider(_router(current=broken)).get_weather(0, 0, TemperatureUnit.FAHRENHEIT)


# ---------------------------------------------------------------------------
# reverse_geocode
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reverse_geocode_returns_city() -> None:
    assert await _provider(_router()).reverse_geocode(39.8, -89.64) == ("Springfield", "US")


@pytest.mark.asyncio
async def test_reverse_geocode_falls_back_to_unknown() -> None:
    assert await _provider(_router(status={"reverse": 500})).reverse_geocode(1, 2) == ("Unknown", "")


@pytest.mark.asyncio
async def test_reverse_geocode_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENWEATHER_API_KEY")
    assert await _provider(_router()).reverse_geocode(1, 2) == ("Unknown", "")
