"""OpenWeatherMap adapter: current conditions, 5-day forecast, reverse geocoding."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from weather_news.config import WeatherConfig, resolve_api_key
from weather_news.errors import MissingCredentialError, UpstreamUnavailableError, ValidationFailureError
from weather_news.units import TemperatureUnit, round_half_up
from weather_news.weather.models import MAX_FORECAST_DAYS, ForecastDay, Location, WeatherReport, WeatherSnapshot

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "OpenWeatherMap API key not configured"
UNKNOWN_CITY = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def collapse_forecast(slots: list[dict[str, Any]], utc_offset_seconds: int = 0) -> list[ForecastDay]:
    """Reduce 3-hour forecast slots to at most five daily entries.

    The first slot seen for each local calendar date supplies that day's
    high, low, condition and icon. The first day is labelled ``"Today"``.
    """
    offset = timedelta(seconds=utc_offset_seconds)
    days: list[ForecastDay] = []
    seen: set[object] = set()
    for slot in slots:
        local = datetime.fromtimestamp(slot["dt"], tz=timezone.utc) + offset
        day = local.date()
        if day in seen:
            continue
        seen.add(day)
        weather = slot["weather"][0]
        days.append(
            ForecastDay(
                date=day,
                day_name="Today" if not days else local.strftime("%a"),
                high=round_half_up(slot["main"]["temp_max"]),
                low=round_half_up(slot["main"]["temp_min"]),
                condition=weather["description"],
                icon=weather["icon"],
            )
        )
        if len(days) == MAX_FORECAST_DAYS:
            break
    return days


class OpenWeatherProvider:
    """Fetch weather from the OpenWeatherMap 2.5 API.

    Current conditions and the forecast are requested concurrently and only
    combined once both have settled.
    """

    def __init__(
        self,
        config: WeatherConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or WeatherConfig()
        self._client = client
        self._now = now

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_weather(self, lat: float, lon: float, unit: TemperatureUnit) -> WeatherReport:
        api_key = resolve_api_key(self._config.api_key_envs)
        if api_key is None:
            raise MissingCredentialError(MISSING_KEY_MESSAGE)

        params = {"lat": lat, "lon": lon, "appid": api_key, "units": unit.unit_system}
        current, forecast = await asyncio.gather(
            self._get_json(f"{self._config.base_url}/weather", params, label="Weather"),
            self._get_json(f"{self._config.base_url}/forecast", params, label="Forecast"),
            return_exceptions=True,
        )
        for outcome in (current, forecast):
            if isinstance(outcome, BaseException):
                raise outcome
        return self._build_report(current, forecast, unit)

    async def reverse_geocode(self, lat: float, lon: float) -> tuple[str, str]:
        """Return ``(city, country)`` for a coordinate, or ``("Unknown", "")``."""
        api_key = resolve_api_key(self._config.api_key_envs)
        if api_key is None:
            logger.info("No OpenWeatherMap key; skipping reverse geocoding")
            return UNKNOWN_CITY, ""
        params = {"lat": lat, "lon": lon, "limit": 1, "appid": api_key}
        try:
            data = await self._get_json(f"{self._config.geo_base_url}/reverse", params, label="Geocoding")
        except UpstreamUnavailableError:
            logger.warning("Reverse geocoding failed for (%.4f, %.4f)", lat, lon)
            return UNKNOWN_CITY, ""
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return str(data[0].get("name") or UNKNOWN_CITY), str(data[0].get("country") or "")
        return UNKNOWN_CITY, ""

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_json(self, url: str, params: dict[str, Any], *, label: str) -> Any:
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, timeout=self._config.timeout)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                    response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.error("%s API request failed: %s", label, exc)
            msg = f"{label} API request failed"
            raise UpstreamUnavailableError(msg) from exc

        if response.is_error:
            logger.error("%s API error status=%d body=%s", label, response.status_code, response.text[:500])
            msg = f"{label} API error: {response.reason_phrase}"
            raise UpstreamUnavailableError(msg)
        try:
            return response.json()
        except ValueError as exc:
            msg = f"{label} API returned a non-JSON body"
            raise ValidationFailureError(msg) from exc

    def _build_report(self, current: Any, forecast: Any, unit: TemperatureUnit) -> WeatherReport:
        try:
            weather = current["weather"][0]
            main = current["main"]
            report = WeatherReport(
                location=Location(
                    city=current["name"],
                    country=current["sys"]["country"],
                    lat=current["coord"]["lat"],
                    lon=current["coord"]["lon"],
                ),
                current=WeatherSnapshot(
                    temperature=round_half_up(main["temp"]),
                    unit=unit,
                    condition=weather["description"],
                    feels_like=round_half_up(main["feels_like"]),
                    humidity=main["humidity"],
                    wind=round_half_up(current["wind"]["speed"]),
                    visibility=round_half_up(current["visibility"] / 1000),
                    uv_index=0,
                    icon=weather["icon"],
                ),
                forecast=collapse_forecast(forecast["list"], (forecast.get("city") or {}).get("timezone", 0)),
                last_updated=self._now().isoformat(),
            )
        except (AttributeError, KeyError, IndexError, TypeError, ValidationError) as exc:
            logger.error("Weather payload failed validation: %s", exc)
            msg = "Weather payload failed validation"
            raise ValidationFailureError(msg) from exc
        logger.info(
            "Weather for %s: %s %s, %d forecast days",
            report.location.city,
            report.current.temperature,
            report.current.condition,
            len(report.forecast),
        )
        return report
