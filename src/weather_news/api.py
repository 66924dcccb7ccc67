"""FastAPI HTTP API serving weather, filtered news and user settings."""

import logging
from typing import Any

from fastapi import Body, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from weather_news import __version__
from weather_news.errors import MissingCredentialError, SettingsPersistenceError, UpstreamUnavailableError
from weather_news.news.filter_policy import FilterIntent
from weather_news.service import FeedService
from weather_news.settings.models import SettingsUpdate, UserSettings
from weather_news.units import TemperatureUnit

logger = logging.getLogger(__name__)


def create_app(service: FeedService) -> FastAPI:
    """Create and return the FastAPI application.

    Args:
        service: Feed service backing every endpoint.

    Returns:
        A FastAPI application instance. Error bodies are ``{"message": ...}``.
    """
    app = FastAPI(title="Weather News", version=__version__)

    @app.get("/api/health")
    def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok", "version": __version__})

    @app.get("/api/weather")
    async def api_weather(
        lat: float | None = None,
        lon: float | None = None,
        units: str = "imperial",
    ) -> JSONResponse:
        if lat is None or lon is None:
            return _error(400, "Latitude and longitude are required")
        try:
            unit = TemperatureUnit.from_unit_system(units)
        except ValueError as exc:
            return _error(400, str(exc))
        try:
            report = await service.get_weather(lat, lon, unit)
        except MissingCredentialError as exc:
            return _error(500, str(exc))
        except UpstreamUnavailableError:
            logger.exception("Weather API error")
            return _error(500, "Failed to fetch weather data")
        return JSONResponse(report.model_dump(mode="json", by_alias=True))

    @app.get("/api/news")
    async def api_news(
        temperature: float | None = None,
        condition: str | None = None,
        categories: str = "general",
        page: int = 1,
        page_size: int = Query(20, alias="pageSize"),
        unit: str = "fahrenheit",
    ) -> JSONResponse:
        logger.info(
            "News request temperature=%s condition=%s categories=%s page=%d pageSize=%d",
            temperature,
            condition,
            categories,
            page,
            page_size,
        )
        try:
            intent, news_page = await service.get_news(
                temperature,
                condition,
                categories.split(","),
                page=page,
                page_size=page_size,
                unit=TemperatureUnit(unit),
            )
        except ValueError as exc:
            return _error(400, str(exc))
        except MissingCredentialError as exc:
            return _error(500, str(exc))
        except UpstreamUnavailableError:
            logger.exception("News API error")
            return _error(500, "Failed to fetch news data")
        payload = news_page.model_dump(mode="json", by_alias=True)
        payload["filter"] = _serialize_intent(intent)
        return JSONResponse(payload)

    @app.get("/api/settings/{user_id}")
    def api_get_settings(user_id: str) -> JSONResponse:
        try:
            settings = service.get_settings(user_id)
        except SettingsPersistenceError:
            logger.exception("Settings fetch error")
            return _error(500, "Failed to fetch settings")
        return JSONResponse(settings.to_wire())

    @app.put("/api/settings/{user_id}")
    def api_put_settings(user_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:  # noqa: B008
        try:
            settings = UserSettings.model_validate(body)
        except ValidationError as exc:
            logger.warning("Rejected settings for %s: %s", user_id, exc)
            return _error(400, "Invalid settings")
        try:
            saved = service.put_settings(user_id, settings)
        except SettingsPersistenceError:
            logger.exception("Settings update error")
            return _error(500, "Failed to update settings")
        return JSONResponse(saved.to_wire())

    @app.patch("/api/settings/{user_id}")
    def api_patch_settings(user_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:  # noqa: B008
        try:
            update = SettingsUpdate.model_validate(body)
        except ValidationError as exc:
            logger.warning("Rejected settings update for %s: %s", user_id, exc)
            return _error(400, "Invalid settings")
        try:
            saved = service.update_settings(user_id, update)
        except SettingsPersistenceError:
            logger.exception("Settings update error")
            return _error(500, "Failed to update settings")
        return JSONResponse(saved.to_wire())

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


def _serialize_intent(intent: FilterIntent) -> dict[str, Any]:
    return {
        "isActive": intent.is_active,
        "rationale": intent.rationale,
        "keywords": sorted(intent.keywords),
    }
