"""CLI entry point for weather-news."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Annotated

import typer

from weather_news import __version__
from weather_news.config import AppConfig, config_mtime, load_config
from weather_news.errors import WeatherNewsError
from weather_news.location import FixedLocationSource
from weather_news.monitoring.logging import setup_logging
from weather_news.news.filter_policy import classify as classify_weather
from weather_news.news.filter_policy import keyword_expansion, query_terms
from weather_news.news.query import NEWS_CATEGORIES
from weather_news.presentation.render import (
    render_filter,
    render_forecast,
    render_home,
    render_news,
    render_settings,
    render_weather_card,
)
from weather_news.presentation.session import FeedSession
from weather_news.service import FeedService
from weather_news.settings.models import (
    NewsCategoriesUpdate,
    NotificationsUpdate,
    SettingsUpdate,
    UserSettings,
    apply_settings_update,
)
from weather_news.settings.store import SQLiteSettingsStore
from weather_news.units import TemperatureUnit
from weather_news.weather.openweather import OpenWeatherProvider

logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"weather-news {__version__}")
        raise typer.Exit()


app = typer.Typer(name="weather-news", help="Weather News — current conditions and weather-filtered headlines")
settings_app = typer.Typer(help="Show or change stored user settings")
app.add_typer(settings_app, name="settings")


@app.callback()
def main(
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Show version and exit", callback=_version_callback, is_eager=True)
    ] = False,
) -> None:
    """Weather News — current conditions and weather-filtered headlines."""


DEFAULT_CONFIG = Path("config.yaml")
DEFAULT_DB = Path("weather_news.db")

ConfigOption = Annotated[Path, typer.Option("--config", "-c", help="Path to config.yaml")]
DbOption = Annotated[Path, typer.Option("--db", help="Path to the SQLite settings database")]
OptionalDbOption = Annotated[
    Path | None, typer.Option("--db", help="Persist settings in this SQLite file instead of the configured backend")
]
UserOption = Annotated[str | None, typer.Option("--user", "-u", help="User id (defaults to config)")]
LatOption = Annotated[float | None, typer.Option("--lat", help="Latitude (defaults to config)")]
LonOption = Annotated[float | None, typer.Option("--lon", help="Longitude (defaults to config)")]
UnitOption = Annotated[TemperatureUnit, typer.Option("--unit", help="Temperature unit")]


def _load_config(config_path: Path) -> AppConfig:
    """Load config from file, warning if the file does not exist."""
    if config_path.exists():
        return load_config(config_path)
    logger.warning("Config file %s not found, using defaults", config_path)
    return AppConfig()


def _fail(exc: Exception) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


def _build_session(
    cfg: AppConfig, *, lat: float | None, lon: float | None, db: Path | None, user: str | None
) -> FeedSession:
    return FeedSession(
        FeedService.from_config(cfg, db_path=db),
        FixedLocationSource(
            lat if lat is not None else cfg.location.latitude,
            lon if lon is not None else cfg.location.longitude,
        ),
        OpenWeatherProvider(cfg.weather),
        user_id=user or cfg.settings_store.default_user_id,
        page_size=cfg.news.page_size,
        location_timeout=cfg.location.timeout,
    )


@app.command()
def classify(
    temperature: Annotated[float, typer.Argument(help="Current temperature")],
    condition: Annotated[str, typer.Argument(help="Weather description, e.g. 'light rain'")],
    unit: UnitOption = TemperatureUnit.FAHRENHEIT,
) -> None:
    """Show which news filter a temperature and condition select."""
    intent = classify_weather(temperature, condition, unit)
    typer.echo(render_filter(intent))
    expansion = keyword_expansion(query_terms(temperature, condition, unit))
    if expansion:
        typer.echo(f"Provider query: {expansion}")


@app.command()
def weather(
    lat: Annotated[float, typer.Option("--lat", help="Latitude")],
    lon: Annotated[float, typer.Option("--lon", help="Longitude")],
    unit: UnitOption = TemperatureUnit.FAHRENHEIT,
    config: ConfigOption = DEFAULT_CONFIG,
) -> None:
    """Print current conditions and the 5-day forecast."""
    cfg = _load_config(config)
    setup_logging(cfg.monitoring, level=logging.WARNING)
    service = FeedService.from_config(cfg)
    try:
        report = asyncio.run(service.get_weather(lat, lon, unit))
    except WeatherNewsError as exc:
        raise _fail(exc) from exc
    typer.echo(render_weather_card(report))
    typer.echo("")
    typer.echo(render_forecast(report))


@app.command()
def news(
    temperature: Annotated[float | None, typer.Option("--temperature", "-t", help="Current temperature")] = None,
    condition: Annotated[str | None, typer.Option("--condition", help="Weather description")] = None,
    categories: Annotated[str, typer.Option("--categories", help="Comma-separated categories")] = "general",
    page: Annotated[int, typer.Option("--page", help="1-indexed page number")] = 1,
    page_size: Annotated[int, typer.Option("--page-size", help="Articles per page")] = 10,
    unit: UnitOption = TemperatureUnit.FAHRENHEIT,
    config: ConfigOption = DEFAULT_CONFIG,
) -> None:
    """Print one page of headlines, biased by the given weather."""
    cfg = _load_config(config)
    setup_logging(cfg.monitoring, level=logging.WARNING)
    service = FeedService.from_config(cfg)
    try:
        intent, result = asyncio.run(
            service.get_news(temperature, condition, categories.split(","), page=page, page_size=page_size, unit=unit)
        )
    except (ValueError, WeatherNewsError) as exc:
        raise _fail(exc) from exc
    loaded = (page - 1) * page_size + len(result.articles)
    typer.echo(render_news(result.articles, intent, has_more=loaded < result.total_results))


@app.command()
def feed(
    lat: LatOption = None,
    lon: LonOption = None,
    pages: Annotated[int, typer.Option("--pages", help="How many news pages to load")] = 1,
    user: UserOption = None,
    config: ConfigOption = DEFAULT_CONFIG,
    db: OptionalDbOption = None,
) -> None:
    """Print the full home screen: location, weather, forecast and headlines."""
    cfg = _load_config(config)
    setup_logging(cfg.monitoring, level=logging.WARNING)
    session = _build_session(cfg, lat=lat, lon=lon, db=db, user=user)

    async def _load() -> None:
        await session.refresh()
        for _ in range(pages - 1):
            if not session.has_more:
                break
            await session.load_more()

    try:
        asyncio.run(_load())
    except WeatherNewsError as exc:
        raise _fail(exc) from exc
    typer.echo(render_home(session))
    if session.location is None:
        raise typer.Exit(code=1)


@app.command()
def watch(
    lat: LatOption = None,
    lon: LonOption = None,
    user: UserOption = None,
    config: ConfigOption = DEFAULT_CONFIG,
    db: OptionalDbOption = None,
) -> None:
    """Refresh the home screen every ``poll_interval`` seconds."""
    cfg = _load_config(config)
    setup_logging(cfg.monitoring)
    session = _build_session(cfg, lat=lat, lon=lon, db=db, user=user)
    last_mtime = config_mtime(config)
    typer.echo(f"Refreshing every {cfg.poll_interval}s (Ctrl-C to stop)")
    try:
        while True:
            asyncio.run(session.refresh())
            typer.echo(render_home(session))
            typer.echo("-" * 40)
            time.sleep(cfg.poll_interval)
            mtime = config_mtime(config)
            if mtime != last_mtime:
                logger.info("Config %s changed, reloading", config)
                cfg = _load_config(config)
                last_mtime = mtime
                settings = session.settings
                session = _build_session(cfg, lat=lat, lon=lon, db=db, user=user)
                session.settings = settings
    except KeyboardInterrupt:
        typer.echo("\nStopped.")


@app.command()
def serve(
    config: ConfigOption = DEFAULT_CONFIG,
    db: OptionalDbOption = None,
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Port")] = None,
) -> None:
    """Start the HTTP API server."""
    import uvicorn  # noqa: PLC0415

    from weather_news.api import create_app  # noqa: PLC0415

    cfg = _load_config(config)
    setup_logging(cfg.monitoring)

    # Fall back to config values when CLI flags are not provided
    resolved_host = host if host is not None else cfg.monitoring.host
    resolved_port = port if port is not None else cfg.monitoring.port

    fastapi_app = create_app(FeedService.from_config(cfg, db_path=db))
    typer.echo(f"Weather News API starting on http://{resolved_host}:{resolved_port}")
    uvicorn.run(fastapi_app, host=resolved_host, port=resolved_port, log_level="info")


@settings_app.command("show")
def settings_show(
    db: DbOption = DEFAULT_DB,
    user: Annotated[str, typer.Option("--user", "-u", help="User id")] = "default-user",
) -> None:
    """Print a user's settings (defaults when nothing is stored)."""
    store = SQLiteSettingsStore(db)
    try:
        stored = store.get(user)
    except WeatherNewsError as exc:
        raise _fail(exc) from exc
    finally:
        store.close()
    if stored is None:
        typer.echo(f"No settings stored for {user}; showing defaults")
        stored = UserSettings()
    typer.echo(render_settings(stored))


@settings_app.command("set")
def settings_set(
    db: DbOption = DEFAULT_DB,
    user: Annotated[str, typer.Option("--user", "-u", help="User id")] = "default-user",
    unit: Annotated[TemperatureUnit | None, typer.Option("--unit", help="Temperature unit")] = None,
    enable: Annotated[list[str] | None, typer.Option("--enable", help="Enable a news category")] = None,
    disable: Annotated[list[str] | None, typer.Option("--disable", help="Disable a news category")] = None,
    filtering: Annotated[
        bool | None, typer.Option("--filtering/--no-filtering", help="Weather-based news filtering")
    ] = None,
    current_location: Annotated[
        bool | None, typer.Option("--current-location/--no-current-location", help="Use device location")
    ] = None,
    weather_alerts: Annotated[bool | None, typer.Option("--weather-alerts/--no-weather-alerts")] = None,
    news_alerts: Annotated[bool | None, typer.Option("--news-alerts/--no-news-alerts")] = None,
) -> None:
    """Change individual settings; anything not given keeps its stored value."""
    toggles: dict[str, bool] = {}
    for name in enable or []:
        toggles[name.lower()] = True
    for name in disable or []:
        toggles[name.lower()] = False
    unknown = sorted(set(toggles).difference(NEWS_CATEGORIES))
    if unknown:
        typer.echo(f"Error: unknown news categories: {', '.join(unknown)}", err=True)
        raise typer.Exit(code=1)

    notifications: dict[str, bool] = {}
    if weather_alerts is not None:
        notifications["weather"] = weather_alerts
    if news_alerts is not None:
        notifications["news"] = news_alerts

    update = SettingsUpdate(
        temperature_unit=unit,
        news_categories=NewsCategoriesUpdate(**toggles) if toggles else None,
        weather_filtering=filtering,
        use_current_location=current_location,
        notifications=NotificationsUpdate(**notifications) if notifications else None,
    )

    store = SQLiteSettingsStore(db)
    try:
        saved = store.put(user, apply_settings_update(store.get(user) or UserSettings(), update))
    except WeatherNewsError as exc:
        raise _fail(exc) from exc
    finally:
        store.close()
    typer.echo(render_settings(saved))
