"""Configuration loading and validation."""

import os
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class WeatherConfig(BaseModel):
    """OpenWeatherMap provider configuration."""

    api_key_envs: list[str] = Field(default_factory=lambda: ["OPENWEATHER_API_KEY", "OPENWEATHERMAP_API_KEY"])
    base_url: str = "https://api.openweathermap.org/data/2.5"
    geo_base_url: str = "https://api.openweathermap.org/geo/1.0"
    timeout: float = 15.0
    cache_ttl: int = 300


class NewsConfig(BaseModel):
    """NewsAPI.org provider configuration."""

    api_key_envs: list[str] = Field(default_factory=lambda: ["NEWS_API_KEY", "NEWSAPI_KEY"])
    base_url: str = "https://newsapi.org/v2"
    country: str = "us"
    page_size: int = 10
    timeout: float = 15.0
    cache_ttl: int = 300
    max_calls_per_hour: int = 50


class SettingsStoreConfig(BaseModel):
    """Where per-user settings records live."""

    backend: Literal["memory", "sqlite"] = "memory"
    db_path: str = "weather_news.db"
    default_user_id: str = "default-user"


class LocationConfig(BaseModel):
    """Fallback position used when the client does not supply one."""

    latitude: float | None = None
    longitude: float | None = None
    timeout: float = 10.0


class MonitoringConfig(BaseModel):
    """Logging and HTTP server configuration."""

    structured_logging: bool = False
    log_file: str | None = None
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 5000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    poll_interval: int = 600
    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    news: NewsConfig = Field(default_factory=NewsConfig)
    settings_store: SettingsStoreConfig = Field(default_factory=SettingsStoreConfig)
    location: LocationConfig = Field(default_factory=LocationConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


def load_config(path: Path) -> AppConfig:
    """Load config from a YAML file, after sourcing a sibling ``.env``."""
    load_dotenv(path.parent / ".env", override=False)
    return AppConfig(**(yaml.safe_load(path.read_text()) or {}))


def config_mtime(path: Path) -> float:
    """Return the modification time of a config file, or 0.0 if it doesn't exist."""
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0


def resolve_api_key(env_names: Iterable[str]) -> str | None:
    """Return the first non-empty value among ``env_names``."""
    for name in env_names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None
