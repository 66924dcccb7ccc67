"""Pydantic models for weather reports.

Field aliases follow the camelCase wire schema served by the HTTP API.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from weather_news.units import TemperatureUnit

MAX_FORECAST_DAYS = 5


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    country: str
    lat: float
    lon: float


class WeatherSnapshot(BaseModel):
    """Current conditions. Replaced wholesale on every successful refresh."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    temperature: float
    unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT
    condition: str
    feels_like: float = Field(alias="feelsLike")
    humidity: float
    wind: float
    visibility: float
    uv_index: float = Field(default=0, alias="uvIndex")
    icon: str


class ForecastDay(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date: date
    day_name: str = Field(alias="dayName")
    high: float
    low: float
    condition: str
    icon: str


class WeatherReport(BaseModel):
    """Validated weather payload handed to the presentation layer."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    location: Location
    current: WeatherSnapshot
    forecast: list[ForecastDay] = Field(default_factory=list)
    last_updated: str = Field(alias="lastUpdated")

    @model_validator(mode="after")
    def _forecast_is_ordered(self) -> "WeatherReport":
        if len(self.forecast) > MAX_FORECAST_DAYS:
            msg = f"forecast has {len(self.forecast)} days, at most {MAX_FORECAST_DAYS} allowed"
            raise ValueError(msg)
        dates = [day.date for day in self.forecast]
        if len(set(dates)) != len(dates):
            raise ValueError("forecast dates must be distinct")
        if dates != sorted(dates):
            raise ValueError("forecast dates must be in chronological order")
        return self
