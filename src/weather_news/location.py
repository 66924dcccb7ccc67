"""Device position sources and the location failure taxonomy."""

import asyncio
import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from weather_news.errors import LocationUnavailableError
from weather_news.weather.models import Location
from weather_news.weather.provider import Geocoder

logger = logging.getLogger(__name__)


class LocationFailure(str, Enum):
    """Why a position could not be obtained; each maps to its own message."""

    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"

    @property
    def message(self) -> str:
        return _FAILURE_MESSAGES[self]


_FAILURE_MESSAGES: dict[LocationFailure, str] = {
    LocationFailure.UNSUPPORTED: "Geolocation is not supported by this browser",
    LocationFailure.PERMISSION_DENIED: "Location access denied by user",
    LocationFailure.POSITION_UNAVAILABLE: "Location information unavailable",
    LocationFailure.TIMEOUT: "Location request timed out",
}


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class LocationSource(Protocol):
    """Anything that can report the user's current position."""

    async def current_position(self) -> Coordinates: ...


class FixedLocationSource:
    """Position supplied up front (config file or CLI flags).

    With no coordinates configured the source behaves like a device whose
    user declined the permission prompt.
    """

    def __init__(self, latitude: float | None = None, longitude: float | None = None) -> None:
        self._coords: Coordinates | None = None
        if latitude is not None and longitude is not None:
            self._coords = Coordinates(latitude=latitude, longitude=longitude)

    async def current_position(self) -> Coordinates:
        if self._coords is None:
            raise LocationUnavailableError(LocationFailure.PERMISSION_DENIED)
        return self._coords


async def resolve_location(source: LocationSource, geocoder: Geocoder, *, timeout: float = 10.0) -> Location:
    """Obtain a position within ``timeout`` seconds and attach a city name.

    Raises:
        LocationUnavailableError: The source failed or did not answer in time.
            Geocoding failures never raise; the city falls back to ``Unknown``.
    """
    try:
        coords = await asyncio.wait_for(source.current_position(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise LocationUnavailableError(LocationFailure.TIMEOUT) from exc

    city, country = await geocoder.reverse_geocode(coords.latitude, coords.longitude)
    logger.info("Resolved location (%.4f, %.4f) -> %s, %s", coords.latitude, coords.longitude, city, country)
    return Location(city=city, country=country, lat=coords.latitude, lon=coords.longitude)
