"""Temperature unit conversion and display formatting."""

import math
from enum import Enum


class TemperatureUnit(str, Enum):
    """Display unit for temperatures, as stored in user settings."""

    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"

    @property
    def symbol(self) -> str:
        return "°C" if self is TemperatureUnit.CELSIUS else "°F"

    @property
    def unit_system(self) -> str:
        """OpenWeatherMap ``units`` parameter for this unit."""
        return "metric" if self is TemperatureUnit.CELSIUS else "imperial"

    @classmethod
    def from_unit_system(cls, units: str) -> "TemperatureUnit":
        """Map an OpenWeatherMap ``units`` value back to a display unit."""
        if units == "metric":
            return cls.CELSIUS
        if units == "imperial":
            return cls.FAHRENHEIT
        msg = f"Unsupported unit system: {units!r}"
        raise ValueError(msg)


def convert(value: float, from_unit: TemperatureUnit, to_unit: TemperatureUnit) -> float:
    """Convert a temperature between Celsius and Fahrenheit.

    Same-unit conversion returns ``value`` untouched.
    """
    if from_unit == to_unit:
        return value
    if from_unit is TemperatureUnit.FAHRENHEIT:
        return (value - 32) * 5 / 9
    return value * 9 / 5 + 32


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    The value is first snapped to 9 decimals so conversion drift such as
    ``72.49999999999999`` rounds the same as ``72.5``. The snap is a
    tolerance: any input within 5e-10 of a tie is treated as the tie, so
    ``-35.5000000002`` gives ``-35`` rather than ``-36``. Readings carry far
    less precision than that.
    """
    return math.floor(round(value, 9) + 0.5)


def format_temperature(value: float, unit: TemperatureUnit) -> str:
    """Render ``value`` as a rounded integer followed by the unit glyph."""
    return f"{round_half_up(value)}{unit.symbol}"
