"""Weather-conditioned news filter policy.

Maps the current temperature and condition to a :class:`FilterIntent`: whether
the feed is weather-biased, a human-readable rationale shown next to the
headlines, and the keyword set surfaced in the UI.

Three closed temperature buckets (Fahrenheit scale) drive the decision::

    t < 50        cold  -> challenging news
    50 <= t <= 80 cool  -> positive news
    t > 80        hot   -> cautionary news

The UI keyword set has four terms per bucket while the provider query
expansion (:func:`query_terms`) has five.
"""

import math
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict

from weather_news.units import TemperatureUnit, convert

COLD_BELOW_F = 50.0
HOT_ABOVE_F = 80.0

NO_WEATHER_RATIONALE = "No weather data available"


class WeatherBucket(str, Enum):
    COLD = "cold"
    COOL = "cool"
    HOT = "hot"


@dataclass(frozen=True)
class _BucketRule:
    rationale: str
    keywords: tuple[str, ...]
    query_terms: tuple[str, ...]


_RULES: dict[WeatherBucket, _BucketRule] = {
    WeatherBucket.COLD: _BucketRule(
        rationale="Cold weather - Showing challenging news",
        keywords=("tragedy", "crisis", "disaster", "conflict"),
        query_terms=("tragedy", "crisis", "disaster", "death", "conflict"),
    ),
    WeatherBucket.HOT: _BucketRule(
        rationale="Hot weather - Showing cautionary news",
        keywords=("danger", "threat", "risk", "warning"),
        query_terms=("danger", "threat", "risk", "fear", "warning"),
    ),
    WeatherBucket.COOL: _BucketRule(
        rationale="Cool weather - Showing positive news",
        keywords=("success", "victory", "achievement", "breakthrough"),
        query_terms=("success", "victory", "achievement", "breakthrough", "celebration"),
    ),
}


class FilterIntent(BaseModel):
    """Derived decision describing whether and how news is weather-biased."""

    model_config = ConfigDict(frozen=True)

    is_active: bool
    rationale: str
    keywords: frozenset[str] = frozenset()
    bucket: WeatherBucket | None = None


INACTIVE_INTENT = FilterIntent(is_active=False, rationale=NO_WEATHER_RATIONALE)


def bucket_for(temperature_f: float) -> WeatherBucket:
    """Return the bucket for a Fahrenheit temperature; 50 and 80 are cool."""
    if temperature_f < COLD_BELOW_F:
        return WeatherBucket.COLD
    if temperature_f > HOT_ABOVE_F:
        return WeatherBucket.HOT
    return WeatherBucket.COOL


def _resolve_bucket(
    temperature: float | None,
    condition: str | None,
    unit: TemperatureUnit,
) -> WeatherBucket | None:
    if temperature is None or not math.isfinite(temperature):
        return None
    if condition is None or not condition.strip():
        return None
    return bucket_for(convert(temperature, unit, TemperatureUnit.FAHRENHEIT))


def classify(
    temperature: float | None,
    condition: str | None,
    unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT,
) -> FilterIntent:
    """Classify the current weather into a news :class:`FilterIntent`.

    Args:
        temperature: Current temperature in ``unit``, or ``None`` when unknown.
            ``0`` is a valid reading; NaN and infinities count as unknown.
        condition: Free-text provider description (e.g. ``"light rain"``).
            ``None`` or blank means no weather data.
        unit: Unit ``temperature`` is expressed in; bucketing is always done
            on the Fahrenheit-equivalent value.
    """
    bucket = _resolve_bucket(temperature, condition, unit)
    if bucket is None:
        return INACTIVE_INTENT
    rule = _RULES[bucket]
    return FilterIntent(
        is_active=True,
        rationale=rule.rationale,
        keywords=frozenset(rule.keywords),
        bucket=bucket,
    )


def query_terms(
    temperature: float | None,
    condition: str | None,
    unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT,
) -> tuple[str, ...]:
    """Return the provider search terms for the weather, or ``()`` when inactive."""
    bucket = _resolve_bucket(temperature, condition, unit)
    if bucket is None:
        return ()
    return _RULES[bucket].query_terms


def terms_for_intent(intent: FilterIntent) -> tuple[str, ...]:
    """Return the provider search terms matching an already-classified intent."""
    if not intent.is_active or intent.bucket is None:
        return ()
    return _RULES[intent.bucket].query_terms


def keyword_expansion(terms: tuple[str, ...]) -> str | None:
    """OR-join search terms into the provider's ``q`` syntax."""
    if not terms:
        return None
    return " OR ".join(terms)
