"""Plain-text rendering of the home screen and settings."""

from datetime import datetime, timezone

from weather_news.news.filter_policy import FilterIntent
from weather_news.news.models import NewsArticle
from weather_news.presentation.session import FeedSession
from weather_news.settings.models import UserSettings
from weather_news.units import TemperatureUnit, format_temperature
from weather_news.weather.models import WeatherReport

# OpenWeatherMap icon code prefix -> glyph
_ICONS: dict[str, str] = {
    "01": "☀",
    "02": "⛅",
    "03": "☁",
    "04": "☁",
    "09": "🌧",
    "10": "🌦",
    "11": "⛈",
    "13": "❄",
    "50": "🌫",
}


def weather_icon(code: str) -> str:
    if code.startswith("01") and code.endswith("n"):
        return "🌙"
    return _ICONS.get(code[:2], "🌡")


def format_time_ago(published_at: str, now: datetime | None = None) -> str:
    """Describe how long ago an article was published, in whole hours or days."""
    published = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    hours = int((now - published).total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def render_weather_card(report: WeatherReport) -> str:
    current = report.current
    unit = current.unit
    distance = "mi" if unit is TemperatureUnit.FAHRENHEIT else "km"
    speed = "mph" if unit is TemperatureUnit.FAHRENHEIT else "m/s"
    lines = [
        f"{report.location.city}, {report.location.country}",
        f"{weather_icon(current.icon)}  {format_temperature(current.temperature, unit)}  {current.condition.capitalize()}",
        f"Feels like {format_temperature(current.feels_like, unit)}",
        f"Humidity {current.humidity:.0f}%  Wind {current.wind:.0f} {speed}  "
        f"Visibility {current.visibility:.0f} {distance}  UV {current.uv_index:.0f}",
        f"Updated {report.last_updated}",
    ]
    return "\n".join(lines)


def render_forecast(report: WeatherReport) -> str:
    unit = report.current.unit
    lines = [f"{len(report.forecast)}-Day Forecast"]
    for day in report.forecast:
        lines.append(
            f"  {day.day_name:<5} {weather_icon(day.icon)}  "
            f"{format_temperature(day.high, unit):>5} / {format_temperature(day.low, unit):<5} {day.condition}"
        )
    return "\n".join(lines)


def render_filter(intent: FilterIntent) -> str:
    """The "why am I seeing this" line shown above the headlines."""
    if not intent.is_active:
        return intent.rationale
    return f"News Filter Active: {intent.rationale} ({', '.join(sorted(intent.keywords))})"


def render_news(
    articles: list[NewsArticle],
    intent: FilterIntent | None = None,
    *,
    now: datetime | None = None,
    has_more: bool = False,
) -> str:
    lines = ["Latest Headlines"]
    if intent is not None and intent.is_active:
        lines.append(render_filter(intent))
    if not articles:
        lines.append("  No news articles available")
    for article in articles:
        lines.append(f"- {article.title}")
        if article.description:
            lines.append(f"  {article.description}")
        lines.append(f"  {article.source} · {format_time_ago(article.published_at, now)} · {article.url}")
    if has_more:
        lines.append("(more headlines available)")
    return "\n".join(lines)


def render_settings(settings: UserSettings) -> str:
    def on_off(flag: bool) -> str:
        return "on" if flag else "off"

    categories = ", ".join(
        f"{name}={on_off(enabled)}" for name, enabled in settings.news_categories.model_dump().items()
    )
    return "\n".join(
        [
            f"Temperature unit:     {settings.temperature_unit.value}",
            f"News categories:      {categories}",
            f"Weather filtering:    {on_off(settings.weather_filtering)}",
            f"Use current location: {on_off(settings.use_current_location)}",
            f"Weather alerts:       {on_off(settings.notifications.weather)}",
            f"Breaking news alerts: {on_off(settings.notifications.news)}",
        ]
    )


def render_home(session: FeedSession, *, now: datetime | None = None) -> str:
    """Render the whole home screen, including any per-section error."""
    if session.location is None:
        reason = session.location_error or "We need your location to provide weather data and personalized news."
        return f"Location Required\n{reason}"

    sections = [f"📍 {session.location.city}, {session.location.country}".rstrip(", ")]
    if session.weather_error:
        sections.append(session.weather_error)
    if session.weather is not None:
        sections.append(render_weather_card(session.weather))
        sections.append(render_forecast(session.weather))
    if session.news_error:
        sections.append(session.news_error)
    intent = session.filter_intent if session.settings.weather_filtering else None
    sections.append(render_news(session.articles, intent, now=now, has_more=session.has_more))
    if session.settings_error:
        sections.append(session.settings_error)
    return "\n\n".join(sections)
