"""User settings schema and the partial-update merge.

The wire format is camelCase (``temperatureUnit``, ``newsCategories``...);
Python attributes are snake_case. Every field has a schema default, so
``UserSettings()`` is the complete record handed out for unknown users.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from weather_news.units import TemperatureUnit


class _SettingsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NewsCategories(_SettingsModel):
    general: bool = True
    technology: bool = True
    health: bool = False
    sports: bool = False
    entertainment: bool = False

    def enabled(self) -> list[str]:
        """Enabled category names, in canonical order."""
        return [name for name, on in self.model_dump().items() if on]


class Notifications(_SettingsModel):
    weather: bool = True
    news: bool = False


class UserSettings(_SettingsModel):
    """A complete per-user preference record."""

    temperature_unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT
    news_categories: NewsCategories = Field(default_factory=NewsCategories)
    weather_filtering: bool = True
    use_current_location: bool = True
    notifications: Notifications = Field(default_factory=Notifications)

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class NewsCategoriesUpdate(_SettingsModel):
    general: bool | None = None
    technology: bool | None = None
    health: bool | None = None
    sports: bool | None = None
    entertainment: bool | None = None


class NotificationsUpdate(_SettingsModel):
    weather: bool | None = None
    news: bool | None = None


class SettingsUpdate(_SettingsModel):
    """A partial settings change. ``None`` means "leave as is"."""

    temperature_unit: TemperatureUnit | None = None
    news_categories: NewsCategoriesUpdate | None = None
    weather_filtering: bool | None = None
    use_current_location: bool | None = None
    notifications: NotificationsUpdate | None = None


def _present(update: BaseModel) -> dict[str, object]:
    return {k: v for k, v in update.model_dump(exclude_unset=True).items() if v is not None}


def apply_settings_update(current: UserSettings, update: SettingsUpdate) -> UserSettings:
    """Return ``current`` with ``update`` applied.

    Top-level scalars present in ``update`` replace the current value.
    ``news_categories`` and ``notifications`` merge key by key, so enabling
    one category never resets the others.
    """
    changes: dict[str, object] = {}
    for field in ("temperature_unit", "weather_filtering", "use_current_location"):
        value = getattr(update, field)
        if value is not None:
            changes[field] = value
    if update.news_categories is not None:
        changes["news_categories"] = current.news_categories.model_copy(update=_present(update.news_categories))
    if update.notifications is not None:
        changes["notifications"] = current.notifications.model_copy(update=_present(update.notifications))
    return current.model_copy(update=changes)
