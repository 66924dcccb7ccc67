"""Per-user settings: schema, merge rules and persistence."""

from weather_news.settings.models import SettingsUpdate, UserSettings, apply_settings_update
from weather_news.settings.store import InMemorySettingsStore, SettingsStore, SQLiteSettingsStore

__all__ = [
    "InMemorySettingsStore",
    "SQLiteSettingsStore",
    "SettingsStore",
    "SettingsUpdate",
    "UserSettings",
    "apply_settings_update",
]
