"""Tests for the settings schema, partial updates and the stores."""

import sqlite3
from pathlib import Path

import pytest
from pydantic import ValidationError

from weather_news.errors import SettingsPersistenceError
from weather_news.settings import InMemorySettingsStore, SettingsUpdate, SQLiteSettingsStore, UserSettings
from weather_news.settings.models import NewsCategoriesUpdate, NotificationsUpdate, apply_settings_update
from weather_news.units import TemperatureUnit


def test_defaults() -> None:
    settings = UserSettings()
    assert settings.temperature_unit is TemperatureUnit.FAHRENHEIT
    assert settings.news_categories.enabled() == ["general", "technology"]
    assert settings.weather_filtering is True
    assert settings.use_current_location is True
    assert settings.notifications.weather is True
    assert settings.notifications.news is False


def test_wire_format_is_camel_case() -> None:
    wire = UserSettings().to_wire()
    assert wire == {
        "temperatureUnit": "fahrenheit",
        "newsCategories": {
            "general": True,
            "technology": True,
            "health": False,
            "sports": False,
            "entertainment": False,
        },
        "weatherFiltering": True,
        "useCurrentLocation": True,
        "notifications": {"weather": True, "news": False},
    }


def test_validate_from_wire_fills_missing_fields() -> None:
    settings = UserSettings.model_validate({"temperatureUnit": "celsius", "newsCategories": {"sports": True}})
    assert settings.temperature_unit is TemperatureUnit.CELSIUS
    assert settings.news_categories.sports is True
    assert settings.news_categories.general is True
    assert settings.weather_filtering is True


def test_rejects_unknown_unit() -> None:
    with pytest.raises(ValidationError):
        UserSettings.model_validate({"temperatureUnit": "kelvin"})


def test_enabled_preserves_canonical_order() -> None:
    settings = UserSettings.model_validate(
        {"newsCategories": {"entertainment": True, "general": False, "technology": False, "health": True}}
    )
    assert settings.news_categories.enabled() == ["health", "entertainment"]


# ---------------------------------------------------------------------------
# apply_settings_update
# ---------------------------------------------------------------------------


def test_update_replaces_scalars_only_when_given() -> None:
    updated = apply_settings_update(UserSettings(), SettingsUpdate(temperature_unit=TemperatureUnit.CELSIUS))
    assert updated.temperature_unit is TemperatureUnit.CELSIUS
    assert updated.weather_filtering is True
    assert updated.news_categories == UserSettings().news_categories


def test_update_merges_nested_categories() -> None:
    update = SettingsUpdate(news_categories=NewsCategoriesUpdate(sports=True, technology=False))
    updated = apply_settings_update(UserSettings(), update)
    assert updated.news_categories.enabled() == ["general", "sports"]


def test_update_merges_nested_notifications() -> None:
    update = SettingsUpdate(notifications=NotificationsUpdate(news=True))
    updated = apply_settings_update(UserSettings(), update)
    assert updated.notifications.weather is True
    assert updated.notifications.news is True


def test_update_accepts_camel_case_wire_body() -> None:
    update = SettingsUpdate.model_validate({"weatherFiltering": False, "newsCategories": {"health": True}})
    updated = apply_settings_update(UserSettings(), update)
    assert updated.weather_filtering is False
    assert updated.news_categories.health is True
    assert updated.news_categories.general is True


def test_empty_update_is_identity() -> None:
    current = UserSettings(weather_filtering=False)
    assert apply_settings_update(current, SettingsUpdate()) == current


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        yield InMemorySettingsStore()
        return
    sqlite_store = SQLiteSettingsStore(tmp_path / "settings.db")
    yield sqlite_store
    sqlite_store.close()


def test_unknown_user_has_no_record(store) -> None:
    assert store.get("nobody") is None


def test_put_then_get(store) -> None:
    settings = UserSettings(temperature_unit=TemperatureUnit.CELSIUS)
    assert store.put("alice", settings) == settings
    assert store.get("alice") == settings


def test_put_replaces_whole_record(store) -> None:
    store.put("alice", UserSettings(weather_filtering=False, temperature_unit=TemperatureUnit.CELSIUS))
    store.put("alice", UserSettings())
    assert store.get("alice") == UserSettings()


def test_records_are_per_user(store) -> None:
    store.put("alice", UserSettings(weather_filtering=False))
    assert store.get("bob") is None


def test_sqlite_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "settings.db"
    first = SQLiteSettingsStore(path)
    first.put("alice", UserSettings(use_current_location=False))
    first.close()
    second = SQLiteSettingsStore(path)
    stored = second.get("alice")
    second.close()
    assert stored is not None
    assert stored.use_current_location is False


def test_sqlite_corrupt_row_raises_persistence_error(tmp_path: Path) -> None:
    path = tmp_path / "settings.db"
    store = SQLiteSettingsStore(path)
    conn = sqlite3.connect(str(path))
    conn.execute("INSERT INTO user_settings (user_id, settings_json) VALUES (?, ?)", ("alice", "{not json"))
    conn.commit()
    conn.close()
    with pytest.raises(SettingsPersistenceError, match="corrupt"):
        store.get("alice")
    store.close()


def test_sqlite_closed_connection_raises_persistence_error(tmp_path: Path) -> None:
    store = SQLiteSettingsStore(tmp_path / "settings.db")
    store.close()
    with pytest.raises(SettingsPersistenceError):
        store.put("alice", UserSettings())
