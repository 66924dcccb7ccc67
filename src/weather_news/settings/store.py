"""Settings persistence: a keyed get/put store with memory and SQLite backends."""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from weather_news.errors import SettingsPersistenceError
from weather_news.settings.models import UserSettings

logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    """Keyed store of complete settings records.

    ``put`` replaces the whole record; merging partial updates happens
    before the call (see :func:`weather_news.settings.models.apply_settings_update`).
    """

    def get(self, user_id: str) -> UserSettings | None: ...

    def put(self, user_id: str, settings: UserSettings) -> UserSettings: ...


class InMemorySettingsStore:
    """Process-local store. Records vanish on restart."""

    def __init__(self) -> None:
        self._records: dict[str, UserSettings] = {}

    def get(self, user_id: str) -> UserSettings | None:
        return self._records.get(user_id)

    def put(self, user_id: str, settings: UserSettings) -> UserSettings:
        self._records[user_id] = settings
        return settings


class SQLiteSettingsStore:
    """SQLite-backed store holding one JSON row per user id."""

    def __init__(self, path: Path) -> None:
        try:
            self._conn = sqlite3.connect(str(path), check_same_thread=False)
        except sqlite3.Error as exc:
            msg = f"Cannot open settings database {path}"
            raise SettingsPersistenceError(msg) from exc
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS user_settings (
                user_id TEXT PRIMARY KEY,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                settings_json TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def get(self, user_id: str) -> UserSettings | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT settings_json FROM user_settings WHERE user_id = ?", (user_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.exception("Failed to read settings for %s", user_id)
            msg = f"Failed to read settings for {user_id}"
            raise SettingsPersistenceError(msg) from exc
        if row is None:
            return None
        try:
            return UserSettings.model_validate(json.loads(row["settings_json"]))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Stored settings for {user_id} are corrupt"
            raise SettingsPersistenceError(msg) from exc

    def put(self, user_id: str, settings: UserSettings) -> UserSettings:
        payload = json.dumps(settings.to_wire())
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO user_settings (user_id, updated_at, settings_json)"
                    " VALUES (?, CURRENT_TIMESTAMP, ?)",
                    (user_id, payload),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            logger.exception("Failed to write settings for %s", user_id)
            msg = f"Failed to write settings for {user_id}"
            raise SettingsPersistenceError(msg) from exc
        return settings

    def close(self) -> None:
        self._conn.close()
