#!/usr/bin/env python3
"""
Preference Store for automation rules, notification preferences and favorites.
Values are JSON blobs under namespaced string keys, scoped to the owner.
"""

import json
import logging
import sqlite3
from typing import Any, List, Optional

from pydantic import ValidationError

from sheddinghub.device_repository import default_db_path
from sheddinghub.errors import TransientNetworkError
from sheddinghub.models import AutomationSettings, NotificationPrefs

log = logging.getLogger(__name__)

AUTOMATION_KEY = "@loadshedding_automation"
NOTIFICATION_PREFS_KEY = "@loadshedding_notifications"
FAVORITES_KEY = "@device_favorites"


class PreferenceStore:
    """String-keyed JSON storage backed by the engine database."""

    def __init__(self, owner_id: str, db_path: Optional[str] = None):
        self.owner_id = owner_id
        self.db_path = db_path or default_db_path()
        self._init_database()

    def _init_database(self):
        """Initialize the preferences table in the database."""
        con = sqlite3.connect(self.db_path)
        try:
            con.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    owner_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (owner_id, key)
                )
            """)
            con.commit()
        finally:
            con.close()

    def _get_connection(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise TransientNetworkError(f"Cannot open preferences database: {e}") from e

    def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for ``key`` or None when absent/corrupt."""
        con = self._get_connection()
        try:
            cur = con.cursor()
            cur.execute("SELECT value FROM preferences WHERE owner_id = ? AND key = ?",
                        (self.owner_id, key))
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise TransientNetworkError(f"Failed to read preference {key}: {e}") from e
        finally:
            con.close()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            log.warning(f"Ignoring corrupt preference {key}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        con = self._get_connection()
        try:
            con.execute("""
                INSERT OR REPLACE INTO preferences (owner_id, key, value, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            """, (self.owner_id, key, json.dumps(value)))
            con.commit()
            log.debug(f"Preference {key} saved")
        except sqlite3.Error as e:
            con.rollback()
            raise TransientNetworkError(f"Failed to save preference {key}: {e}") from e
        finally:
            con.close()

    # --- automation -----------------------------------------------------

    def load_automation(self) -> AutomationSettings:
        stored = self.get(AUTOMATION_KEY)
        if not stored:
            return AutomationSettings()
        try:
            return AutomationSettings.model_validate(stored)
        except ValidationError as e:
            log.warning(f"Error loading automation settings, using defaults: {e}")
            return AutomationSettings()

    def save_automation(self, settings: AutomationSettings) -> None:
        self.set(AUTOMATION_KEY, settings.model_dump(mode="json"))

    # --- notifications --------------------------------------------------

    def load_notification_prefs(self) -> NotificationPrefs:
        stored = self.get(NOTIFICATION_PREFS_KEY)
        if not isinstance(stored, dict):
            return NotificationPrefs()
        # Anything other than an explicit false keeps notifications on
        return NotificationPrefs(enabled=stored.get("enabled") is not False)

    def save_notification_prefs(self, prefs: NotificationPrefs) -> None:
        self.set(NOTIFICATION_PREFS_KEY, prefs.model_dump(mode="json"))

    # --- favorites ------------------------------------------------------

    def load_favorites(self) -> List[str]:
        stored = self.get(FAVORITES_KEY)
        if not isinstance(stored, list):
            return []
        return [str(x) for x in stored]

    def toggle_favorite(self, device_id: str) -> List[str]:
        favorites = self.load_favorites()
        if device_id in favorites:
            favorites = [f for f in favorites if f != device_id]
        else:
            favorites.append(device_id)
        self.set(FAVORITES_KEY, favorites)
        return favorites

    def remove_favorite(self, device_id: str) -> List[str]:
        favorites = self.load_favorites()
        if device_id in favorites:
            favorites = [f for f in favorites if f != device_id]
            self.set(FAVORITES_KEY, favorites)
        return favorites
