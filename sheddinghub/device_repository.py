"""
Device Repository for user-owned switchable appliances.

Every query is scoped to an owner id. Writes that touch several devices run
in a single transaction so a failed batch leaves nothing half-applied.
"""

import os
import sqlite3
import logging
import uuid
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sheddinghub.errors import NotFoundError, TransientNetworkError
from sheddinghub.models import Device
from sheddinghub.timezone_utils import now_configured_iso

log = logging.getLogger(__name__)

UPDATABLE_COLUMNS = ("name", "type", "room", "rated_power_w", "average_hours_per_day", "status")


def default_db_path() -> str:
    base = os.path.expanduser("~/.sheddinghub")   # inside user home
    os.makedirs(base, exist_ok=True)
    return os.path.join(base, "sheddinghub.db")


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class DeviceRepository:
    """Manages appliance records in the database."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or default_db_path()
        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        return sqlite3.connect(self.db_path)

    def _init_database(self):
        con = self._get_connection()
        try:
            cur = con.cursor()
            cur.execute("""
                CREATE TABLE IF NOT EXISTS appliances (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    room TEXT NOT NULL,
                    rated_power_w REAL NOT NULL,
                    average_hours_per_day REAL NOT NULL DEFAULT 8,
                    status TEXT NOT NULL DEFAULT 'off',
                    created_at TEXT NOT NULL
                )
            """)
            cur.execute("CREATE INDEX IF NOT EXISTS idx_appliances_owner ON appliances(owner_id)")
            con.commit()
            log.info(f"Appliances table initialized at: {self.db_path}")
        finally:
            con.close()

    @staticmethod
    def _row_to_device(row) -> Device:
        return Device(
            id=row[0],
            owner_id=row[1],
            name=row[2],
            type=row[3],
            room=row[4],
            rated_power_w=row[5],
            average_hours_per_day=row[6],
            status=row[7],
            created_at=row[8],
        )

    def list(self, owner_id: str) -> List[Device]:
        """All devices of an owner, newest first."""
        con = self._get_connection()
        try:
            cur = con.cursor()
            cur.execute("""
                SELECT id, owner_id, name, type, room, rated_power_w,
                       average_hours_per_day, status, created_at
                FROM appliances
                WHERE owner_id = ?
                ORDER BY created_at DESC, rowid DESC
            """, (owner_id,))
            return [self._row_to_device(row) for row in cur.fetchall()]
        except sqlite3.Error as e:
            raise TransientNetworkError(f"Failed to list devices: {e}") from e
        finally:
            con.close()

    def get(self, owner_id: str, device_id: str) -> Device:
        con = self._get_connection()
        try:
            cur = con.cursor()
            cur.execute("""
                SELECT id, owner_id, name, type, room, rated_power_w,
                       average_hours_per_day, status, created_at
                FROM appliances
                WHERE owner_id = ? AND id = ?
            """, (owner_id, device_id))
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise TransientNetworkError(f"Failed to read device {device_id}: {e}") from e
        finally:
            con.close()
        if row is None:
            raise NotFoundError(f"Device {device_id} not found")
        return self._row_to_device(row)

    def insert(self, device: Device) -> Device:
        """Insert a device, assigning an id and creation time when missing."""
        stored = device.model_copy(update={
            "id": device.id or uuid.uuid4().hex,
            "created_at": device.created_at or now_configured_iso(),
        })
        con = self._get_connection()
        try:
            con.execute("""
                INSERT INTO appliances (
                    id, owner_id, name, type, room, rated_power_w,
                    average_hours_per_day, status, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                stored.id, stored.owner_id, stored.name, stored.type.value, stored.room,
                stored.rated_power_w, stored.average_hours_per_day, stored.status.value,
                stored.created_at,
            ))
            con.commit()
            log.info(f"Added device {stored.id} ({stored.name}) for owner {stored.owner_id}")
            return stored
        except sqlite3.Error as e:
            con.rollback()
            raise TransientNetworkError(f"Failed to add device: {e}") from e
        finally:
            con.close()

    def _set_clause(self, partial: Dict[str, Any]):
        unknown = set(partial) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")
        columns = [c for c in UPDATABLE_COLUMNS if c in partial]
        clause = ", ".join(f"{c} = ?" for c in columns)
        return clause, [_plain(partial[c]) for c in columns]

    def update(self, owner_id: str, device_id: str, partial: Dict[str, Any]) -> None:
        self.update_many(owner_id, [device_id], partial)

    def update_many(self, owner_id: str, device_ids: Iterable[str], partial: Dict[str, Any]) -> None:
        """
        Apply the same partial update to several devices atomically.

        Raises NotFoundError (and changes nothing) if any id does not belong
        to the owner.
        """
        ids = list(dict.fromkeys(device_ids))
        if not ids or not partial:
            return
        clause, values = self._set_clause(partial)
        placeholders = ", ".join("?" for _ in ids)
        con = self._get_connection()
        try:
            cur = con.cursor()
            cur.execute(
                f"UPDATE appliances SET {clause} WHERE owner_id = ? AND id IN ({placeholders})",
                (*values, owner_id, *ids),
            )
            if cur.rowcount != len(ids):
                con.rollback()
                raise NotFoundError(f"Expected to update {len(ids)} devices, matched {cur.rowcount}")
            con.commit()
            log.debug(f"Updated {len(ids)} devices for owner {owner_id}: {partial}")
        except sqlite3.Error as e:
            con.rollback()
            raise TransientNetworkError(f"Failed to update devices: {e}") from e
        finally:
            con.close()

    def delete(self, owner_id: str, device_id: str) -> None:
        con = self._get_connection()
        try:
            cur = con.cursor()
            cur.execute("DELETE FROM appliances WHERE owner_id = ? AND id = ?", (owner_id, device_id))
            if cur.rowcount == 0:
                con.rollback()
                raise NotFoundError(f"Device {device_id} not found")
            con.commit()
            log.info(f"Deleted device {device_id} for owner {owner_id}")
        except sqlite3.Error as e:
            con.rollback()
            raise TransientNetworkError(f"Failed to delete device: {e}") from e
        finally:
            con.close()
