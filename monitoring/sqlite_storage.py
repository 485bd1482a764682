import json
import threading
from datetime import datetime
from typing import Optional, List

from history.sqlite_storage import open_connection
from monitoring.models import Monitor, AlertPreference
from monitoring.storage import MonitorStore


class SQLiteMonitorStore(MonitorStore):
    """
    SQLite implementation of MonitorStore.
    (url, contact) is enforced unique at the table level.
    Alert preferences live in a sibling table keyed by contact.
    """

    def __init__(self, db_path):
        self._conn = open_connection(db_path)
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self):
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS monitors (
                    id TEXT PRIMARY KEY,
                    url TEXT NOT NULL,
                    contact TEXT NOT NULL,
                    active INTEGER NOT NULL,
                    payload TEXT NOT NULL,  -- Monitor.to_dict() as JSON
                    UNIQUE (url, contact)
                );
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS alert_preferences (
                    contact TEXT PRIMARY KEY,
                    payload TEXT NOT NULL  -- AlertPreference.to_dict() as JSON
                );
            """)
            self._conn.commit()

    def save(self, monitor: Monitor) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO monitors (id, url, contact, active, payload) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    url = excluded.url,
                    contact = excluded.contact,
                    active = excluded.active,
                    payload = excluded.payload
                """,
                (monitor.id, monitor.url, monitor.contact, int(monitor.active), json.dumps(monitor.to_dict())),
            )
            self._conn.commit()

    def get(self, monitor_id: str) -> Optional[Monitor]:
        with self._lock:
            row = self._conn.execute("SELECT payload FROM monitors WHERE id = ?", (monitor_id,)).fetchone()
        return Monitor.from_dict(json.loads(row[0])) if row else None

    def find(self, url: str, contact: str) -> Optional[Monitor]:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM monitors WHERE url = ? AND contact = ?", (url, contact)
            ).fetchone()
        return Monitor.from_dict(json.loads(row[0])) if row else None

    def list(self, contact: Optional[str] = None, active_only: bool = True) -> List[Monitor]:
        sql = "SELECT payload FROM monitors WHERE 1 = 1"
        params = []
        if contact is not None:
            sql += " AND contact = ?"
            params.append(contact)
        if active_only:
            sql += " AND active = 1"
        sql += " ORDER BY rowid ASC"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [Monitor.from_dict(json.loads(r[0])) for r in rows]

    def due(self, now: datetime) -> List[Monitor]:
        # timestamps live in the JSON payload; due-ness is decided on the model
        return [m for m in self.list(active_only=True) if m.is_due(now)]

    def record_scan(self, monitor_id: str, scanned_at: datetime, score: int) -> Optional[Monitor]:
        # single lock hold; only the scan fields of an active row change
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM monitors WHERE id = ? AND active = 1", (monitor_id,)
            ).fetchone()
            if row is None:
                return None
            monitor = Monitor.from_dict(json.loads(row[0])).after_scan(scanned_at, score)
            self._conn.execute(
                "UPDATE monitors SET payload = ? WHERE id = ?", (json.dumps(monitor.to_dict()), monitor_id)
            )
            self._conn.commit()
        return monitor

    def count(self, active_only: bool = True) -> int:
        sql = "SELECT COUNT(*) FROM monitors" + (" WHERE active = 1" if active_only else "")
        with self._lock:
            return self._conn.execute(sql).fetchone()[0]

    # -------------------------------
    # ALERT PREFERENCES
    # -------------------------------
    def save_alert_preference(self, preference: AlertPreference) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO alert_preferences (contact, payload) VALUES (?, ?)
                ON CONFLICT(contact) DO UPDATE SET payload = excluded.payload
                """,
                (preference.contact, json.dumps(preference.to_dict())),
            )
            self._conn.commit()

    def get_alert_preference(self, contact: str) -> Optional[AlertPreference]:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM alert_preferences WHERE contact = ?", (contact,)
            ).fetchone()
        return AlertPreference.from_dict(json.loads(row[0])) if row else None

    def close(self):
        with self._lock:
            self._conn.close()
