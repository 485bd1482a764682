import json
import sqlite3
import threading
from pathlib import Path
from typing import Optional, List

from scanner.core import MAX_HISTORY, logger
from history.models import ScanRecord
from history.storage import ScanStore


def open_connection(db_path) -> sqlite3.Connection:
    """
    Open a SQLite connection shared across threads.
    Callers serialise access with their own lock.
    """
    db_path = str(db_path)
    in_memory = db_path == ":memory:"
    if not in_memory:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    if not in_memory:
        conn.execute("PRAGMA journal_mode = WAL;")
    return conn


class SQLiteScanStore(ScanStore):
    """
    SQLite implementation of ScanStore.
    Invariants:
    - Insertion order is the autoincrement `seq`, not the timestamp.
    - At most `max_history` rows are kept; the oldest are evicted on append.
    """

    def __init__(self, db_path, max_history: int = MAX_HISTORY):
        self._conn = open_connection(db_path)
        self._lock = threading.Lock()
        self._max_history = max_history
        self._initialize()

    def _initialize(self):
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS scans (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    url TEXT NOT NULL,
                    host TEXT,
                    scanned_at TEXT NOT NULL,
                    payload TEXT NOT NULL  -- ScanRecord.to_dict() as JSON
                );
            """)
            self._conn.execute("CREATE INDEX IF NOT EXISTS idx_scans_host ON scans(host);")
            self._conn.commit()

    def append(self, record: ScanRecord) -> None:
        payload = json.dumps(record.to_dict())
        with self._lock:
            self._conn.execute(
                "INSERT INTO scans (id, url, host, scanned_at, payload) VALUES (?, ?, ?, ?, ?)",
                (record.id, record.url, record.host, record.scanned_at.isoformat(), payload),
            )
            cursor = self._conn.execute(
                "DELETE FROM scans WHERE seq NOT IN (SELECT seq FROM scans ORDER BY seq DESC LIMIT ?)",
                (self._max_history,),
            )
            self._conn.commit()
        if cursor.rowcount > 0:
            logger.info(f"[STORE] Evicted {cursor.rowcount} scan(s) beyond history cap {self._max_history}")

    def get(self, scan_id: str) -> Optional[ScanRecord]:
        with self._lock:
            row = self._conn.execute("SELECT payload FROM scans WHERE id = ?", (scan_id,)).fetchone()
        return ScanRecord.from_dict(json.loads(row[0])) if row else None

    def recent(self, url_filter: Optional[str] = None, limit: int = 20) -> List[ScanRecord]:
        with self._lock:
            if url_filter:
                rows = self._conn.execute(
                    "SELECT payload FROM scans WHERE instr(url, ?) > 0 ORDER BY seq DESC LIMIT ?",
                    (url_filter, limit),
                ).fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT payload FROM scans ORDER BY seq DESC LIMIT ?", (limit,)
                ).fetchall()
        return [ScanRecord.from_dict(json.loads(r[0])) for r in rows]

    def for_host(self, hostname: str) -> List[ScanRecord]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT payload FROM scans WHERE host = ? ORDER BY seq ASC", (hostname,)
            ).fetchall()
        return [ScanRecord.from_dict(json.loads(r[0])) for r in rows]

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM scans").fetchone()[0]

    def close(self):
        with self._lock:
            self._conn.close()
