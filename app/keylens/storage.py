from __future__ import annotations
import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .models import EventType, KeystrokeEvent, Modifier

logger = logging.getLogger(__name__)

_SELECT = "SELECT timestamp, key_code, event_type, modifiers, application FROM keystroke_events"


class EventStore:
    """SQLite-backed keystroke event log."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._setup()

    def _setup(self) -> None:
        with self._conn:
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS keystroke_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp INTEGER NOT NULL,
                    key_code INTEGER NOT NULL,
                    event_type TEXT NOT NULL,
                    modifiers TEXT,
                    application TEXT NOT NULL
                )
                """
            )
            self._conn.execute("CREATE INDEX IF NOT EXISTS idx_timestamp ON keystroke_events(timestamp)")
            self._conn.execute("CREATE INDEX IF NOT EXISTS idx_key_code ON keystroke_events(key_code)")
            self._conn.execute("CREATE INDEX IF NOT EXISTS idx_application ON keystroke_events(application)")

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # Writes
    @staticmethod
    def _params(event: KeystrokeEvent) -> Tuple:
        return (
            event.timestamp,
            event.key_code,
            event.event_type.as_str(),
            json.dumps([m.value for m in event.modifiers]),
            event.application,
        )

    def insert_event(self, event: KeystrokeEvent) -> None:
        self.insert_events([event])

    def insert_events(self, events: Iterable[KeystrokeEvent]) -> int:
        rows = [self._params(e) for e in events]
        if not rows:
            return 0
        with self._lock, self._conn:
            self._conn.executemany(
                "INSERT INTO keystroke_events (timestamp, key_code, event_type, modifiers, application)"
                " VALUES (?, ?, ?, ?, ?)",
                rows,
            )
        return len(rows)

    def cleanup_before(self, timestamp: int) -> int:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM keystroke_events WHERE timestamp < ?", (timestamp,))
        logger.info("Removed %d events older than %d", cur.rowcount, timestamp)
        return cur.rowcount

    # Queries
    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> KeystrokeEvent:
        event_type = EventType.parse(row["event_type"])
        try:
            modifiers = tuple(Modifier(m) for m in json.loads(row["modifiers"] or "[]"))
        except ValueError:
            modifiers = ()
        return KeystrokeEvent(
            timestamp=row["timestamp"],
            key_code=row["key_code"],
            event_type=event_type,
            modifiers=modifiers,
            application=row["application"],
        )

    def _rows_to_events(self, rows: List[sqlite3.Row]) -> List[KeystrokeEvent]:
        events = []
        for row in rows:
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("Skipping unreadable event row in %s: %s", self.db_path, e)
        return events

    def all_events(self) -> List[KeystrokeEvent]:
        cur = self._conn.execute(_SELECT + " ORDER BY timestamp ASC, id ASC")
        return self._rows_to_events(cur.fetchall())

    def events_in_range(self, start: int, end: int) -> List[KeystrokeEvent]:
        cur = self._conn.execute(
            _SELECT + " WHERE timestamp >= ? AND timestamp <= ? ORDER BY timestamp ASC, id ASC",
            (start, end),
        )
        return self._rows_to_events(cur.fetchall())

    def events_since(self, days: int) -> List[KeystrokeEvent]:
        now = int(time.time() * 1000)
        return self.events_in_range(now - days * 24 * 60 * 60 * 1000, now)

    def total_count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) AS c FROM keystroke_events").fetchone()
        return row["c"] or 0

    def press_count(self) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS c FROM keystroke_events WHERE event_type = 'press'"
        ).fetchone()
        return row["c"] or 0

    def date_range(self) -> Optional[Tuple[int, int]]:
        row = self._conn.execute(
            "SELECT MIN(timestamp) AS lo, MAX(timestamp) AS hi FROM keystroke_events"
        ).fetchone()
        if row["lo"] is None:
            return None
        return row["lo"], row["hi"]

    def top_keys(self, limit: int = 10) -> List[Tuple[int, int]]:
        cur = self._conn.execute(
            """
            SELECT key_code, COUNT(*) AS count FROM keystroke_events
            WHERE event_type = 'press'
            GROUP BY key_code ORDER BY count DESC, key_code ASC LIMIT ?
            """,
            (limit,),
        )
        return [(row["key_code"], row["count"]) for row in cur.fetchall()]

    def top_applications(self, limit: int = 5) -> List[Tuple[str, int]]:
        cur = self._conn.execute(
            """
            SELECT application, COUNT(*) AS count FROM keystroke_events
            WHERE event_type = 'press'
            GROUP BY application ORDER BY count DESC, application ASC LIMIT ?
            """,
            (limit,),
        )
        return [(row["application"], row["count"]) for row in cur.fetchall()]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
