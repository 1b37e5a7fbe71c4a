"""
scamshield/history/sqlite_store.py
Bounded scan history in SQLite.

SCHEMA DESIGN NOTES:
- scan_history holds one row per StoredAnalysis; the full analysis is a
  JSON payload, id / timestamp / severity are broken out for queries
- seq (AUTOINCREMENT) is the insertion order — eviction removes the
  lowest seq first, listing is highest seq first (newest first)
- scan_stats is a single row of running counters
- All timestamps stored as INTEGER milliseconds (Unix epoch * 1000)

Each record() is one BEGIN IMMEDIATE transaction (insert + evict +
counters) under a process lock, so concurrent analysis flows cannot
lose each other's writes.
"""

import json
import logging
import secrets
import sqlite3
import string
import threading
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List, Optional

from scamshield.models.record import CombinedAnalysis, StoredAnalysis

logger = logging.getLogger(__name__)

SCHEMA_VERSION   = '1.0'
HISTORY_CAPACITY = 100

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_entry_id(timestamp_ms: int) -> str:
    suffix = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f'scan_{timestamp_ms}_{suffix}'


class HistoryStore:

    def __init__(self, db_path: Path = Path('scamshield.db'), capacity: int = HISTORY_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.db_path  = Path(db_path)
        self.capacity = capacity
        self._lock    = threading.Lock()
        self._schema_ready = False

    # ── INTERNAL ─────────────────────────────────────────────
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=10, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        if not self._schema_ready:
            _create_schema(conn)
            self._schema_ready = True
        return conn

    # ── WRITE ────────────────────────────────────────────────
    def record(self, analysis: CombinedAnalysis) -> StoredAnalysis:
        """Append analysis, evict beyond capacity, bump counters."""
        entry = StoredAnalysis.from_analysis(analysis, new_entry_id(analysis.timestamp))

        with self._lock:
            conn = self._connect()
            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute(
                    """
                    INSERT INTO scan_history
                        (id, timestamp_ms, severity, is_suspicious, payload)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        entry.id,
                        entry.timestamp,
                        entry.overall_severity.value,
                        int(entry.is_suspicious),
                        json.dumps(entry.to_dict()),
                    ),
                )
                evicted = conn.execute(
                    """
                    DELETE FROM scan_history WHERE seq NOT IN (
                        SELECT seq FROM scan_history ORDER BY seq DESC LIMIT ?
                    )
                    """,
                    (self.capacity,),
                ).rowcount
                conn.execute(
                    """
                    UPDATE scan_stats
                       SET total_scans    = total_scans + 1,
                           scams_detected = scams_detected + ?
                     WHERE id = 1
                    """,
                    (int(entry.is_suspicious),),
                )
                conn.execute("COMMIT")
            except Exception as e:
                conn.execute("ROLLBACK")
                logger.error(f"History write failed: {e}")
                raise
            finally:
                conn.close()

        if evicted:
            logger.debug(f"History capacity {self.capacity} reached — evicted {evicted} oldest")
        return entry

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        with self._lock:
            conn = self._connect()
            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute("DELETE FROM scan_history")
                conn.execute(
                    "UPDATE scan_stats SET total_scans = 0, scams_detected = 0 WHERE id = 1"
                )
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
            finally:
                conn.close()
        logger.info("History cleared")

    # ── READ ─────────────────────────────────────────────────
    def list(self, limit: int = HISTORY_CAPACITY, offset: int = 0) -> List[StoredAnalysis]:
        """Newest first."""
        limit  = max(min(int(limit), self.capacity), 0)
        offset = max(int(offset), 0)
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT payload FROM scan_history ORDER BY seq DESC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
        return [StoredAnalysis.from_dict(json.loads(r['payload'])) for r in rows]

    def get(self, entry_id: str) -> Optional[StoredAnalysis]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT payload FROM scan_history WHERE id = ?", (entry_id,)
            ).fetchone()
        return StoredAnalysis.from_dict(json.loads(row['payload'])) if row else None

    def count(self) -> int:
        with closing(self._connect()) as conn:
            return conn.execute("SELECT COUNT(*) FROM scan_history").fetchone()[0]

    def stats(self) -> Dict[str, Any]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT total_scans, scams_detected FROM scan_stats WHERE id = 1"
            ).fetchone()
        return {
            'totalScans':    row['total_scans'] if row else 0,
            'scamsDetected': row['scams_detected'] if row else 0,
        }


# ── SCHEMA ───────────────────────────────────────────────────

def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(f"""
        CREATE TABLE IF NOT EXISTS scan_history (
            seq             INTEGER PRIMARY KEY AUTOINCREMENT,
            id              TEXT    NOT NULL UNIQUE,
            timestamp_ms    INTEGER NOT NULL,
            severity        TEXT    NOT NULL,
            is_suspicious   INTEGER DEFAULT 0,
            payload         TEXT    NOT NULL     -- StoredAnalysis JSON
        );

        CREATE TABLE IF NOT EXISTS scan_stats (
            id              INTEGER PRIMARY KEY CHECK (id = 1),
            total_scans     INTEGER DEFAULT 0,
            scams_detected  INTEGER DEFAULT 0,
            schema_version  TEXT    NOT NULL
        );

        INSERT OR IGNORE INTO scan_stats (id, total_scans, scams_detected, schema_version)
        VALUES (1, 0, 0, '{SCHEMA_VERSION}');
    """)
