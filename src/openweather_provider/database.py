"""SQLite persistence for cached weather responses."""

import json
import sqlite3
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from contextlib import contextmanager

from .config import CACHE_DB_PATH

logger = logging.getLogger(__name__)


class CacheDatabase:
    """
    Best-effort disk store for weather cache entries.

    One row per spatial cell key. Rows are replaced whole with
    ``INSERT OR REPLACE`` so a reader never sees a partially written entry.
    Nothing depends on this store surviving: a missing or unreadable file
    only costs an extra remote fetch.
    """

    def __init__(self, db_path: Path = CACHE_DB_PATH):
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            # WAL mode provides better concurrency and crash recovery
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS weather_cache (
                    cell_key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    fetched_at REAL NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
            logger.info(f"Cache database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get database connection, rolling back on errors."""
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}")
            conn.rollback()
            raise
        finally:
            conn.close()

    def save_entry(self, cell_key: str, payload: Any, fetched_at: float):
        """Insert or replace the entry for a cell."""
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO weather_cache (cell_key, payload, fetched_at)
                VALUES (?, ?, ?)
            """, (cell_key, json.dumps(payload), fetched_at))
            conn.commit()
            logger.debug(f"Persisted cache entry {cell_key}")

    def load_entries(self) -> List[Dict[str, Any]]:
        """
        Load every stored entry.

        Rows whose payload cannot be decoded are skipped.
        """
        with self._get_connection() as conn:
            cursor = conn.execute("""
                SELECT cell_key, payload, fetched_at FROM weather_cache
            """)
            rows = cursor.fetchall()

        entries = []
        for row in rows:
            entry = self._row_to_entry(row)
            if entry is not None:
                entries.append(entry)
        return entries

    def delete_fetched_before(self, cutoff: float) -> int:
        """Delete entries fetched at or before cutoff. Returns number deleted."""
        with self._get_connection() as conn:
            cursor = conn.execute("""
                DELETE FROM weather_cache WHERE fetched_at <= ?
            """, (cutoff,))
            conn.commit()
            return cursor.rowcount

    def clear(self):
        """Delete every entry."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM weather_cache")
            conn.commit()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> Optional[Dict[str, Any]]:
        try:
            payload = json.loads(row["payload"])
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable cache entry {row['cell_key']}: {e}")
            return None
        return {
            "cell_key": row["cell_key"],
            "payload": payload,
            "fetched_at": row["fetched_at"],
        }
