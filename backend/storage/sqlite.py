"""
SQLite Storage
Durable key-value layer for user-owned settings.

Responsibilities:
- Read/write raw JSON documents by key
- Handle schema

NOT responsible for:
- Parsing or defaults (stores handle this)
- Change notification (stores publish)
"""

import sqlite3
import threading
from pathlib import Path
from typing import List, Optional


class SQLiteStorage:
    """
    SQLite persistence for settings documents.

    Tables:
        - kv: key → JSON text, with last update time
    """

    def __init__(self, db_path: str = "data/garden.db"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._ensure_directory()
        self._init_schema()

    def _ensure_directory(self):
        """Create data directory"""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _init_schema(self):
        """Initialize database schema"""
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                );
            """)

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get(self, key: str) -> Optional[str]:
        """Raw stored text, or None when absent"""
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def keys(self) -> List[str]:
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [r[0] for r in rows]

    # =========================================================================
    # Write Operations
    # =========================================================================

    def set(self, key: str, value: str) -> None:
        with self._lock, sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """INSERT INTO kv (key, value, updated_at)
                   VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, value)
            )

    def delete(self, key: str) -> bool:
        with self._lock, sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            return cursor.rowcount > 0
