"""
Profile Store — the locally persisted user profile record.

The record is kept exactly as written (JSON text). Nothing here validates
it: a malformed record is the goal resolver's concern, where it counts as
absent.

Behavioral Contract:
- One record per key; writes replace the whole record.
- Reads never raise for missing keys; they return None.
"""

import json
import sqlite3
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol


class ProfileStore(Protocol):
    """Read access to the local profile record."""

    def read_raw(self) -> Optional[str]: ...


class InMemoryProfileStore:
    """Dictionary-backed store for tests and ephemeral sessions."""

    def __init__(self, raw: Optional[str] = None, key: str = "athlos_user"):
        self.key = key
        self._records: Dict[str, str] = {}
        if raw is not None:
            self._records[key] = raw

    def read_raw(self) -> Optional[str]:
        return self._records.get(self.key)

    def write_raw(self, raw: str) -> None:
        self._records[self.key] = raw

    def write_profile(self, profile: dict) -> None:
        self.write_raw(json.dumps(profile))

    def clear(self) -> None:
        self._records.pop(self.key, None)


class SqliteProfileStore:
    """
    Local key/value profile store.
    Prototype: SQLite file or :memory:. The source of truth lives elsewhere.
    """

    def __init__(self, db_path: str = ":memory:", key: str = "athlos_user"):
        self.db_path = db_path
        self.key = key
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the profile table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS local_profile (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def read_raw(self) -> Optional[str]:
        """Get the raw record text, or None if nothing was stored."""
        row = self._conn.execute(
            "SELECT value FROM local_profile WHERE key = ?", (self.key,)
        ).fetchone()
        if row is None:
            return None
        return row["value"]

    def write_raw(self, raw: str) -> None:
        """Replace the record with raw text (stored as-is)."""
        self._conn.execute(
            """
            INSERT INTO local_profile (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                           updated_at = excluded.updated_at
            """,
            (self.key, raw, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()

    def write_profile(self, profile: dict) -> None:
        """Serialize a profile dict and store it."""
        self.write_raw(json.dumps(profile, default=str))

    def clear(self) -> None:
        self._conn.execute("DELETE FROM local_profile WHERE key = ?", (self.key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
