"""Database schema DDL definitions and initialization utilities.

Tables:
  - conversions: one row per completed currency conversion
  - metadata: key/value store (schema version etc.)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

CONVERSIONS_DDL = f"""
CREATE TABLE IF NOT EXISTS conversions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    from_currency TEXT NOT NULL,
    to_currency TEXT NOT NULL,
    amount REAL NOT NULL,
    result REAL NOT NULL,
    rate REAL NOT NULL,
    timestamp TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

CONVERSIONS_USER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_conversions_user ON conversions(user_id);"
)
CONVERSIONS_TIMESTAMP_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_conversions_timestamp ON conversions(timestamp);"
)

DDL_ORDER: Sequence[str] = (
    CONVERSIONS_DDL,
    METADATA_DDL,
)

INDEX_ORDER: Sequence[str] = (
    CONVERSIONS_USER_INDEX_DDL,
    CONVERSIONS_TIMESTAMP_INDEX_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables and indexes idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        for ddl in INDEX_ORDER:
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()
