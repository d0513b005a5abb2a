"""Data Access Layer for conversion history.

Responsibilities
----------------
- Persist one row per completed conversion (the `record` operation the
  conversion engine depends on).
- Read helpers for history and counts, used by tests and diagnostics.
- A trivial `ping` query for the health endpoint.
"""

from __future__ import annotations

from contextlib import closing
from datetime import datetime
from pathlib import Path
import sqlite3
from typing import Any, Dict, List, Optional

from fxconvert.models.conversion import ConversionRecord


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def ping(self) -> bool:
        with closing(self._connect()) as conn:
            cur = conn.cursor()
            cur.execute("SELECT 1 AS health")
            row = cur.fetchone()
            return bool(row and row[0] == 1)

    # ------------------------------------------------------------------
    # Conversions
    def record(self, record: ConversionRecord) -> int:
        """Insert a conversion row and return its id. Raises sqlite3.Error on failure."""
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO conversions (user_id, from_currency, to_currency, amount, result, rate)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.from_currency,
                    record.to_currency,
                    record.amount,
                    record.result,
                    record.rate,
                ),
            )
            conn.commit()
            return int(cur.lastrowid)
        finally:
            conn.close()

    def list_conversions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> List[ConversionRecord]:
        clauses: List[str] = []
        params: List[Any] = []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        sql = f"SELECT * FROM conversions{where} ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)
        with closing(self._connect()) as conn:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [_row_to_record(dict(r)) for r in cur.fetchall()]

    def count_conversions(self, user_id: Optional[str] = None) -> int:
        with closing(self._connect()) as conn:
            cur = conn.cursor()
            if user_id is None:
                cur.execute("SELECT COUNT(*) FROM conversions")
            else:
                cur.execute(
                    "SELECT COUNT(*) FROM conversions WHERE user_id = ?", (user_id,)
                )
            row = cur.fetchone()
            return int(row[0] if row and row[0] is not None else 0)


def _row_to_record(row: Dict[str, Any]) -> ConversionRecord:
    ts_raw = row.get("timestamp")
    return ConversionRecord(
        id=int(row["id"]),
        user_id=row["user_id"],
        from_currency=row["from_currency"],
        to_currency=row["to_currency"],
        amount=row["amount"],
        result=row["result"],
        rate=row["rate"],
        timestamp=datetime.fromisoformat(ts_raw.replace("Z", "")) if ts_raw else None,
    )
