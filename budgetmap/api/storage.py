"""Append-only sqlite storage for submitted budget allocations."""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any

from budgetmap.common.constants import RECENT_ALLOCATIONS_LIMIT
from budgetmap.common.fs import ensure_dir
from budgetmap.common.ids import generate_record_id

_SCHEMA = """
CREATE TABLE IF NOT EXISTS budget_allocations (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    received_at TEXT NOT NULL,
    document TEXT NOT NULL
)
"""


class AllocationStorage:
    """Insert-only collection of allocation documents.

    A connection is opened per operation; there is no update or delete path.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        if str(db_path) != ":memory:":
            ensure_dir(db_path.parent)
        with closing(self._connect()) as conn, conn:
            conn.execute(_SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def append(self, document: dict[str, Any], *, received_at: str) -> str:
        record_id = generate_record_id()
        stored = {**document, "_id": record_id}
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO budget_allocations (id, received_at, document) VALUES (?, ?, ?)",
                (record_id, received_at, json.dumps(stored, ensure_ascii=False)),
            )
        return record_id

    def recent(self, limit: int = RECENT_ALLOCATIONS_LIMIT) -> list[dict[str, Any]]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT document FROM budget_allocations ORDER BY seq DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [json.loads(row[0]) for row in rows]

    def count(self) -> int:
        with closing(self._connect()) as conn:
            return conn.execute("SELECT COUNT(*) FROM budget_allocations").fetchone()[0]
