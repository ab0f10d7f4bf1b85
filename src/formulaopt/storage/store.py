"""
Record Store
============

SQLite-backed key-value store with three collections:
- formulations: submitted requests
- results: optimization runs
- settings: saved application settings

Records are JSON payloads keyed by auto-incrementing ids, with a
``synced`` flag for the background sync stub.
"""

import json
import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import StorageError

logger = logging.getLogger(__name__)

COLLECTIONS = ("formulations", "results", "settings")


@dataclass
class _Result:
    rows: List[sqlite3.Row]
    lastrowid: Optional[int]
    rowcount: int


class FormulationStore:
    """Embedded record store for formulations, results and settings."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create store directory {self.db_path.parent}: {e}") from e
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                for name in COLLECTIONS:
                    conn.execute(f"""
                        CREATE TABLE IF NOT EXISTS {name} (
                            id INTEGER PRIMARY KEY AUTOINCREMENT,
                            payload TEXT NOT NULL,
                            synced INTEGER NOT NULL DEFAULT 0,
                            created_at TEXT NOT NULL
                        )
                    """)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot initialize store at {self.db_path}: {e}") from e

    @staticmethod
    def _table(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise StorageError(
                f"Unknown collection '{collection}' (expected one of: {', '.join(COLLECTIONS)})"
            )
        return collection

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> Dict[str, Any]:
        try:
            data = json.loads(row["payload"])
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt payload in record {row['id']}: {e}") from e
        return {
            "id": row["id"],
            "data": data,
            "synced": bool(row["synced"]),
            "created_at": row["created_at"],
        }

    def _execute(self, sql: str, params: Tuple = ()) -> _Result:
        try:
            with closing(self._connect()) as conn, conn:
                cur = conn.execute(sql, params)
                return _Result(rows=cur.fetchall(), lastrowid=cur.lastrowid, rowcount=cur.rowcount)
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def add(self, collection: str, data: Dict[str, Any]) -> int:
        """Insert a record and return its id."""
        table = self._table(collection)
        res = self._execute(
            f"INSERT INTO {table} (payload, synced, created_at) VALUES (?, 0, ?)",
            (json.dumps(data), datetime.now(timezone.utc).isoformat()),
        )
        logger.debug("Stored %s record %d", collection, res.lastrowid)
        return int(res.lastrowid)

    def get(self, collection: str, record_id: int) -> Optional[Dict[str, Any]]:
        table = self._table(collection)
        rows = self._execute(f"SELECT * FROM {table} WHERE id = ?", (record_id,)).rows
        return self._row_to_record(rows[0]) if rows else None

    def all(self, collection: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Records newest first."""
        table = self._table(collection)
        sql = f"SELECT * FROM {table} ORDER BY id DESC"
        params: Tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (int(limit),)
        return [self._row_to_record(r) for r in self._execute(sql, params).rows]

    def count(self, collection: str) -> int:
        table = self._table(collection)
        return int(self._execute(f"SELECT COUNT(*) FROM {table}").rows[0][0])

    def update(self, collection: str, record_id: int, data: Dict[str, Any]) -> bool:
        table = self._table(collection)
        res = self._execute(
            f"UPDATE {table} SET payload = ?, synced = 0 WHERE id = ?",
            (json.dumps(data), record_id),
        )
        return res.rowcount > 0

    def delete(self, collection: str, record_id: int) -> bool:
        table = self._table(collection)
        return self._execute(f"DELETE FROM {table} WHERE id = ?", (record_id,)).rowcount > 0

    def clear(self, collection: str) -> None:
        table = self._table(collection)
        self._execute(f"DELETE FROM {table}")

    def unsynced(self, collection: str = "formulations") -> List[Dict[str, Any]]:
        table = self._table(collection)
        rows = self._execute(f"SELECT * FROM {table} WHERE synced = 0 ORDER BY id").rows
        return [self._row_to_record(r) for r in rows]

    def mark_synced(self, collection: str, record_id: int) -> bool:
        table = self._table(collection)
        return self._execute(
            f"UPDATE {table} SET synced = 1 WHERE id = ?", (record_id,)
        ).rowcount > 0

    def sync_pending(self) -> int:
        """
        Background sync stub.

        There is no server to push to; unsynced formulations are only
        flagged as synced. Returns the number of records flagged.
        """
        pending = self.unsynced("formulations")
        if not pending:
            logger.info("No formulations to sync")
            return 0

        logger.info("Syncing %d formulations", len(pending))
        for record in pending:
            self.mark_synced("formulations", record["id"])
            logger.debug("Synced formulation %d", record["id"])
        return len(pending)

    def save_run(self, run) -> Tuple[int, int]:
        """Store the run's request and the run itself. Returns (formulation_id, result_id)."""
        formulation_id = self.add("formulations", run.request.model_dump(mode="json"))
        payload = run.to_dict()
        payload["formulation_id"] = formulation_id
        result_id = self.add("results", payload)
        return formulation_id, result_id

    def save_settings(self, settings: Dict[str, Any]) -> int:
        return self.add("settings", settings)

    def latest_settings(self) -> Optional[Dict[str, Any]]:
        records = self.all("settings", limit=1)
        return records[0]["data"] if records else None

    def save_preferences(self, preferences: Dict[str, Any]) -> bool:
        """Store preferences unless they equal the latest saved ones. Returns True when written."""
        if self.latest_settings() == preferences:
            return False
        self.save_settings(preferences)
        logger.debug("Saved preferences %s", preferences)
        return True
