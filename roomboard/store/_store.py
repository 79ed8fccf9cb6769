from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

from .. import db
from ..errors import DuplicateRecordError, PersistenceError, RecordNotFoundError
from . import utils as store_utils
from .types import StoredRecord

logger = logging.getLogger(__name__)

COUNTDOWNS_NAMESPACE = "countdowns"
SESSIONS_NAMESPACE = "sessions"


class RecordStore:
    """Write-through persistence for the records of one namespace.

    Every mutating call commits before it returns, so the file always matches
    the last completed call. Namespaces share one table and never see each
    other's rows.
    """

    def __init__(
        self,
        db_path: Path | str = db.DEFAULT_DB_PATH,
        namespace: str = COUNTDOWNS_NAMESPACE,
        *,
        check_same_thread: bool = True,
    ):
        if not namespace:
            raise ValueError("namespace is required")
        self.db_path = Path(db_path).expanduser()
        self.namespace = namespace
        try:
            self.conn = db.connect(self.db_path, check_same_thread=check_same_thread)
        except (sqlite3.DatabaseError, OSError) as exc:
            raise PersistenceError(f"cannot open database {self.db_path}: {exc}") from exc
        try:
            db.initialize_schema(self.conn)
        except sqlite3.DatabaseError as exc:
            self.conn.close()
            raise PersistenceError(f"cannot open database {self.db_path}: {exc}") from exc

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> RecordStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def load_all(self) -> list[StoredRecord]:
        try:
            rows = self.conn.execute(
                """
                SELECT record_id, attributes_json, created_at, updated_at
                FROM records
                WHERE namespace = ?
                ORDER BY seq
                """,
                (self.namespace,),
            ).fetchall()
        except sqlite3.DatabaseError as exc:
            logger.warning("load of namespace %s failed", self.namespace, exc_info=exc)
            return []
        loaded: list[StoredRecord] = []
        for row in rows:
            attributes = store_utils.decode_attributes(row["attributes_json"])
            if attributes is None:
                logger.warning(
                    "skipping corrupt %s record %s", self.namespace, row["record_id"]
                )
                continue
            loaded.append(
                StoredRecord(
                    record_id=str(row["record_id"]),
                    attributes=attributes,
                    created_at=str(row["created_at"]),
                    updated_at=str(row["updated_at"]),
                )
            )
        return loaded

    def get(self, record_id: str) -> dict[str, Any] | None:
        row = self.conn.execute(
            "SELECT attributes_json FROM records WHERE namespace = ? AND record_id = ?",
            (self.namespace, record_id),
        ).fetchone()
        if row is None:
            return None
        return store_utils.decode_attributes(row["attributes_json"])

    def exists(self, record_id: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM records WHERE namespace = ? AND record_id = ?",
            (self.namespace, record_id),
        ).fetchone()
        return row is not None

    def create(self, record_id: str, attributes: dict[str, Any]) -> None:
        now = store_utils.now_iso()
        try:
            self.conn.execute(
                """
                INSERT INTO records(namespace, record_id, attributes_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    self.namespace,
                    record_id,
                    store_utils.encode_attributes(attributes),
                    now,
                    now,
                ),
            )
        except sqlite3.IntegrityError as exc:
            self.conn.rollback()
            raise DuplicateRecordError(self.namespace, record_id) from exc
        self.conn.commit()

    def update(self, record_id: str, attributes: dict[str, Any]) -> None:
        cur = self.conn.execute(
            """
            UPDATE records
            SET attributes_json = ?, updated_at = ?
            WHERE namespace = ? AND record_id = ?
            """,
            (
                store_utils.encode_attributes(attributes),
                store_utils.now_iso(),
                self.namespace,
                record_id,
            ),
        )
        if cur.rowcount == 0:
            self.conn.rollback()
            raise RecordNotFoundError(self.namespace, record_id)
        self.conn.commit()

    def destroy(self, record_id: str) -> bool:
        cur = self.conn.execute(
            "DELETE FROM records WHERE namespace = ? AND record_id = ?",
            (self.namespace, record_id),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def clear(self) -> int:
        cur = self.conn.execute("DELETE FROM records WHERE namespace = ?", (self.namespace,))
        self.conn.commit()
        return int(cur.rowcount)

    def count(self) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS total FROM records WHERE namespace = ?",
            (self.namespace,),
        ).fetchone()
        return int(row["total"]) if row else 0
