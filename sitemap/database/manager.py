import sqlite3
import os
import logging
from typing import List, Optional, Dict, Any, Sequence
from .schema import SCHEMA, FTS_SCHEMA

logger = logging.getLogger(__name__)


class DatabaseManager:
    """One open handle to the sitemap database.

    The connection runs in autocommit mode (``isolation_level=None``) so the
    owner decides when a transaction starts and ends: ``begin()`` issues
    ``BEGIN IMMEDIATE`` and ``commit()`` / ``rollback()`` close it.  Reads on
    the same handle see the pending, uncommitted writes.
    """

    def __init__(self, db_path: str = "sitemap.db"):
        self.db_path = db_path
        self.created = False
        self.transaction = False
        self.conn = self._get_connection()
        if self.created:
            self._init_db()

    def _get_connection(self):
        if self.db_path != ":memory:":
            # Ensure directory exists
            db_dir = os.path.dirname(os.path.abspath(self.db_path))
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
            self.created = not os.path.exists(self.db_path)
        else:
            self.created = True

        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row

        # Enable WAL mode for better concurrency
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")

        return conn

    def _init_db(self):
        logger.info(f"Creating sitemap database at {self.db_path}")
        self.conn.executescript(SCHEMA)
        self.conn.executescript(FTS_SCHEMA)

    # Transaction control
    def begin(self):
        if not self.transaction:
            self.conn.execute("BEGIN IMMEDIATE")
            self.transaction = True

    def commit(self):
        if self.transaction:
            self.conn.execute("COMMIT")
            self.transaction = False

    def rollback(self):
        if self.transaction:
            self.conn.execute("ROLLBACK")
            self.transaction = False

    def close(self):
        self.conn.close()

    # Query helpers
    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        return self.conn.execute(sql, params)

    def all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cursor = self.conn.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    def row(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(sql, params).fetchone()
        return dict(row) if row else None

    def value(self, sql: str, params: Sequence[Any] = ()) -> Any:
        row = self.conn.execute(sql, params).fetchone()
        return row[0] if row else None

    def ids(self, sql: str, params: Sequence[Any] = ()) -> List[int]:
        return [row[0] for row in self.conn.execute(sql, params).fetchall()]

    def get_stats(self) -> Dict[str, Any]:
        doc_count = self.value("SELECT count(*) FROM sitemap")
        deleted_count = self.value("SELECT count(*) FROM sitemap WHERE deleted = 1")
        category_count = self.value("SELECT count(*) FROM categories")
        last_mod = self.value("SELECT MAX(updated) FROM sitemap")
        db_size = (
            os.path.getsize(self.db_path)
            if self.db_path != ":memory:" and os.path.exists(self.db_path)
            else 0
        )
        return {
            "documents": doc_count,
            "deleted": deleted_count,
            "categories": category_count,
            "last_updated": last_mod or 0,
            "db_size": db_size,
        }
