"""Prepared write statements, one cursor per statement for the whole session."""

import enum
import logging
import sqlite3
from typing import Any, Dict, Sequence

from .manager import DatabaseManager

logger = logging.getLogger(__name__)


class Statement(enum.Enum):
    SELECT_DOCUMENT = (
        "SELECT docid, info, hash, updated, deleted FROM sitemap WHERE path = ?",
        False,
    )
    INSERT_SEARCH = (
        "INSERT INTO search (path, title, description, keywords, content) "
        "VALUES (?, ?, ?, ?, ?)",
        True,
    )
    INSERT_DOCUMENT = (
        "INSERT INTO sitemap (docid, category_id, path, info, image, content, hash, updated, deleted) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        True,
    )
    INSERT_CATEGORY = (
        "INSERT INTO categories (category, parent) VALUES (?, ?)",
        True,
    )
    UPDATE_SEARCH = (
        "UPDATE search SET path = ?, title = ?, description = ?, keywords = ?, content = ? "
        "WHERE rowid = ?",
        True,
    )
    UPDATE_DOCUMENT = (
        "UPDATE sitemap SET category_id = ?, path = ?, info = ?, image = ?, content = ?, "
        "hash = ?, updated = ?, deleted = ? WHERE docid = ?",
        True,
    )
    DELETE_SEARCH = ("DELETE FROM search WHERE rowid = ?", True)
    DELETE_DOCUMENT = ("DELETE FROM sitemap WHERE docid = ?", True)

    def __init__(self, sql: str, mutating: bool):
        self.sql = sql
        self.mutating = mutating


class StatementCache:
    """Lazily binds each :class:`Statement` to a cursor owned by the session.

    The first mutating statement opens the session transaction.  Inserts
    return the new rowid, selects return the first row as a dict (or None),
    updates and deletes return the affected row count.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db
        self._cursors: Dict[Statement, sqlite3.Cursor] = {}

    def __contains__(self, stmt: Statement) -> bool:
        return stmt in self._cursors

    def _cursor(self, stmt: Statement) -> sqlite3.Cursor:
        cursor = self._cursors.get(stmt)
        if cursor is None:
            if stmt.mutating:
                self.db.begin()
            cursor = self.db.conn.cursor()
            self._cursors[stmt] = cursor
        return cursor

    def execute(self, stmt: Statement, params: Sequence[Any]) -> Any:
        cursor = self._cursor(stmt)
        cursor.execute(stmt.sql, tuple(params))
        if stmt is Statement.SELECT_DOCUMENT:
            row = cursor.fetchone()
            return dict(row) if row else None
        if stmt.sql.startswith("INSERT"):
            return cursor.lastrowid
        return cursor.rowcount

    def close(self) -> int:
        closed = len(self._cursors)
        for cursor in self._cursors.values():
            cursor.close()
        self._cursors.clear()
        logger.debug(f"Closed {closed} prepared statements")
        return closed
