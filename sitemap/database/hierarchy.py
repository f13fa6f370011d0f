"""
Nested-set category tree.

Categories are slash-delimited paths ("pages/articles/news").  Every path
segment is its own row linked to its parent, and ``lft``/``rgt`` bounds let
"all descendants of X" be a single ``BETWEEN`` query.  New rows only get
parent links while a session is running; the bounds are recomputed for the
whole tree by :meth:`Hierarchy.refresh` when the session ends.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from .manager import DatabaseManager
from .statements import Statement, StatementCache

logger = logging.getLogger(__name__)

ROOT_ID = 0


def normalize_category(category: Optional[str]) -> str:
    """'/Pages//articles/' -> 'Pages/articles'"""
    if not category:
        return ""
    return "/".join(part.strip() for part in category.split("/") if part.strip())


class Hierarchy:
    """Bounds maintenance and level listing over a parent-linked tree table."""

    def __init__(self, db: DatabaseManager, table: str = "categories"):
        self.db = db
        self.table = table

    def refresh(self, order_by: str = "category") -> int:
        """Recompute ``level``, ``lft`` and ``rgt`` for every row.

        Siblings are numbered in ``order_by`` order.  Returns the number of rows
        updated.
        """
        rows = self.db.all(
            f"SELECT id, parent FROM {self.table} ORDER BY {order_by} COLLATE NOCASE, id"
        )
        children: Dict[int, List[int]] = defaultdict(list)
        known = {row["id"] for row in rows}
        for row in rows:
            parent = row["parent"] if row["parent"] in known else ROOT_ID
            children[parent].append(row["id"])

        bounds: List[Tuple[int, int, int, int]] = []
        counter = 0
        # Iterative depth-first walk: (id, level, children visited?)
        stack: List[Tuple[int, int, bool]] = [
            (child, 0, False) for child in reversed(children[ROOT_ID])
        ]
        lft: Dict[int, int] = {}
        while stack:
            node, level, visited = stack.pop()
            counter += 1
            if visited:
                bounds.append((level, lft.pop(node), counter, node))
                continue
            lft[node] = counter
            stack.append((node, level, True))
            for child in reversed(children[node]):
                stack.append((child, level + 1, False))

        self.db.conn.executemany(
            f"UPDATE {self.table} SET level = ?, lft = ?, rgt = ? WHERE id = ?", bounds
        )
        logger.info(f"Refreshed nested-set bounds for {len(bounds)} {self.table}")
        return len(bounds)

    def level(self, depth: int, columns: Sequence[str] = ("lft", "rgt")) -> Dict[int, Dict]:
        """Rows at ``depth`` keyed by id, in tree order, with ``columns`` projected."""
        select = ", ".join(["id"] + list(columns))
        rows = self.db.all(
            f"SELECT {select} FROM {self.table} WHERE level = ? ORDER BY lft",
            (depth,),
        )
        return {row.pop("id"): row for row in rows}


class CategoryTree:
    """Resolves category paths to ids, creating missing segments on the way."""

    def __init__(self, db: DatabaseManager, statements: StatementCache):
        self.db = db
        self.statements = statements
        self.hierarchy = Hierarchy(db, "categories")
        self._ids: Optional[Dict[str, int]] = None
        self.inserted = False

    @property
    def ids(self) -> Dict[str, int]:
        if self._ids is None:
            self._ids = {
                row["category"].lower(): row["id"]
                for row in self.db.all("SELECT category, id FROM categories")
            }
        return self._ids

    def resolve(self, category: Optional[str]) -> int:
        category = normalize_category(category)
        if not category:
            return ROOT_ID
        key = category.lower()
        if key not in self.ids:
            parent = ROOT_ID
            previous = ""
            for segment in category.split("/"):
                name = previous + segment
                if name.lower() not in self.ids:
                    self.ids[name.lower()] = self.statements.execute(
                        Statement.INSERT_CATEGORY, (name, parent)
                    )
                    self.inserted = True
                    logger.debug(f"Created category '{name}' under {parent}")
                parent = self.ids[name.lower()]
                previous = name + "/"
        return self.ids[key]

    def range_for(self, category: str) -> Optional[Tuple[int, int]]:
        row = self.db.row(
            "SELECT lft, rgt FROM categories WHERE category = ?",
            (normalize_category(category),),
        )
        return (row["lft"], row["rgt"]) if row else None

    def top_level(self) -> List[Dict]:
        return [
            {"id": cat_id, **row}
            for cat_id, row in self.hierarchy.level(
                0, ("lft", "rgt", "category AS name")
            ).items()
        ]

    def refresh(self) -> int:
        return self.hierarchy.refresh("category")
